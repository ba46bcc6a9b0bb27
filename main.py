import uvicorn
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from qabot.agents.chat_agent import ChatAgent
from qabot.analysis.analyzer import build_analyzer
from qabot.analysis.errors import BackendError
from qabot.api.analyze import router as analyze_router
from qabot.api.messages import router as messages_router
from qabot.core.config import AnalyzerConfig, load_analyzer_config
from qabot.llm.client import check_backend_reachable
from qabot.utils.logging_config import setup_logging

setup_logging()
logger = logging.getLogger("main")


async def probe_backend(config: AnalyzerConfig) -> bool:
    """One-shot startup reachability check; failure only logs a warning."""
    try:
        await check_backend_reachable(config.base_url, config.probe_timeout_seconds)
    except BackendError as e:
        logger.warning("%s", e)
        logger.warning(
            "Start Ollama (open the app or run: ollama serve). "
            "Until then users get fallback templates."
        )
        return False
    logger.info("Ollama is reachable at %s; AI analysis enabled.", config.base_url)
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_analyzer_config()
    analyzer = build_analyzer(config)
    if config.uses_backend:
        await probe_backend(config)

    app.state.config = config
    app.state.analyzer = analyzer
    app.state.chat_agent = ChatAgent(analyzer, max_concurrent=config.max_concurrent)
    try:
        yield
    finally:
        await analyzer.close()


app = FastAPI(title="QA Bug-Report Assistant API", lifespan=lifespan)

# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Incoming: {request.method} {request.url.path} from {client_host}")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {str(e)}")
            raise

        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"Outgoing: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.2f}ms"
        )
        return response

app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health endpoint
@app.get("/health")
async def health_check(request: Request):
    config = getattr(request.app.state, "config", None)
    return {"status": "ok", "analysis_mode": config.mode if config else "unknown"}

# Register routers
app.include_router(analyze_router)
app.include_router(messages_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
