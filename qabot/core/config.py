"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    ANALYSIS_MODE            — "ollama" for the generative backend, anything else → mock (default: mock)
    OLLAMA_URL               — Backend base URL (default: http://127.0.0.1:11434)
    OLLAMA_MODEL             — Vision-capable model name (default: llava)
    OLLAMA_TIMEOUT           — Seconds allowed for one analysis call (default: 180)
    OLLAMA_PROBE_TIMEOUT     — Seconds allowed for the startup reachability probe (default: 5)
    MAX_CONCURRENT_ANALYSES  — Backend calls allowed in flight at once (default: 2)
    LOG_DIR                  — Directory for daily log files (default: logs)
    LOG_LEVEL                — Root log level name (default: INFO)

Timeout Philosophy:
    Vision models (llava and friends) often take over a minute on their
    first request while the weights load, so analysis calls get a generous
    ceiling. The startup probe only checks that the server answers and must
    never delay boot noticeably.

127.0.0.1 is used instead of localhost to avoid IPv6 resolution stalls.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from qabot.core.constants import ANALYSIS_TIMEOUT, PROBE_TIMEOUT

load_dotenv()

ANALYSIS_MODE = os.getenv("ANALYSIS_MODE", "mock").strip().lower() or "mock"
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://127.0.0.1:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llava")
OLLAMA_TIMEOUT = float(os.getenv("OLLAMA_TIMEOUT", ANALYSIS_TIMEOUT))
OLLAMA_PROBE_TIMEOUT = float(os.getenv("OLLAMA_PROBE_TIMEOUT", PROBE_TIMEOUT))

# Protects a local backend from being flooded by parallel chats
MAX_CONCURRENT_ANALYSES = int(os.getenv("MAX_CONCURRENT_ANALYSES", 2))

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

MODE_OLLAMA = "ollama"
MODE_MOCK = "mock"


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AnalyzerConfig:
    """Fully-resolved backend configuration handed to build_analyzer()."""
    mode: str = MODE_MOCK
    base_url: str = "http://127.0.0.1:11434"
    model: str = "llava"
    timeout_seconds: float = ANALYSIS_TIMEOUT
    probe_timeout_seconds: float = PROBE_TIMEOUT
    max_concurrent: int = 2

    @property
    def uses_backend(self) -> bool:
        return self.mode == MODE_OLLAMA


def load_analyzer_config() -> AnalyzerConfig:
    """Build an AnalyzerConfig from the module-level environment values."""
    return AnalyzerConfig(
        mode=ANALYSIS_MODE,
        base_url=OLLAMA_URL.rstrip("/"),
        model=OLLAMA_MODEL,
        timeout_seconds=OLLAMA_TIMEOUT,
        probe_timeout_seconds=OLLAMA_PROBE_TIMEOUT,
        max_concurrent=max(1, MAX_CONCURRENT_ANALYSES),
    )
