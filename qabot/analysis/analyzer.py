"""
Analyzers
=========
Interchangeable backends that turn a bug report into a BugAnalysis.

    Analyzer (ABC)
    ├── MockAnalyzer    — ignores input, returns one fixed result
    └── OllamaAnalyzer  — prompts a generative backend over HTTP

Callers hold only the Analyzer type and pick an implementation once via
build_analyzer().

OllamaAnalyzer Flow:
    1. Empty image bytes / blank description → EmptyInput (no network)
    2. Images are downscaled; if that fails the original bytes are sent
    3. One POST to the backend (no retries); BackendError subclasses
       propagate to the caller, who chooses the user-facing fallback
    4. The response text is decoded; parse failures are absorbed into an
       unstructured review result and never raised

Cancellation:
    - deadline (seconds) bounds the whole call; when it elapses the
      in-flight request is cancelled and AnalysisCancelled is raised
    - asyncio task cancellation propagates unchanged as CancelledError
"""
import abc
import asyncio
import base64
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from qabot.analysis.errors import AnalysisCancelled, EmptyInput, ImagePreparationError
from qabot.analysis.templates import mock_analysis
from qabot.core.config import MODE_MOCK, AnalyzerConfig
from qabot.llm.client import OllamaClient
from qabot.llm.prompts import build_image_prompt, build_text_prompt
from qabot.models.bug_analysis import BugAnalysis
from qabot.parser.response_decoder import SOURCE_IMAGE, SOURCE_TEXT, decode_bug_analysis
from qabot.services.image_service import prepare_image

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Analyzer(abc.ABC):
    """Capability set shared by every analysis backend."""

    @abc.abstractmethod
    async def analyze_image(self, image: bytes, deadline: Optional[float] = None) -> BugAnalysis:
        """Analyse a screenshot."""

    @abc.abstractmethod
    async def analyze_text(self, description: str, deadline: Optional[float] = None) -> BugAnalysis:
        """Analyse a free-text bug description."""

    async def close(self) -> None:
        """Release network resources (no-op by default)."""


# ---------------------------------------------------------------------------
# Mock
# ---------------------------------------------------------------------------
class MockAnalyzer(Analyzer):
    """Safe default when no generative backend is configured."""

    async def analyze_image(self, image: bytes, deadline: Optional[float] = None) -> BugAnalysis:
        return mock_analysis()

    async def analyze_text(self, description: str, deadline: Optional[float] = None) -> BugAnalysis:
        return mock_analysis()


# ---------------------------------------------------------------------------
# Generative backend
# ---------------------------------------------------------------------------
async def _with_deadline(awaitable: Awaitable[T], deadline: Optional[float]) -> T:
    if deadline is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=deadline)
    except asyncio.TimeoutError as e:
        raise AnalysisCancelled(f"analysis cancelled: {deadline:g}s deadline elapsed") from e


class OllamaAnalyzer(Analyzer):
    """
    Analyzer backed by an Ollama-compatible vision/text model.

    Parameters
    ----------
    client : OllamaClient
        Shared HTTP client (read-only config, safe for concurrent use).
    image_preparer : callable
        bytes → bytes downscaler; raises ImagePreparationError on failure.
    """

    def __init__(
        self,
        client: OllamaClient,
        image_preparer: Callable[[bytes], bytes] = prepare_image,
    ) -> None:
        self.client = client
        self.image_preparer = image_preparer

    async def close(self) -> None:
        await self.client.close()

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    async def analyze_image(self, image: bytes, deadline: Optional[float] = None) -> BugAnalysis:
        if not image:
            raise EmptyInput("empty image")
        return await _with_deadline(self._analyze_image(image), deadline)

    async def analyze_text(self, description: str, deadline: Optional[float] = None) -> BugAnalysis:
        desc = (description or "").strip()
        if not desc:
            raise EmptyInput("empty description")
        return await _with_deadline(self._analyze_text(desc), deadline)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    async def _prepare(self, image: bytes) -> bytes:
        try:
            # Pillow work is CPU-bound; keep it off the event loop
            return await asyncio.to_thread(self.image_preparer, image)
        except ImagePreparationError as e:
            logger.warning("Image preparation failed, sending original bytes: %s", e)
            return image

    async def _analyze_image(self, image: bytes) -> BugAnalysis:
        prepared = await self._prepare(image)
        logger.info(
            "Analyzing image: original=%d bytes, prepared=%d bytes",
            len(image), len(prepared),
        )
        encoded = base64.b64encode(prepared).decode("ascii")
        raw = await self.client.generate(build_image_prompt(), images=[encoded])
        return decode_bug_analysis(raw, source=SOURCE_IMAGE)

    async def _analyze_text(self, description: str) -> BugAnalysis:
        logger.info("Analyzing text description (%d chars)", len(description))
        raw = await self.client.generate(build_text_prompt(description))
        return decode_bug_analysis(raw, source=SOURCE_TEXT, description=description)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
def build_analyzer(config: AnalyzerConfig) -> Analyzer:
    """Select the analyzer implementation for the resolved configuration."""
    if config.uses_backend:
        logger.info("Analysis mode: ollama (url=%s model=%s)", config.base_url, config.model)
        client = OllamaClient(
            base_url=config.base_url,
            model=config.model,
            timeout_seconds=config.timeout_seconds,
        )
        return OllamaAnalyzer(client)

    if config.mode != MODE_MOCK:
        logger.warning("Unknown ANALYSIS_MODE %r, using mock", config.mode)
    logger.info("Analysis mode: mock")
    return MockAnalyzer()
