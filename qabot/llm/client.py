"""
LLM Client
==========
Asynchronous HTTP client for an Ollama-compatible generation backend.

Wire Protocol:
    GET  <base>/api/tags       — reachability probe, expects HTTP 200
    POST <base>/api/generate   — {model, prompt, images?: [base64], stream: false}
                                 → {response: str, done: bool, error?: str}

Error Mapping (see analysis.errors):
    - Connection refused / DNS / timeout before response → TransportError
    - Non-2xx status                                    → BackendHTTPError
    - 2xx with populated "error", or unreadable body    → BackendReportedError

Timeouts:
    - Analysis calls: generous ceiling (default 180s); vision models are
      slow on first invocation while weights load.
    - Startup probe: short (default 5s); advisory only.

No retries: one failed attempt is reported to the caller as-is.
"""
import logging
from typing import List, Optional

import httpx

from qabot.analysis.errors import BackendHTTPError, BackendReportedError, TransportError
from qabot.core.constants import ANALYSIS_TIMEOUT, PROBE_TIMEOUT, RESPONSE_PREVIEW_LIMIT

logger = logging.getLogger(__name__)


def _preview(text: str, limit: int = RESPONSE_PREVIEW_LIMIT) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


# ---------------------------------------------------------------------------
# Reachability Probe
# ---------------------------------------------------------------------------
async def check_backend_reachable(
    base_url: str,
    timeout_seconds: float = PROBE_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """
    Check that the backend answers ``GET /api/tags`` with HTTP 200.

    Raises
    ------
    TransportError
        If the backend cannot be reached within the timeout.
    BackendHTTPError
        If it answers with any status other than 200.
    """
    url = base_url.rstrip("/") + "/api/tags"
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds), transport=transport) as http:
        try:
            resp = await http.get(url)
        except httpx.RequestError as e:
            raise TransportError(
                f"backend not reachable at {base_url}: {e!r} "
                f"(is Ollama running? start the Ollama app or run: ollama serve)",
                cause=e,
            ) from e
    if resp.status_code != 200:
        raise BackendHTTPError(resp.status_code, f"probe of {base_url} failed")


# ---------------------------------------------------------------------------
# Generation Client
# ---------------------------------------------------------------------------
class OllamaClient:
    """
    Async HTTP client for ``/api/generate``.

    Holds read-only configuration only, so one instance can serve many
    in-flight requests.

    Usage:
        client = OllamaClient("http://127.0.0.1:11434", "llava")
        text = await client.generate(prompt, images=[b64])
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout_seconds: float = ANALYSIS_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def generate(self, prompt: str, images: Optional[List[str]] = None) -> str:
        """
        Run one non-streaming generation.

        Parameters
        ----------
        prompt : str
            Complete prompt text.
        images : list of str, optional
            Base64-encoded images for vision models.

        Returns
        -------
        str
            The backend's ``response`` text (may be empty).
        """
        http = await self._get_http()
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        if images:
            payload["images"] = list(images)

        url = f"{self.base_url}/api/generate"
        try:
            resp = await http.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"backend timed out after {self.timeout_seconds:.0f}s at {self.base_url}",
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"call backend at {self.base_url}: {e!r}", cause=e) from e

        if not resp.is_success:
            raise BackendHTTPError(resp.status_code, resp.text.strip())

        try:
            data = resp.json()
        except ValueError as e:
            raise BackendReportedError(
                f"decode backend response: {e} (raw={_preview(resp.text)!r})", cause=e
            ) from e
        if not isinstance(data, dict):
            raise BackendReportedError(f"unexpected backend payload: {_preview(resp.text)!r}")

        if data.get("error"):
            raise BackendReportedError(f"backend error: {data['error']}")

        response = data.get("response") or ""
        if not isinstance(response, str):
            raise BackendReportedError("backend 'response' field is not a string")

        logger.info(
            "Backend response: model=%s len=%d done=%s preview=%r",
            self.model, len(response), data.get("done"), _preview(response),
        )
        return response
