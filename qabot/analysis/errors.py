"""
Analysis Errors
===============
Failure taxonomy surfaced by the analyze operations.

    AnalysisError
    ├── EmptyInput              — no image bytes / blank description, no network attempted
    ├── AnalysisCancelled       — caller deadline elapsed before the backend answered
    └── BackendError            — backend could not produce a response
        ├── TransportError      — connection refused, DNS, timeout before response
        ├── BackendHTTPError    — backend answered with a non-2xx status
        └── BackendReportedError — 2xx with an explicit error field (or unreadable body)

Parse failures of the model's text are NOT part of this taxonomy: they are
absorbed by the response decoder into an unstructured fallback result.

ImagePreparationError belongs to the image preprocessing collaborator and is
always recovered by the analyzer (original bytes are sent instead).
"""
from typing import Optional


class AnalysisError(Exception):
    """Base class for failures reported by an Analyzer."""


class EmptyInput(AnalysisError):
    pass


class AnalysisCancelled(AnalysisError):
    pass


class BackendError(AnalysisError):
    """Backend failure carrying the underlying cause (if any)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransportError(BackendError):
    pass


class BackendHTTPError(BackendError):

    def __init__(self, status_code: int, body: str = "") -> None:
        message = f"backend http {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BackendReportedError(BackendError):
    pass


class ImagePreparationError(Exception):
    """Raised when an image cannot be decoded, resized or re-encoded."""
