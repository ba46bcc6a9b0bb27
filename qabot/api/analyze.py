"""
POST /api/analyze/text, POST /api/analyze/image
===============================================
Structured analysis endpoints.

Both return the BugAnalysis, its formatted text, and whether a fallback
template was used. Backend failures do not turn into HTTP errors: the
response carries a clearly flagged fallback and the error text, so the
client can still show something useful. Empty input is a client error (422).
"""
import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from qabot.analysis.analyzer import Analyzer
from qabot.analysis.errors import AnalysisError, EmptyInput
from qabot.analysis.templates import fallback_from_user_description, fallback_template
from qabot.api.dependencies import get_analyzer
from qabot.core.output_formatter import deduplicate_test_cases, format_bug_analysis
from qabot.models.bug_analysis import BugAnalysis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Analysis"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class TextAnalysisRequest(BaseModel):
    description: str


class ImageAnalysisRequest(BaseModel):
    image_base64: str


class AnalysisResponse(BaseModel):
    bug_analysis: BugAnalysis
    formatted: str
    fallback_used: bool = False
    error: str = ""


def _build_response(analysis: BugAnalysis, fallback_used: bool = False, error: str = "") -> AnalysisResponse:
    deduped = BugAnalysis(
        bug_title=analysis.bug_title,
        test_cases=deduplicate_test_cases(analysis.test_cases),
    )
    return AnalysisResponse(
        bug_analysis=deduped,
        formatted=format_bug_analysis(deduped),
        fallback_used=fallback_used,
        error=error,
    )


def decode_image(image_base64: str) -> bytes:
    """Decode a base64 payload (a data: URL prefix is tolerated)."""
    payload = image_base64.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"image_base64 is not valid base64: {e}")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("/analyze/text", response_model=AnalysisResponse)
async def analyze_text(request: TextAnalysisRequest, analyzer: Analyzer = Depends(get_analyzer)):
    """Generate test cases from a free-text bug description."""
    try:
        result = await analyzer.analyze_text(request.description)
    except EmptyInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AnalysisError as e:
        logger.warning("[API] Text analysis failed, returning description template: %s", e)
        return _build_response(
            fallback_from_user_description(request.description),
            fallback_used=True,
            error=str(e),
        )
    return _build_response(result)


@router.post("/analyze/image", response_model=AnalysisResponse)
async def analyze_image(request: ImageAnalysisRequest, analyzer: Analyzer = Depends(get_analyzer)):
    """Generate test cases from a screenshot."""
    image = decode_image(request.image_base64)
    try:
        result = await analyzer.analyze_image(image)
    except EmptyInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AnalysisError as e:
        logger.warning("[API] Image analysis failed, returning generic template: %s", e)
        return _build_response(fallback_template(), fallback_used=True, error=str(e))
    return _build_response(result)
