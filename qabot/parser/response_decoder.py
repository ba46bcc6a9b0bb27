"""
Response Decoder
================
Turns the model's natural-language answer into a BugAnalysis.

Pipeline:
    raw text → strip_markdown_code_block → extract_first_json_object
             → BugAnalysisPayload (tolerant schema) → normalised BugAnalysis

Tolerant Schema:
    - Models sometimes answer "steps": "Click the button" instead of a list.
      FlexStringList accepts a string (promoted to a one-element list), a
      list of strings, or null. An empty string becomes an empty list.
    - Scalar text fields accept null as "".
    - Unknown keys are ignored.

Failure Policy:
    - No JSON object, invalid JSON, or a schema mismatch raises DecodeFailure
      inside this module. decode_bug_analysis() catches it, logs it, and
      returns fallback_from_raw() so the user still gets the model's text.
    - DecodeFailure never escapes decode_bug_analysis().

Normalisation (postcondition: ≥1 test case and a non-empty title):
    - A test case without steps gets a single "See actual result" step
    - Empty bug title → source-specific default title
    - No test cases → one source-specific default test case
"""
import logging
from typing import Annotated, Any, List

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from qabot.analysis.templates import (
    DEFAULT_IMAGE_BUG_TITLE,
    DEFAULT_TEXT_BUG_TITLE,
    default_image_test_case,
    default_text_test_case,
    fallback_from_raw,
)
from qabot.models.bug_analysis import BugAnalysis
from qabot.models.test_case import TestCase
from qabot.parser.json_extractor import extract_first_json_object, strip_markdown_code_block

logger = logging.getLogger(__name__)

SOURCE_IMAGE = "image"
SOURCE_TEXT = "text"

PLACEHOLDER_STEP = "See actual result"

# Max characters of offending JSON echoed into parse warnings
_SNIPPET_LIMIT = 300


class DecodeFailure(Exception):
    """Model output could not be decoded into the payload schema."""


# ---------------------------------------------------------------------------
# Tolerant field types
# ---------------------------------------------------------------------------
def _coerce_string_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list):
        # null items decode as empty strings rather than failing the payload
        return ["" if item is None else item for item in value]
    return value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


FlexStringList = Annotated[List[str], BeforeValidator(_coerce_string_list)]
FlexText = Annotated[str, BeforeValidator(_none_to_empty)]


# ---------------------------------------------------------------------------
# Wire payload (backend field names)
# ---------------------------------------------------------------------------
class TestCasePayload(BaseModel):
    __test__ = False

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: FlexText = ""
    title: FlexText = ""
    preconditions: FlexStringList = []
    steps: FlexStringList = []
    expected_result: FlexText = Field(default="", alias="expectedResult")
    actual_result: FlexText = Field(default="", alias="actualResult")
    priority: FlexText = ""
    severity: FlexText = ""


class BugAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    bug_title: FlexText = Field(default="", alias="bugTitle")
    test_cases: Annotated[List[TestCasePayload], BeforeValidator(_none_to_list)] = Field(
        default=[], alias="testCases"
    )


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------
def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def parse_payload(raw_response: str) -> BugAnalysisPayload:
    """
    Extract and validate the JSON payload embedded in a model response.

    Raises
    ------
    DecodeFailure
        If no JSON object is found or it does not match the schema.
    """
    body = strip_markdown_code_block(raw_response)
    json_text = extract_first_json_object(body)
    if not json_text:
        raise DecodeFailure("no JSON object detected in response")

    try:
        return BugAnalysisPayload.model_validate_json(json_text)
    except ValidationError as e:
        raise DecodeFailure(
            f"JSON parse error: {e.error_count()} error(s), "
            f"first: {e.errors()[0]['msg']}, snippet={_truncate(json_text, _SNIPPET_LIMIT)!r}"
        ) from e


def normalize_payload(
    payload: BugAnalysisPayload,
    source: str = SOURCE_IMAGE,
    description: str = "",
) -> BugAnalysis:
    """Convert a decoded payload into a BugAnalysis that is always displayable."""
    test_cases: List[TestCase] = []
    for tc in payload.test_cases:
        steps = list(tc.steps) or [PLACEHOLDER_STEP]
        test_cases.append(TestCase(
            id=tc.id,
            title=tc.title,
            preconditions=list(tc.preconditions),
            steps=steps,
            expected=tc.expected_result,
            actual=tc.actual_result,
            priority=tc.priority,
            severity=tc.severity,
        ))

    bug_title = payload.bug_title
    if not bug_title.strip():
        bug_title = DEFAULT_TEXT_BUG_TITLE if source == SOURCE_TEXT else DEFAULT_IMAGE_BUG_TITLE

    if not test_cases:
        if source == SOURCE_TEXT:
            test_cases = [default_text_test_case(description)]
        else:
            test_cases = [default_image_test_case()]

    return BugAnalysis(bug_title=bug_title, test_cases=test_cases)


def decode_bug_analysis(
    raw_response: str,
    source: str = SOURCE_IMAGE,
    description: str = "",
) -> BugAnalysis:
    """
    Decode a raw model response into a BugAnalysis.

    Parameters
    ----------
    raw_response : str
        The backend's natural-language ``response`` field.
    source : str
        SOURCE_IMAGE or SOURCE_TEXT; selects normalisation defaults.
    description : str
        Original user description (text source only); used as the actual
        result of the default test case.

    Returns
    -------
    BugAnalysis
        Parsed result, or an unstructured review result when decoding fails.
    """
    try:
        payload = parse_payload(raw_response)
    except DecodeFailure as e:
        logger.warning("%s response not decodable, using raw fallback: %s", source, e)
        return fallback_from_raw(raw_response)

    logger.info(
        "Parsed %s response: bugTitle=%r, testCases=%d",
        source, payload.bug_title, len(payload.test_cases),
    )
    return normalize_payload(payload, source, description)
