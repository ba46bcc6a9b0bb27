"""
Analysis Templates
==================
Deterministic BugAnalysis constructors. None of these touch the network.

    mock_analysis                   — fixed result returned by MockAnalyzer
    fallback_template               — generic template shown when the backend fails on an image
    fallback_from_user_description  — template built around the user's own text
    fallback_from_raw               — wraps unstructured model output for human review
    default_image_test_case         — substituted when a decoded image result has no cases
    default_text_test_case          — substituted when a decoded text result has no cases
"""
from qabot.models.bug_analysis import BugAnalysis
from qabot.models.test_case import TestCase

# Title length cap for titles derived from user text (ellipsis included)
MAX_DERIVED_TITLE = 120
_ELLIPSIS = "..."

# A sentence break must sit past this offset to be used as the title clause
_MIN_CLAUSE_OFFSET = 10

DEFAULT_IMAGE_BUG_TITLE = "Bug found based on screenshot analysis"
DEFAULT_TEXT_BUG_TITLE = "Bug found based on textual description"
UNSTRUCTURED_BUG_TITLE = "Bug description from model (unstructured)"
EMPTY_MODEL_RESPONSE = "Model returned an empty response."


def mock_analysis() -> BugAnalysis:
    return BugAnalysis(
        bug_title="Submit button is visually truncated on the login screen",
        test_cases=[
            TestCase(
                id="TC-001",
                title="Verify that the Submit button is fully visible on the login screen",
                preconditions=["User is on the login screen"],
                steps=[
                    "Open the login screen",
                    "Wait until all fields are fully loaded",
                ],
                expected="The Submit button is fully visible and clickable",
                actual="The Submit button is partially cut off and not fully visible",
                priority="High",
                severity="Major",
            ),
        ],
    )


def fallback_template() -> BugAnalysis:
    """Generic template shown when the backend is unavailable."""
    return BugAnalysis(
        bug_title="Sample bug / test case template",
        test_cases=[
            TestCase(
                id="TC-001",
                title="Verify the reported issue on the screenshot / description",
                preconditions=["Application is open", "User has reproduced the bug"],
                steps=[
                    "Open the affected screen",
                    "Perform the steps that trigger the bug",
                    "Observe the result",
                ],
                expected="Expected correct behaviour according to requirements",
                actual="Actual behaviour (describe what you see)",
                priority="Medium",
                severity="Major",
            ),
        ],
    )


def _truncate_title(title: str) -> str:
    if len(title) > MAX_DERIVED_TITLE:
        return title[:MAX_DERIVED_TITLE - len(_ELLIPSIS)] + _ELLIPSIS
    return title


def derive_title(description: str) -> str:
    """
    Derive a bug title from free text.

    The leading clause (up to the first "." or newline) is used when that
    break sits past offset 10; otherwise the whole text. Either way the
    result is capped at 120 characters including a trailing "...".
    """
    desc = description.strip()
    breaks = [i for i in (desc.find("."), desc.find("\n")) if i >= 0]
    if breaks and min(breaks) > _MIN_CLAUSE_OFFSET:
        return _truncate_title(desc[:min(breaks)].strip())
    return _truncate_title(desc)


def fallback_from_user_description(description: str) -> BugAnalysis:
    """
    Template built from the user's description when AI analysis is unavailable.

    The original text is kept verbatim (trimmed) as the actual result so the
    user sees their own report inside the structure.
    """
    desc = (description or "").strip()
    if not desc:
        return fallback_template()

    return BugAnalysis(
        bug_title=derive_title(desc),
        test_cases=[
            TestCase(
                id="TC-001",
                title="Verify the reported issue",
                preconditions=["Application is open", "User can reproduce the scenario"],
                steps=[
                    "Reproduce the steps from the description",
                    "Observe the actual behaviour",
                    "Compare with expected behaviour",
                ],
                expected="Behaviour matches requirements and user expectations",
                actual=desc,
                priority="Medium",
                severity="Major",
            ),
        ],
    )


def fallback_from_raw(raw: str) -> BugAnalysis:
    """Wrap model output that broke the JSON contract into a review case."""
    raw = (raw or "").strip()
    if not raw:
        raw = EMPTY_MODEL_RESPONSE

    return BugAnalysis(
        bug_title=UNSTRUCTURED_BUG_TITLE,
        test_cases=[
            TestCase(
                id="TC-RAW-001",
                title="Review bug description generated by the model",
                steps=[
                    "Review the following description produced by the AI model",
                    "Convert it into formal test cases if needed",
                ],
                expected="The description below accurately reflects the reported issue",
                actual=raw,
                priority="Medium",
                severity="Major",
            ),
        ],
    )


def default_image_test_case() -> TestCase:
    return TestCase(
        id="TC-001",
        title="Verify visual appearance of the UI element on the screenshot",
        steps=[
            "Open the screen shown on the screenshot",
            "Check that key UI elements are fully visible and readable",
        ],
        expected="UI elements are fully visible, readable and not overlapping or truncated",
        actual="There is a visual problem on the screen according to the screenshot",
        priority="Medium",
        severity="Major",
    )


def default_text_test_case(description: str) -> TestCase:
    return TestCase(
        id="TC-001",
        title="Verify behaviour described in the bug report",
        steps=[
            "Follow the steps from the tester description",
            "Observe the behaviour that should be fixed",
        ],
        expected="The application behaves according to the functional requirements",
        actual=description.strip(),
        priority="Medium",
        severity="Major",
    )
