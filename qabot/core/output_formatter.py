"""
Output Formatter
================
THE SINGLE SOURCE OF TRUTH for all user-facing analysis text.

STRICT DETERMINISM CONTRACT:
  - This module NEVER calls a backend.
  - This module NEVER reads environment variables.
  - This module NEVER mutates the BugAnalysis it is given.
  - Given the same inputs, it ALWAYS returns the exact same output string.

Layout produced by format_bug_analysis():

    Automatically generated test cases for the detected bug

    Bug: <bug title>

    ────────────────────
    Test case <id> #<n>
    <title>

    Preconditions:
    - <precondition>

    Steps:
    1) <step>

    Expected result:
    <expected>

    Actual result:
    <actual>

    Priority / Severity:
    - Priority: <priority>
    - Severity: <severity>

Every section is omitted when its field(s) are empty. Deduplication always
runs first, even if the caller already deduplicated.
"""
from typing import List, Optional

from qabot.core.constants import MAX_MESSAGE_LENGTH
from qabot.models.bug_analysis import BugAnalysis
from qabot.models.test_case import TestCase

HEADER = "Automatically generated test cases for the detected bug"
SEPARATOR = "─" * 20
FAILED_TO_GENERATE = "Failed to generate bug description."


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------
def deduplicate_test_cases(test_cases: List[TestCase]) -> List[TestCase]:
    """
    Drop test cases whose trimmed (title, expected, actual) was already seen.

    Stable: first occurrence wins and order is preserved. Cases where all
    three fields are empty carry no identifying signal and are always kept.
    Idempotent: dedup(dedup(x)) == dedup(x).
    """
    seen: set[tuple[str, str, str]] = set()
    out: List[TestCase] = []
    for tc in test_cases:
        if tc.is_blank_key():
            out.append(tc)
            continue
        key = tc.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(tc)
    return out


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------
def format_test_case(index: int, tc: TestCase) -> str:
    """Render one test case block; ``index`` is the 1-based display number."""
    lines: List[str] = [SEPARATOR, f"Test case {tc.id} #{index}"]
    if tc.title:
        lines.append(tc.title)

    if tc.preconditions:
        lines.append("")
        lines.append("Preconditions:")
        lines.extend(f"- {p}" for p in tc.preconditions)

    if tc.steps:
        lines.append("")
        lines.append("Steps:")
        lines.extend(f"{i}) {s}" for i, s in enumerate(tc.steps, start=1))

    if tc.expected:
        lines.append("")
        lines.append("Expected result:")
        lines.append(tc.expected)

    if tc.actual:
        lines.append("")
        lines.append("Actual result:")
        lines.append(tc.actual)

    if tc.priority or tc.severity:
        lines.append("")
        lines.append("Priority / Severity:")
        if tc.priority:
            lines.append(f"- Priority: {tc.priority}")
        if tc.severity:
            lines.append(f"- Severity: {tc.severity}")

    return "\n".join(lines) + "\n\n"


def format_bug_analysis(analysis: Optional[BugAnalysis]) -> str:
    """
    Render a BugAnalysis into a single human-readable text block.

    Parameters
    ----------
    analysis : BugAnalysis or None
        Result to render. None yields a fixed failure sentence.

    Returns
    -------
    str
        Display-ready text (see module docstring for the layout).
    """
    if analysis is None:
        return FAILED_TO_GENERATE

    parts = [f"{HEADER}\n\n", f"Bug: {analysis.bug_title}\n\n"]
    for idx, tc in enumerate(deduplicate_test_cases(analysis.test_cases), start=1):
        parts.append(format_test_case(idx, tc))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------
def split_message(text: str, max_len: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split text into chunks no longer than ``max_len`` characters.

    A chunk ends at the last newline inside the window when that newline
    lies past half the window; otherwise the window is cut hard. Joining
    the chunks gives back the original text.
    """
    if max_len < 1:
        raise ValueError(f"max_len must be >= 1, got {max_len}")

    chunks: List[str] = []
    while text:
        chunk = text
        if len(chunk) > max_len:
            chunk = text[:max_len]
            cut = chunk.rfind("\n")
            if cut > max_len // 2:
                chunk = text[:cut + 1]
        chunks.append(chunk)
        text = text[len(chunk):]
    return chunks
