"""
Test Case Model
===============
Pydantic model for one structured verification scenario.

Fields:
    id              — caller- or model-supplied identifier (not unique per batch)
    title           — what the test case verifies
    preconditions   — ordered list of setup conditions
    steps           — ordered list of reproduction steps
    expected        — expected result text
    actual          — actual (observed) result text
    priority        — business priority (conventionally High / Medium / Low)
    severity        — impact level (conventionally Critical / Major / Minor / Trivial)

All fields are plain text. A well-formed case has non-empty title,
expected and actual, but nothing here enforces it.
"""
from typing import List, Tuple
from pydantic import BaseModel


class TestCase(BaseModel):
    __test__ = False  # not a pytest collection target

    id: str = ""
    title: str = ""
    preconditions: List[str] = []
    steps: List[str] = []
    expected: str = ""
    actual: str = ""
    priority: str = ""
    severity: str = ""

    def dedup_key(self) -> Tuple[str, str, str]:
        """Trimmed (title, expected, actual) triple used for deduplication."""
        return (self.title.strip(), self.expected.strip(), self.actual.strip())

    def is_blank_key(self) -> bool:
        return self.dedup_key() == ("", "", "")
