"""
Bug Analysis Model
==================
Top-level structured result of analysing one bug report.

Fields:
    bug_title   — short summary of the defect
    test_cases  — ordered List[TestCase]; order is display order and
                  deduplication keeps the first occurrence

Constructed fresh per request (mock, backend response or local fallback)
and never persisted beyond the response cycle.
"""
from typing import List
from pydantic import BaseModel
from .test_case import TestCase


class BugAnalysis(BaseModel):
    bug_title: str = ""
    test_cases: List[TestCase] = []
