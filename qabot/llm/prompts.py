"""
LLM Prompts
===========
Centralised store for the analysis prompts sent to the generative backend.

Prompt Design Rules:
    - Output language is ALWAYS English, whatever language the user wrote in
    - Strict JSON only — no markdown fences, no explanations
    - 2–6 test cases when several distinguishable issues are plausible
    - Concrete-vs-vague examples steer the model away from placeholder phrasing
    - Image prompt: name the visible UI elements first, then write test cases

Schema (shared by both prompts, mirrored by parser.response_decoder):
    bugTitle, testCases[{id, title, preconditions[], steps[],
    expectedResult, actualResult, priority, severity}]

Prompts are built deterministically; the user's description is inserted
verbatim (only surrounding whitespace is trimmed).
"""

# ---------------------------------------------------------------------------
# Shared blocks
# ---------------------------------------------------------------------------
RESPONSE_SCHEMA = (
    "{\n"
    '  "bugTitle": "string (short, specific: e.g. \'Save button truncated on Settings screen\')",\n'
    '  "testCases": [\n'
    "    {\n"
    '      "id": "TC-001",\n'
    '      "title": "string (specific: what to verify)",\n'
    '      "preconditions": ["string (e.g. User is on Settings screen)"],\n'
    '      "steps": ["string (concrete action 1)", "string (concrete action 2)"],\n'
    '      "expectedResult": "string (what should happen, specific)",\n'
    '      "actualResult": "string (what is wrong, specific)",\n'
    '      "priority": "High | Medium | Low",\n'
    '      "severity": "Critical | Major | Minor | Trivial"\n'
    "    }\n"
    "  ]\n"
    "}"
)

SPECIFICITY_EXAMPLES = (
    "BE SPECIFIC — bad vs good:\n"
    '- BAD steps: "Open the affected screen", "Perform the steps", "Observe the result".\n'
    "- GOOD steps: \"Open the Login screen\", \"Click the 'Submit' button\", "
    "\"Check that the 'Save' button in the footer is visible\".\n"
    '- BAD expected: "Expected correct behaviour".\n'
    '- GOOD expected: "The Save button is visible and clicking it saves the form".\n'
    '- BAD actual: "Actual behaviour (describe what you see)".\n'
    '- GOOD actual: "The Save button is cut off on the right and cannot be clicked".\n'
)

PRIORITY_RULES = (
    "- Choose priority by business impact: High = must fix now, "
    "Medium = important but not blocking, Low = nice to have.\n"
    "- Choose severity by impact on functionality and users: "
    "Critical, Major, Minor, Trivial.\n"
)


# ---------------------------------------------------------------------------
# Image prompt
# ---------------------------------------------------------------------------
IMAGE_PROMPT = (
    "You are a senior QA engineer. Analyze this UI screenshot and write CONCRETE, "
    "SPECIFIC test cases.\n"
    "\n"
    "WHAT TO DO:\n"
    "1) Look at the screenshot and name what you see: app/screen name, buttons, "
    "labels, fields, messages, layout.\n"
    "2) For each clear bug (broken button, wrong text, overlap, missing element, "
    "error message, wrong layout): write one test case with SPECIFIC steps and "
    "SPECIFIC expected vs actual.\n"
    "\n"
    + SPECIFICITY_EXAMPLES
    + "\n"
    "Return STRICT JSON ONLY in ENGLISH (no markdown, no other text):\n"
    + RESPONSE_SCHEMA
    + "\n"
    "Rules:\n"
    "- 2–6 test cases. Each step and expected/actual must describe what is VISIBLE "
    "on the screenshot (names of buttons, labels, error text).\n"
    "- All text in English only.\n"
    + PRIORITY_RULES
    + "- Ignore pure accessibility (contrast, ARIA) unless it breaks normal use.\n"
)


# ---------------------------------------------------------------------------
# Text prompt
# ---------------------------------------------------------------------------
TEXT_PROMPT_HEADER = (
    "You are a senior QA engineer specializing in functional testing and UI/UX "
    "(NOT accessibility).\n"
    "You will receive a free-text bug description from a tester (it may be in "
    "English or another language).\n"
    "First, understand and mentally translate the description into English.\n"
    "Then identify ALL clear functional, visual, layout and content issues described.\n"
    "Ignore accessibility-only concerns (contrast, focus order, screen reader labels, "
    "ARIA roles, etc.) unless they clearly break functional behaviour for all users.\n"
    "\n"
    + SPECIFICITY_EXAMPLES
    + "\n"
    "Return STRICT JSON ONLY in ENGLISH (no markdown, no explanations, no extra text) "
    "with this schema:\n"
    + RESPONSE_SCHEMA
    + "\n"
    "Rules:\n"
    "- Provide multiple test cases (2-6) covering ALL clearly described functional / "
    "UI / layout / content issues.\n"
    "- All text MUST be in English only.\n"
    + PRIORITY_RULES
    + "\n"
    "Bug description from tester:\n"
)


def build_image_prompt() -> str:
    """Prompt for screenshot analysis (the image travels separately)."""
    return IMAGE_PROMPT


def build_text_prompt(description: str) -> str:
    """
    Prompt for free-text analysis.

    Parameters
    ----------
    description : str
        Tester's bug description, any language. Inserted verbatim;
        callers trim it before building the prompt.

    Returns
    -------
    str
        Complete prompt string.
    """
    return TEXT_PROMPT_HEADER + description + "\n"
