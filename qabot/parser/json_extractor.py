"""
JSON Extractor
==============
Pulls a JSON object out of free-form model output.

Models are told to answer with bare JSON but regularly wrap it in a
```json fence, prepend a sentence, or append commentary. Two steps:

    1. strip_markdown_code_block — keep only the fenced content (if any)
    2. extract_first_json_object — first balanced {...} span, string-aware

An empty return from extract_first_json_object is the "no object found"
signal used by the response decoder.

Only the FIRST top-level object is returned. If a model ever prepends an
unrelated JSON fragment, that fragment wins; no smarter heuristic is applied.
"""

_FENCE = "```"
_LANGUAGE_TAG = "json"


def strip_markdown_code_block(text: str) -> str:
    """
    Remove a ```json ... ``` (or bare ```) wrapper from model output.

    Parameters
    ----------
    text : str
        Raw model output.

    Returns
    -------
    str
        Content between the first opening fence (minus an optional ``json``
        tag) and the next closing fence, trimmed. Everything after the
        opening fence when no closing fence exists. The trimmed input when
        there is no fence at all.
    """
    text = (text or "").strip()
    idx = text.find(_FENCE)
    if idx < 0:
        return text

    after_open = text[idx + len(_FENCE):].strip()
    if after_open.startswith(_LANGUAGE_TAG):
        after_open = after_open[len(_LANGUAGE_TAG):].strip()

    close_idx = after_open.find(_FENCE)
    if close_idx < 0:
        return after_open
    return after_open[:close_idx].strip()


def extract_first_json_object(text: str) -> str:
    """
    Return the first balanced ``{...}`` span in ``text``.

    Braces inside double-quoted strings are ignored (both before and inside
    the object), and a backslash-escaped quote does not close a string.
    Returns "" when no ``{`` exists or the first object never closes.
    """
    text = (text or "").strip()
    if "{" not in text:
        return ""

    start = -1
    depth = 0
    in_string = False
    escape = False
    for i, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return ""
