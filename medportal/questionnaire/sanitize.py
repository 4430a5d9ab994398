"""
Sanitize - deterministic cleanup of model output before JSON parsing.

Every step is a pure function that never raises, so parsing is the only
place a malformed response can fail.
"""

import re

FENCE_PATTERN = re.compile(r"```(?:json)?([\s\S]*?)```", re.IGNORECASE)
HEADING_PATTERN = re.compile(r"^#+\s.*$", re.MULTILINE)
TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")

TYPOGRAPHIC_QUOTES = str.maketrans({
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
})


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code fences, keeping their content.

    Example: ```json\\n[1]\\n``` -> \\n[1]\\n
    """
    return FENCE_PATTERN.sub(lambda m: m.group(1), text)


def strip_markdown_headings(text: str) -> str:
    """
    Remove markdown heading lines.

    Example: "# Questions\\n[1]" -> "\\n[1]"
    """
    return HEADING_PATTERN.sub("", text)


def slice_to_bracket_span(text: str) -> str:
    """
    Keep the text from the first '[' to the last ']' when both exist.

    Example: 'Here you go: [1, 2] Thanks' -> '[1, 2]'
    """
    first = text.find("[")
    last = text.rfind("]")
    if first != -1 and last > first:
        return text[first:last + 1]
    return text


def remove_trailing_commas(text: str) -> str:
    """
    Remove trailing commas before closing braces/brackets.

    Example: [{"id": 1,},] -> [{"id": 1}]
    """
    return TRAILING_COMMA_PATTERN.sub(r"\1", text)


def normalize_quotes(text: str) -> str:
    """
    Replace typographic quotes with plain ASCII quotes.

    Example: “text” -> "text"
    """
    return text.translate(TYPOGRAPHIC_QUOTES)


def sanitize(text: str | None) -> str:
    """Run every cleanup step in order and trim whitespace."""
    if not text:
        return ""
    text = str(text)
    text = strip_code_fences(text)
    text = strip_markdown_headings(text)
    text = slice_to_bracket_span(text)
    text = remove_trailing_commas(text)
    text = normalize_quotes(text)
    return text.strip()
