"""Parse sanitized model output into validated questions."""

import json
import math
import re
from typing import Any

from .errors import QuestionnaireParseError
from .models import (
    CHOICE_TYPES,
    DEFAULT_MAX,
    DEFAULT_MIN,
    DEFAULT_OPTIONS,
    NUMERIC_TYPES,
    QUESTION_TYPES,
    Question,
)
from .sanitize import sanitize

ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
LEADING_INT_PATTERN = re.compile(r"\s*[+-]?\d+")
TRUE_STRINGS = ("true", "yes", "1")


def parse_questionnaire(raw: str | None) -> list[Question]:
    """Sanitize, parse and normalize a model response.

    Args:
        raw: Raw response text

    Returns:
        One normalized Question per array element, in order

    Raises:
        QuestionnaireParseError: If no JSON array can be parsed
    """
    text = sanitize(raw)
    try:
        data = json.loads(text)
    except ValueError:
        match = ARRAY_PATTERN.search(text)
        if not match:
            raise QuestionnaireParseError("No JSON array found")
        try:
            data = json.loads(sanitize(match.group(0)))
        except ValueError as e:
            raise QuestionnaireParseError(f"Invalid JSON array: {getattr(e, 'msg', e)}") from e

    if not isinstance(data, list):
        raise QuestionnaireParseError(
            f"Invalid questionnaire format: expected a JSON array, got {type(data).__name__}"
        )

    return [normalize_question(item, index) for index, item in enumerate(data)]


def normalize_question(item: Any, index: int) -> Question:
    """Coerce one parsed element into a fully-typed Question.

    Unknown types become "text"; missing ids become the 1-based position;
    options and min/max are filled in or dropped to match the type.
    """
    if not isinstance(item, dict):
        item = {}

    raw_type = item.get("type")
    qtype = raw_type if isinstance(raw_type, str) and raw_type in QUESTION_TYPES else "text"

    question = Question(
        id=_coerce_id(item.get("id"), index),
        text=str(item.get("text") or f"Question {index + 1}"),
        type=qtype,
        required=_coerce_bool(item.get("required")),
    )

    if qtype in CHOICE_TYPES:
        options = item.get("options")
        if isinstance(options, list) and options:
            question.options = [str(option) for option in options]
        else:
            question.options = list(DEFAULT_OPTIONS)

    if qtype in NUMERIC_TYPES:
        question.min = item["min"] if _is_finite_number(item.get("min")) else DEFAULT_MIN
        question.max = item["max"] if _is_finite_number(item.get("max")) else DEFAULT_MAX

    return question


def _is_finite_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    # Integers beyond float range count as non-finite.
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _coerce_id(value: Any, index: int) -> int | float:
    if _is_finite_number(value):
        return value
    if isinstance(value, str):
        match = LEADING_INT_PATTERN.match(value)
        try:
            number = int(match.group()) if match else 0
        except ValueError:
            number = 0
        if number:
            return number
    return index + 1


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)
