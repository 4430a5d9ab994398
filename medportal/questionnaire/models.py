"""Questionnaire data structures."""

from dataclasses import dataclass
from typing import Any

QUESTION_TYPES = ("radio", "checkbox", "range", "text", "scale")
CHOICE_TYPES = ("radio", "checkbox")
NUMERIC_TYPES = ("range", "scale")

DEFAULT_OPTIONS = ("Yes", "No")
DEFAULT_MIN = 1
DEFAULT_MAX = 10


@dataclass
class Question:
    """One validated questionnaire item.

    options is set only for radio/checkbox; min and max only for range/scale.
    """

    id: int | float
    text: str
    type: str = "text"
    required: bool = False
    options: list[str] | None = None
    min: int | float | None = None
    max: int | float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting fields the question type does not carry."""
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "type": self.type,
            "required": self.required,
        }
        if self.type in CHOICE_TYPES:
            data["options"] = list(self.options or DEFAULT_OPTIONS)
        if self.type in NUMERIC_TYPES:
            data["min"] = self.min if self.min is not None else DEFAULT_MIN
            data["max"] = self.max if self.max is not None else DEFAULT_MAX
        return data
