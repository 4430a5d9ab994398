"""Chat request data structures and attempt results."""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal, TypedDict

ROLES = ("system", "user", "assistant")


class ChatMessage(TypedDict):
    """One conversation turn."""

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class GenerationRequest:
    """Request data for one chat-completion call."""

    messages: list[ChatMessage]
    max_retries: int = 3
    timeout_s: float = 30.0
    request_id: str = ""

    def __post_init__(self):
        """Ensure request_id is set."""
        if not self.request_id:
            import uuid
            self.request_id = str(uuid.uuid4())


@dataclass
class AttemptResult:
    """Outcome of one optional transport path: either text or the error it hit."""

    path: str
    text: str | None = None
    error: Exception | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


def first_success(attempts: Iterable[Callable[[], AttemptResult | None]]) -> AttemptResult | None:
    """Run attempts in order and return the first successful one.

    Each callable returns an AttemptResult, or None when its path is not
    configured. Attempts after the first success are never run.

    Returns:
        The first ok AttemptResult, otherwise the last failed one, or None
        if no path was configured at all.
    """
    last = None
    for attempt in attempts:
        result = attempt()
        if result is None:
            continue
        if result.ok:
            return result
        last = result
    return last


def validate_messages(messages: list) -> None:
    """Raise ValueError if messages are not a list of role/content dicts."""
    if not isinstance(messages, list) or not messages:
        raise ValueError("messages must be a non-empty list")
    for i, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValueError(f"Message {i} is not a mapping")
        if message.get("role") not in ROLES:
            raise ValueError(f"Message {i} has invalid role: {message.get('role')!r}")
        if not isinstance(message.get("content"), str):
            raise ValueError(f"Message {i} content must be a string")
