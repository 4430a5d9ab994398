"""AI questionnaire generation with a single repair round-trip."""

import threading
from typing import Any

from medportal.llm.errors import ProviderError, RequestCancelled
from medportal.llm.providers.base import ChatCompletionClient

from .errors import QuestionnaireGenerationError, QuestionnaireParseError
from .models import Question
from .parser import parse_questionnaire
from .prompts import MIN_QUESTIONS, build_generation_messages, build_repair_messages

PARSE_FAILURE_MESSAGE = "Failed to parse AI-generated questionnaire. Please try again."


class QuestionnaireGenerator:
    """Generate validated clinical questionnaires from patient context.

    The generator holds no per-call state, so one instance can serve
    concurrent calls. It never substitutes canned questions for a failed
    generation.
    """

    def __init__(self, client: ChatCompletionClient, min_questions: int = MIN_QUESTIONS):
        self.client = client
        self.min_questions = min_questions

    def generate(self, context: Any, cancel: threading.Event | None = None) -> list[Question]:
        """Generate a questionnaire.

        Args:
            context: JSON-serializable patient context (vitals, uploads, notes)
            cancel: Optional cancellation event passed to the client

        Returns:
            Normalized questions

        Raises:
            QuestionnaireGenerationError: If a provider call fails
            QuestionnaireParseError: If output is still unparseable after
                the one repair attempt
        """
        raw = self._send(build_generation_messages(context, self.min_questions), cancel)
        try:
            return parse_questionnaire(raw)
        except QuestionnaireParseError:
            pass

        repaired = self._send(build_repair_messages(raw, self.min_questions), cancel)
        try:
            return parse_questionnaire(repaired)
        except QuestionnaireParseError as e:
            raise QuestionnaireParseError(f"{PARSE_FAILURE_MESSAGE} ({e})") from e

    def _send(self, messages: list[dict[str, str]], cancel: threading.Event | None) -> str:
        try:
            return self.client.send(messages, cancel=cancel)
        except RequestCancelled:
            raise
        except ProviderError as e:
            raise QuestionnaireGenerationError(
                f"AI questionnaire generation failed. {e}".strip()
            ) from e


def questions_to_dicts(questions: list[Question]) -> list[dict[str, Any]]:
    """Serialize questions for rendering or persistence."""
    return [question.to_dict() for question in questions]
