"""AI questionnaire generation: prompt, sanitize, parse, normalize, repair."""

from .errors import QuestionnaireError, QuestionnaireGenerationError, QuestionnaireParseError
from .generator import QuestionnaireGenerator, questions_to_dicts
from .models import QUESTION_TYPES, Question
from .parser import normalize_question, parse_questionnaire
from .sanitize import sanitize

__all__ = [
    "QuestionnaireGenerator",
    "Question",
    "QUESTION_TYPES",
    "parse_questionnaire",
    "normalize_question",
    "questions_to_dicts",
    "sanitize",
    "QuestionnaireError",
    "QuestionnaireParseError",
    "QuestionnaireGenerationError",
]
