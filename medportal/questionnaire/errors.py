"""Questionnaire generation errors."""


class QuestionnaireError(Exception):
    """Base class for questionnaire failures."""


class QuestionnaireParseError(QuestionnaireError, ValueError):
    """Model output could not be turned into a valid question list."""


class QuestionnaireGenerationError(QuestionnaireError):
    """The provider failed before any output could be parsed."""
