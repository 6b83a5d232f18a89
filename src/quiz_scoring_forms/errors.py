"""Exception types for Quiz Scoring Forms."""


class QuizScoringFormsError(Exception):
    """Base class for all package errors."""


class QuizNotFoundError(QuizScoringFormsError):
    """Raised when a quiz definition cannot be located."""


class ScoringConfigurationError(QuizScoringFormsError):
    """Raised when scores cannot be resolved against the configured bands."""


class ScoreAlreadySetError(QuizScoringFormsError, RuntimeError):
    """Raised when a field's score is assigned a second time."""


class InvalidQuizDefinitionError(QuizScoringFormsError):
    """Raised when stored quiz data cannot be parsed into a definition."""
