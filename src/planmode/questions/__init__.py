"""Clarifying-question generation and answer bookkeeping."""

from .manager import QuestionManager, QuestionValidationError
from .schema import (
    QUESTION_ICONS,
    Question,
    QuestionAnswer,
    QuestionConfig,
    QuestionContext,
    QuestionOption,
    QuestionState,
    QuestionType,
)

__all__ = [
    "QUESTION_ICONS",
    "Question",
    "QuestionAnswer",
    "QuestionConfig",
    "QuestionContext",
    "QuestionManager",
    "QuestionOption",
    "QuestionState",
    "QuestionType",
    "QuestionValidationError",
]
