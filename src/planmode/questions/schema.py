"""Question, option, and answer records used while clarifying a request."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from ..memory.schema import RecordModel, utc_now


class QuestionType(str, Enum):
    """Intent of a clarifying question."""

    AMBIGUITY = "ambiguity"
    DECISION = "decision"
    CONFIRMATION = "confirmation"


QUESTION_ICONS: Dict[QuestionType, str] = {
    QuestionType.AMBIGUITY: "❓",
    QuestionType.DECISION: "🔧",
    QuestionType.CONFIRMATION: "✋",
}


class QuestionOption(RecordModel):
    """Selectable answer for a question."""

    id: str
    text: str
    description: Optional[str] = None
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    followup_questions: List[str] = Field(default_factory=list)


class Question(RecordModel):
    """A materialised question presented to the user."""

    id: str
    type: QuestionType
    template: str
    options: List[QuestionOption] = Field(default_factory=list)
    followup_questions: List[str] = Field(default_factory=list)
    allow_skip: bool = False
    allow_multiple: bool = False


class QuestionAnswer(RecordModel):
    """User response to a question; an empty selection records a skip."""

    question_id: str
    selected_option_ids: List[str] = Field(default_factory=list)
    custom_text: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)


class QuestionState(RecordModel):
    """Snapshot of the question queue and recorded answers."""

    question_queue: List[Question] = Field(default_factory=list)
    current_question: Optional[Question] = None
    answered_questions: Dict[str, QuestionAnswer] = Field(default_factory=dict)
    completed: bool = False


@dataclass(slots=True)
class QuestionContext:
    """Inputs used to generate questions for a planning session."""

    user_request: str
    project_files: List[str] = field(default_factory=list)
    existing_code: Optional[str] = None
    previous_answers: Dict[str, QuestionAnswer] = field(default_factory=dict)


@dataclass(slots=True)
class QuestionConfig:
    """Tunables for question generation."""

    max_questions: int = 10
    allow_skip: bool = True
    confidence_threshold: float = 0.7
