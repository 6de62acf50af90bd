"""Queue of clarifying questions generated from a free-text request."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

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
from .templates import (
    AMBIGUITY_TEMPLATES,
    ASSUMPTIONS_CONFIRMATION_ID,
    CONFIRMATION_KEYWORDS,
    CONFIRMATION_TEMPLATES,
    DECISION_TEMPLATES,
    count_keyword_matches,
)

LOGGER = logging.getLogger(__name__)


class QuestionValidationError(ValueError):
    """Raised when an answer or skip does not fit the current question."""


class QuestionManager:
    """Tracks the question queue, the current question, and recorded answers.

    The queue is walked strictly forward: each question is visited at most once
    and is either answered or skipped before the next one becomes current.
    """

    def __init__(
        self,
        context: Optional[QuestionContext] = None,
        config: Optional[QuestionConfig] = None,
    ) -> None:
        self._context = context
        self._config = config or QuestionConfig()
        self._queue: List[Question] = []
        self._index: Optional[int] = None
        self._answers: Dict[str, QuestionAnswer] = {}
        self._completed = False
        self._followup_ids: List[str] = []

    # ------------------------------------------------------------------ views
    @property
    def state(self) -> QuestionState:
        """Return a detached snapshot of the question state."""
        return QuestionState(
            question_queue=[question.model_copy(deep=True) for question in self._queue],
            current_question=self.current_question.model_copy(deep=True) if self.current_question else None,
            answered_questions={key: value.model_copy() for key, value in self._answers.items()},
            completed=self._completed,
        )

    @property
    def context(self) -> Optional[QuestionContext]:
        return self._context

    def set_context(self, context: QuestionContext) -> None:
        self._context = context

    @property
    def config(self) -> QuestionConfig:
        return self._config

    @property
    def current_question(self) -> Optional[Question]:
        if self._index is None:
            return None
        return self._queue[self._index]

    def current_question_with_icon(self) -> Optional[Tuple[Question, str]]:
        question = self.current_question
        if question is None:
            return None
        return question, QUESTION_ICONS[question.type]

    @property
    def total_questions(self) -> int:
        return len(self._queue)

    @property
    def answered_count(self) -> int:
        return len(self._answers)

    @property
    def remaining_count(self) -> int:
        return len(self._queue) - len(self._answers)

    @property
    def question_number(self) -> int:
        """One-based position of the current question for display."""
        return self.answered_count + 1

    @property
    def followup_question_ids(self) -> List[str]:
        """Follow-up IDs requested by answers; they are not expanded into the queue."""
        return list(self._followup_ids)

    def is_completed(self) -> bool:
        return self._completed

    def get_answers(self) -> Dict[str, QuestionAnswer]:
        return dict(self._answers)

    def get_answer(self, question_id: str) -> Optional[QuestionAnswer]:
        return self._answers.get(question_id)

    # ------------------------------------------------------------ generation
    def generate_questions(self, user_request: str, project_files: Sequence[str]) -> List[Question]:
        """Build the prioritised queue for ``user_request`` and select its head."""
        if self._context is None:
            self._context = QuestionContext(user_request=user_request, project_files=list(project_files))

        matched = self._find_matching_questions(user_request)
        prioritised = self._prioritise(matched, user_request)
        self._queue = prioritised[: max(self._config.max_questions, 0)]

        if self._queue:
            self._index = 0
        else:
            self._index = None
            self._completed = True

        LOGGER.debug(
            "Generated %d question(s) for request: %s",
            len(self._queue),
            ", ".join(question.id for question in self._queue) or "(none)",
        )
        return list(self._queue)

    def _find_matching_questions(self, user_request: str) -> List[Question]:
        lower_request = user_request.lower()
        questions: List[Question] = []

        for template in AMBIGUITY_TEMPLATES:
            if count_keyword_matches(template.keywords, lower_request):
                questions.append(
                    Question(
                        id=template.id,
                        type=QuestionType.AMBIGUITY,
                        template=template.render(user_request),
                        options=[option.model_copy(deep=True) for option in template.options],
                        allow_skip=template.allow_skip and self._config.allow_skip,
                    )
                )

        for template in DECISION_TEMPLATES:
            if count_keyword_matches(template.keywords, lower_request):
                questions.append(
                    Question(
                        id=template.id,
                        type=QuestionType.DECISION,
                        template=template.render(user_request),
                        options=[option.model_copy(deep=True) for option in template.options],
                        allow_multiple=template.allow_multiple,
                        allow_skip=self._config.allow_skip,
                    )
                )

        if count_keyword_matches(CONFIRMATION_KEYWORDS, lower_request):
            confirmation = next(
                (item for item in CONFIRMATION_TEMPLATES if item.id == ASSUMPTIONS_CONFIRMATION_ID),
                None,
            )
            if confirmation is not None:
                questions.append(
                    Question(
                        id=confirmation.id,
                        type=QuestionType.CONFIRMATION,
                        template=confirmation.render({"request": user_request, "scope": "current task"}),
                        options=[
                            QuestionOption(id="confirm", text=confirmation.confirm_label),
                            QuestionOption(id="modify", text=confirmation.modify_label),
                        ],
                        allow_skip=False,
                    )
                )

        return questions

    def _prioritise(self, questions: List[Question], user_request: str) -> List[Question]:
        """Confirmation first, then decision, then ambiguity; more keyword hits first."""
        lower_request = user_request.lower()

        def keyword_count(question: Question) -> int:
            return self._keyword_count(question.id, lower_request)

        confirmation = [q for q in questions if q.type == QuestionType.CONFIRMATION]
        decision = sorted(
            (q for q in questions if q.type == QuestionType.DECISION),
            key=keyword_count,
            reverse=True,
        )
        ambiguity = sorted(
            (q for q in questions if q.type == QuestionType.AMBIGUITY),
            key=keyword_count,
            reverse=True,
        )
        return [*confirmation, *decision, *ambiguity]

    @staticmethod
    def _keyword_count(question_id: str, lower_request: str) -> int:
        for template in (*AMBIGUITY_TEMPLATES, *DECISION_TEMPLATES):
            if template.id == question_id:
                return count_keyword_matches(template.keywords, lower_request)
        return 0

    # --------------------------------------------------------------- answers
    def submit_answer(self, answer: QuestionAnswer) -> None:
        """Record ``answer`` for the current question and advance the queue."""
        question = self.current_question
        if question is None:
            raise QuestionValidationError("No current question to answer")
        if answer.question_id != question.id:
            raise QuestionValidationError(
                f"Answer question ID {answer.question_id} does not match current question {question.id}"
            )

        self._answers[answer.question_id] = answer
        self._collect_followups(answer, question)
        self._advance()

    def skip_current_question(self) -> None:
        """Record an empty answer for the current question when skipping is allowed."""
        question = self.current_question
        if question is None:
            raise QuestionValidationError("No current question to skip")
        if not question.allow_skip:
            raise QuestionValidationError(f"Question {question.id} cannot be skipped")

        self._answers[question.id] = QuestionAnswer(question_id=question.id, selected_option_ids=[])
        LOGGER.debug("Skipped question %s", question.id)
        self._advance()

    def _collect_followups(self, answer: QuestionAnswer, question: Question) -> None:
        # Follow-up IDs are gathered but never turned into queued questions.
        followups: List[str] = []
        options = {option.id: option for option in question.options}
        for option_id in answer.selected_option_ids:
            option = options.get(option_id)
            if option is not None:
                followups.extend(option.followup_questions)
        followups.extend(question.followup_questions)
        if followups:
            LOGGER.debug("Question %s requested follow-ups: %s", question.id, ", ".join(followups))
            self._followup_ids.extend(followups)

    def _advance(self) -> None:
        if self._index is not None and self._index < len(self._queue) - 1:
            self._index += 1
            return
        self._index = None
        self._completed = True

    def reset(self) -> None:
        """Clear the queue, answers, and context."""
        self._queue = []
        self._index = None
        self._answers = {}
        self._completed = False
        self._followup_ids = []
        self._context = None
