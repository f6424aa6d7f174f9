"""Client-held exam session: forward-only navigation under two timers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from examprep.errors import InvalidTransition, ValidationError
from examprep.models.question import OPTION_KEYS

logger = logging.getLogger(__name__)

QUESTION_TIME_LIMIT = 90
EXAM_TIME_LIMIT = 150 * 60


@dataclass(frozen=True)
class Active:
    """Current question accepts answer changes."""
    index: int


@dataclass(frozen=True)
class Frozen:
    """Current question's timer ran out; waiting for advance."""
    index: int


@dataclass(frozen=True)
class Submitted:
    result: Dict[str, Any]
    forced: bool = False


@dataclass(frozen=True)
class Terminated:
    """Ended by the proctoring monitor; nothing is submitted."""
    violations: int


SessionState = Union[Active, Frozen, Submitted, Terminated]

# submit(answers, time_taken_seconds, submission_token) -> result summary
Submitter = Callable[[Dict[int, Optional[str]], int, str], Dict[str, Any]]


class ExamSession:
    """One timed attempt, from the first question to submission.

    The presentation layer calls :meth:`tick` once per elapsed second. Both
    countdowns run off that tick: the question timer freezes the current
    question at zero, the exam timer submits at zero whatever the question
    state. Answers to questions already advanced past cannot change.
    """

    def __init__(
        self,
        student_id: int,
        fullname: str,
        questions: List[Dict[str, Any]],
        submission_token: str,
        submit: Submitter,
        question_time_limit: int = QUESTION_TIME_LIMIT,
        exam_time_limit: int = EXAM_TIME_LIMIT,
        monitor=None,
    ) -> None:
        if not questions:
            raise ValidationError("A session needs at least one question")
        ids = [q["id"] for q in questions]
        if len(set(ids)) != len(ids):
            raise ValidationError("Session questions must be unique")

        self.student_id = student_id
        self.fullname = fullname
        self.questions = tuple(questions)
        self.submission_token = submission_token
        self.question_time_limit = question_time_limit
        self.exam_time_limit = exam_time_limit
        self._submit = submit

        self._state: SessionState = Active(0)
        self._answers: Dict[int, Optional[str]] = {}
        self.question_remaining = question_time_limit
        self.exam_remaining = exam_time_limit
        self.elapsed = 0
        self.monitor = None
        if monitor is not None:
            self.attach_monitor(monitor)

    @classmethod
    def from_start_payload(cls, payload: Dict[str, Any], submit: Submitter, monitor=None) -> "ExamSession":
        """Build a session from the start-test response."""
        return cls(
            student_id=payload["studentId"],
            fullname=payload["fullname"],
            questions=payload["questions"],
            submission_token=payload["submissionToken"],
            submit=submit,
            question_time_limit=payload.get("questionTimeLimit", QUESTION_TIME_LIMIT),
            exam_time_limit=payload.get("examTimeLimit", EXAM_TIME_LIMIT),
            monitor=monitor,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def index(self) -> Optional[int]:
        if isinstance(self._state, (Active, Frozen)):
            return self._state.index
        return None

    @property
    def current_question(self) -> Optional[Dict[str, Any]]:
        index = self.index
        return self.questions[index] if index is not None else None

    @property
    def is_frozen(self) -> bool:
        return isinstance(self._state, Frozen)

    @property
    def is_closed(self) -> bool:
        return isinstance(self._state, (Submitted, Terminated))

    @property
    def is_last_question(self) -> bool:
        return self.index == len(self.questions) - 1

    @property
    def exam_expired(self) -> bool:
        return self.exam_remaining <= 0

    @property
    def answers(self) -> Dict[int, Optional[str]]:
        return dict(self._answers)

    @property
    def answered_count(self) -> int:
        return sum(1 for key in self._answers.values() if key is not None)

    @property
    def result(self) -> Optional[Dict[str, Any]]:
        if isinstance(self._state, Submitted):
            return self._state.result
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def answer(self, option_key: str) -> bool:
        """Record an option for the current question.

        Returns False, changing nothing, when the question is frozen or the
        session is over.
        """
        if not isinstance(self._state, Active):
            return False
        key = str(option_key).strip().upper()
        if key not in OPTION_KEYS:
            raise ValidationError(f"Invalid option '{option_key}'")
        self._answers[self.current_question["id"]] = key
        return True

    def advance(self) -> SessionState:
        if self.is_closed:
            raise InvalidTransition("Session is already over")
        if self.exam_expired:
            raise InvalidTransition("Exam time is up; submit the test")
        if self.is_last_question:
            raise InvalidTransition("Last question reached; submit the test")

        self._state = Active(self.index + 1)
        self.question_remaining = self.question_time_limit
        return self._state

    def tick(self, seconds: int = 1) -> SessionState:
        """Advance both countdowns; the exam timer wins a tie."""
        if self.is_closed or self.exam_expired:
            return self._state

        self.elapsed += seconds
        self.exam_remaining = max(0, self.exam_remaining - seconds)
        if self.exam_remaining == 0:
            logger.info("Exam time expired for student %s; submitting", self.student_id)
            # Locked until the forced submit lands
            self._state = Frozen(self.index)
            self.question_remaining = 0
            self.submit(forced=True)
            return self._state

        if isinstance(self._state, Active):
            self.question_remaining = max(0, self.question_remaining - seconds)
            if self.question_remaining == 0:
                self._state = Frozen(self._state.index)
        return self._state

    def submit(self, forced: bool = False) -> Dict[str, Any]:
        """Hand the answers to the scoring side.

        A manual submit is only accepted on the last question; once the exam
        timer has run out every submit counts as forced. A second call after
        success returns the first result. If the submitter raises, the
        session and its answers are left as they were so the caller can
        retry.
        """
        if isinstance(self._state, Submitted):
            return self._state.result
        if isinstance(self._state, Terminated):
            raise InvalidTransition("Session was terminated")

        forced = forced or self.exam_expired
        if not forced and not self.is_last_question:
            raise InvalidTransition("Answer through to the last question before submitting")

        result = self._submit(dict(self._answers), self.elapsed, self.submission_token)

        self._state = Submitted(result=result, forced=forced)
        if self.monitor is not None:
            self.monitor.stop()
        logger.info(
            "Session for student %s submitted (%d/%d answered%s)",
            self.student_id, self.answered_count, len(self.questions),
            ", forced" if forced else ""
        )
        return result

    def terminate(self, violations: int) -> None:
        """Abandon the attempt; used by the proctoring monitor."""
        if self.is_closed:
            return
        self._state = Terminated(violations)
        logger.error("Session for student %s terminated after %d violations",
                     self.student_id, violations)

    def attach_monitor(self, monitor) -> None:
        """Scope a violation monitor to this attempt."""
        monitor.reset()
        monitor.on_terminate = self.terminate
        self.monitor = monitor
