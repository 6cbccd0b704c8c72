"""Timed CBT exam session with a set-once result."""

from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .errors import ExamFinishedError
from .models import CbtQuestion

COMPLETE = "complete"
TIMEOUT = "timeout"


@dataclass(frozen=True)
class AnswerRecord:
    choice_id: str
    is_correct: bool


@dataclass(frozen=True)
class ExamResult:
    reason: str
    correct_count: int
    total: int
    accuracy: float
    elapsed_seconds: float
    estimated_score: int
    answers: Dict[str, AnswerRecord] = field(default_factory=dict)
    highlighted: List[str] = field(default_factory=list)
    glowing: List[str] = field(default_factory=list)


def estimate_score(accuracy: float, jitter: float) -> int:
    """Rough standardized score clamped to [35, 75]."""
    return max(35, min(75, round(50 + (accuracy - 0.5) * 40 + jitter)))


class ExamSession:
    """
    Tracks answers for one exam and finalizes it exactly once.

    Finalization can come from the last answer or from the time limit running
    out; whichever gets the lock first computes the result and every later
    attempt returns that same result.
    """

    def __init__(
        self,
        questions: Sequence[CbtQuestion],
        time_limit: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        if not questions:
            raise ValueError("An exam needs at least one question.")
        self.questions = list(questions)
        self.time_limit = time_limit
        self._clock = clock
        self._rng = rng or random.Random()
        self._started_at = clock()
        self._answers: Dict[str, AnswerRecord] = {}
        self._index = {q.id: q for q in self.questions}
        self._result: Optional[ExamResult] = None
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def result(self) -> Optional[ExamResult]:
        return self._result

    @property
    def is_finished(self) -> bool:
        return self._result is not None

    @property
    def answers(self) -> Dict[str, AnswerRecord]:
        return dict(self._answers)

    def elapsed(self) -> float:
        return self._clock() - self._started_at

    def remaining(self) -> float:
        return max(self.time_limit - self.elapsed(), 0.0)

    def current_question(self) -> Optional[CbtQuestion]:
        """First question without an answer, or None when all are answered."""
        for question in self.questions:
            if question.id not in self._answers:
                return question
        return None

    def answer(self, question_id: str, choice_id: str) -> AnswerRecord:
        """
        Record an answer in any order; the exam completes once every question
        has one. The finished check and the write happen under the same lock
        as finalization, so an answer racing the timer is either part of the
        result or rejected with `ExamFinishedError`.
        """
        question = self._index.get(question_id)
        if question is None:
            raise ValueError(f"Unknown question id: {question_id}")
        choice = question.choice(choice_id)
        if choice is None:
            raise ValueError(f"Unknown choice id for {question_id}: {choice_id}")

        record = AnswerRecord(choice_id=choice_id, is_correct=choice.is_correct)
        with self._lock:
            if self._result is not None:
                raise ExamFinishedError("The exam has already been finalized.")
            self._answers[question_id] = record
            completed = len(self._answers) == len(self.questions)
            if completed:
                self._result = self._summarize(COMPLETE)
        if completed:
            self.cancel_timer()
        return record

    def expire_if_due(self) -> Optional[ExamResult]:
        """Finalize with a timeout once the time limit has passed."""
        if self.remaining() <= 0:
            return self.finalize(TIMEOUT)
        return self._result

    def arm_timer(self) -> None:
        """Finalize on timeout from a background timer."""
        self.cancel_timer()
        self._timer = threading.Timer(self.remaining(), self.finalize, args=(TIMEOUT,))
        self._timer.daemon = True
        self._timer.start()

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def finalize(self, reason: str = COMPLETE) -> ExamResult:
        with self._lock:
            if self._result is None:
                self._result = self._summarize(reason)
        if reason == COMPLETE:
            self.cancel_timer()
        return self._result

    def _summarize(self, reason: str) -> ExamResult:
        if reason == TIMEOUT:
            elapsed = self.time_limit
        else:
            elapsed = min(self.elapsed(), self.time_limit)
        total = len(self.questions)
        answers = dict(self._answers)
        correct = sum(1 for q in self.questions if q.id in answers and answers[q.id].is_correct)
        accuracy = correct / total if total else 0.0
        highlighted = list(dict.fromkeys(q.entity_id for q in self.questions))
        glowing = list(
            dict.fromkeys(
                q.entity_id
                for q in self.questions
                if q.id in answers and answers[q.id].is_correct
            )
        )
        return ExamResult(
            reason=reason,
            correct_count=correct,
            total=total,
            accuracy=accuracy,
            elapsed_seconds=elapsed,
            estimated_score=estimate_score(accuracy, self._rng.uniform(-4, 4)),
            answers=answers,
            highlighted=highlighted,
            glowing=glowing,
        )
