"""A sequence of quiz rounds over a set of discovered events."""

from __future__ import annotations

import logging
import random
from typing import Optional

from histoglobe.models import ClassifiedEvent, Difficulty, QuizQuestion, QuizResult
from histoglobe.quiz.generator import prepare_quiz_question
from histoglobe.quiz.scoring import calculate_points, check_answer
from histoglobe.storage.database import Database

logger = logging.getLogger(__name__)

MAX_HINTS = 3


class QuizSession:
    """Walks the events in order, never asking the same event twice in a row."""

    def __init__(
        self,
        events: list[ClassifiedEvent],
        difficulty: Difficulty = "easy",
        rng: Optional[random.Random] = None,
        store: Optional[Database] = None,
        answer_threshold: int = 100,
    ):
        if len(events) < 2:
            raise ValueError("a quiz needs at least 2 events")
        self.events = list(events)
        self.difficulty = difficulty
        self.rng = rng or random.Random()
        self.store = store
        self.answer_threshold = answer_threshold

        self.current_event: Optional[ClassifiedEvent] = None
        self.current_question: Optional[QuizQuestion] = None
        self.hints_revealed = 0
        self.total_score = 0
        self.questions_played = 0
        self._next_idx = 0

    def _pick_next(self) -> ClassifiedEvent:
        for _ in range(len(self.events)):
            candidate = self.events[self._next_idx % len(self.events)]
            self._next_idx += 1
            if self.current_event is None or candidate.id != self.current_event.id:
                return candidate
        return self.events[self._next_idx % len(self.events)]

    def next_question(self) -> QuizQuestion:
        event = self._pick_next()
        self.current_event = event
        self.current_question = prepare_quiz_question(event, self.events, self.difficulty, rng=self.rng)
        self.hints_revealed = 0
        return self.current_question

    def reveal_hint(self) -> int:
        """Reveal one more hint (category, then year, then actions)."""
        self.hints_revealed = min(self.hints_revealed + 1, MAX_HINTS)
        return self.hints_revealed

    def submit(self, answer: str) -> QuizResult:
        if self.current_question is None:
            raise RuntimeError("no question in progress, call next_question() first")

        correct = check_answer(answer, self.current_question.correct_title, self.answer_threshold)
        result = calculate_points(correct, self.hints_revealed, self.difficulty == "easy")
        self.questions_played += 1

        if result.correct:
            self.total_score += result.points
            if self.store is not None:
                self.store.save_discovery(self.current_question.event_id)
                self.store.increment_challenges_won()

        logger.info(
            f"  [Quiz] {'correct' if result.correct else 'wrong'} "
            f"\"{self.current_question.correct_title}\" +{result.points} (total {self.total_score})"
        )
        return result
