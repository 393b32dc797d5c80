"""Points for a quiz answer, answer checking and free-text suggestions."""

from __future__ import annotations

import math

from rapidfuzz import fuzz

from histoglobe.models import ClassifiedEvent, QuizResult

BASE_POINTS = 100
HINT_PENALTY = 30
QCM_FACTOR = 0.5
MIN_POINTS = 10
MAX_SUGGESTIONS = 6


def calculate_points(correct: bool, hints_used: int, was_qcm: bool) -> QuizResult:
    """100 points, minus 30 per hint, halved in multiple-choice mode, floored at 10.

    A wrong answer is worth 0.
    """
    if not correct:
        return QuizResult(points=0, hints_used=hints_used, was_qcm=was_qcm, correct=False)

    points = BASE_POINTS - hints_used * HINT_PENALTY
    if was_qcm:
        # half up, so 25 -> 13
        points = int(math.floor(points * QCM_FACTOR + 0.5))
    points = max(MIN_POINTS, points)

    return QuizResult(points=points, hints_used=hints_used, was_qcm=was_qcm, correct=True)


def normalize_answer(text: str) -> str:
    return " ".join(text.split()).lower()


def check_answer(answer: str, correct_title: str, threshold: int = 100) -> bool:
    """Case-insensitive comparison; a threshold below 100 accepts near misses."""
    given = normalize_answer(answer)
    expected = normalize_answer(correct_title)
    if not given:
        return False
    if given == expected:
        return True
    if threshold >= 100:
        return False
    return fuzz.ratio(given, expected) >= threshold


def suggest_titles(query: str, events: list[ClassifiedEvent], limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Event titles containing the typed text, for free-text autocompletion."""
    if len(query.strip()) < 2:
        return []
    q = query.lower()
    return [e.title for e in events if q in e.title.lower()][:limit]
