from __future__ import annotations

import random
from collections.abc import Mapping, Sequence

from looma.game.sessions.types import FeedbackCategory

DEFAULT_FEEDBACK_MESSAGES: dict[FeedbackCategory, tuple[str, ...]] = {
    FeedbackCategory.CORRECT: (
        "Correct! You're on fire!",
        "Excellent work! Keep it up!",
        "Spot on! You're crushing it!",
        "Perfect answer! Brilliant!",
        "That's right! You're a genius!",
        "Amazing! You've got this!",
        "Correct! You're unstoppable!",
        "Great job! Your knowledge is impressive!",
        "Fantastic! You're making great progress!",
    ),
    FeedbackCategory.INCORRECT: (
        "Oops, try again...",
        "Not quite right, but keep going!",
        "Almost there! Next one you'll get it!",
        "Good try! Let's tackle the next one!",
        "That was tricky! Keep your focus!",
        "Don't worry, learning happens through mistakes!",
        "You'll get it next time!",
        "Keep going! Every attempt helps you learn!",
        "That's a challenging one! Let's continue!",
    ),
    FeedbackCategory.TIMED_OUT: (
        "Time's up!",
        "Out of time, stay sharp for the next one!",
        "The clock beat you this time!",
    ),
}


class FeedbackMessages:
    def __init__(
        self,
        table: Mapping[FeedbackCategory, Sequence[str]] | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        resolved = dict(DEFAULT_FEEDBACK_MESSAGES if table is None else table)
        missing = [category for category in FeedbackCategory if not resolved.get(category)]
        if missing:
            raise ValueError(f"feedback table has no messages for {missing}")
        self._table = {category: tuple(messages) for category, messages in resolved.items()}
        self._rng = rng or random.Random()

    def pick(self, category: FeedbackCategory) -> str:
        return self._rng.choice(self._table[category])
