from __future__ import annotations

import random
from typing import Protocol

from looma.game.questions.types import Question
from looma.game.sessions.types import SessionConfig


class OpponentSimulator(Protocol):
    def draw(self, *, question: Question, player_timed_out: bool) -> bool: ...


class BernoulliOpponent:
    """Locally simulated opponent.

    The answered and timed-out paths use separate probabilities; the pair is
    kept configurable rather than unified.
    """

    def __init__(
        self,
        *,
        answered_probability: float = 0.6,
        timeout_probability: float = 0.5,
        rng: random.Random | None = None,
    ) -> None:
        for probability in (answered_probability, timeout_probability):
            if not 0.0 <= probability <= 1.0:
                raise ValueError("probability must lie in [0, 1]")
        self.answered_probability = answered_probability
        self.timeout_probability = timeout_probability
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: SessionConfig, *, rng: random.Random | None = None) -> BernoulliOpponent:
        return cls(
            answered_probability=config.opponent_correct_probability_answered,
            timeout_probability=config.opponent_correct_probability_timeout,
            rng=rng,
        )

    def draw(self, *, question: Question, player_timed_out: bool) -> bool:
        del question
        probability = self.timeout_probability if player_timed_out else self.answered_probability
        return self._rng.random() < probability
