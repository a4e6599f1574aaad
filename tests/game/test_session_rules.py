from __future__ import annotations

import random

import pytest

from looma.game.sessions.feedback import DEFAULT_FEEDBACK_MESSAGES, FeedbackMessages
from looma.game.sessions.opponent import BernoulliOpponent
from looma.game.sessions.scoring import classify_feedback, score_answer
from looma.game.sessions.summary import build_summary, compute_accuracy, resolve_outcome
from looma.game.sessions.types import (
    TIMEOUT,
    FeedbackCategory,
    SessionMode,
    SessionOutcome,
    SessionState,
    SessionStatus,
)
from tests.game.session_fixtures import battle_config, make_question, solo_config


class _FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self._value = value

    def random(self) -> float:
        return self._value


@pytest.mark.parametrize(
    ("is_correct", "is_subscribed", "incorrect_points", "expected"),
    [
        (True, False, 0, 10),
        (True, True, 0, 20),
        (False, False, 0, 0),
        (False, True, 0, 0),
        (False, False, -2, -2),
        (False, True, -2, -2),
    ],
)
def test_score_answer(
    is_correct: bool,
    is_subscribed: bool,
    incorrect_points: int,
    expected: int,
) -> None:
    assert (
        score_answer(
            is_correct=is_correct,
            is_subscribed=is_subscribed,
            base_points=10,
            incorrect_points=incorrect_points,
        )
        == expected
    )


def test_score_answer_uses_configured_multiplier() -> None:
    assert score_answer(is_correct=True, is_subscribed=True, base_points=10, incorrect_points=0, multiplier=3) == 30


@pytest.mark.parametrize(
    ("selected", "expected"),
    [
        ("A", FeedbackCategory.CORRECT),
        ("C", FeedbackCategory.INCORRECT),
        (TIMEOUT, FeedbackCategory.TIMED_OUT),
        (None, FeedbackCategory.TIMED_OUT),
    ],
)
def test_classify_feedback(selected: object, expected: FeedbackCategory) -> None:
    assert classify_feedback(selected, make_question("q1")) is expected  # type: ignore[arg-type]


def test_feedback_messages_pick_from_category_pool() -> None:
    messages = FeedbackMessages(rng=random.Random(1))

    for category in FeedbackCategory:
        assert messages.pick(category) in DEFAULT_FEEDBACK_MESSAGES[category]


def test_feedback_messages_reject_table_with_empty_category() -> None:
    with pytest.raises(ValueError):
        FeedbackMessages({FeedbackCategory.CORRECT: ("ok",), FeedbackCategory.INCORRECT: ("no",)})


def test_opponent_uses_separate_probabilities_per_path() -> None:
    question = make_question("q1")
    opponent = BernoulliOpponent(rng=_FixedRandom(0.55))

    assert opponent.draw(question=question, player_timed_out=False) is True
    assert opponent.draw(question=question, player_timed_out=True) is False


@pytest.mark.parametrize("probability", [0.0, 1.0])
def test_opponent_extreme_probabilities_are_deterministic(probability: float) -> None:
    opponent = BernoulliOpponent(
        answered_probability=probability,
        timeout_probability=probability,
        rng=random.Random(11),
    )
    question = make_question("q1")

    draws = {opponent.draw(question=question, player_timed_out=index % 2 == 0) for index in range(50)}

    assert draws == {probability == 1.0}


def test_opponent_from_config_reads_probability_pair() -> None:
    opponent = BernoulliOpponent.from_config(
        battle_config(
            opponent_correct_probability_answered=0.9,
            opponent_correct_probability_timeout=0.1,
        )
    )

    assert opponent.answered_probability == 0.9
    assert opponent.timeout_probability == 0.1


def test_opponent_rejects_probability_out_of_range() -> None:
    with pytest.raises(ValueError):
        BernoulliOpponent(answered_probability=1.2)


def test_compute_accuracy_ignores_skipped_and_handles_zero() -> None:
    assert compute_accuracy(correct_count=0, incorrect_count=0) == 0.0
    assert compute_accuracy(correct_count=3, incorrect_count=1) == 0.75


@pytest.mark.parametrize(
    ("player_score", "opponent_score", "expected"),
    [
        (30, 20, SessionOutcome.WIN),
        (20, 20, SessionOutcome.TIE),
        (10, 20, SessionOutcome.LOSS),
    ],
)
def test_resolve_outcome(player_score: int, opponent_score: int, expected: SessionOutcome) -> None:
    assert resolve_outcome(player_score=player_score, opponent_score=opponent_score) is expected


def test_battle_summary_carries_opponent_fields() -> None:
    state = SessionState(
        status=SessionStatus.SUMMARY,
        player_score=60,
        opponent_score=40,
        player_correct_count=3,
        player_incorrect_count=2,
        opponent_correct_count=4,
        total_reward=60,
        elapsed_seconds=42,
    )

    summary = build_summary(state, config=battle_config())

    assert summary.mode is SessionMode.BATTLE
    assert summary.outcome is SessionOutcome.WIN
    assert summary.opponent_score == 40
    assert summary.opponent_correct_count == 4
    assert summary.questions_attempted == 5
    assert summary.accuracy == pytest.approx(0.6)
    assert summary.time_spent_seconds == 42


def test_solo_summary_omits_opponent_fields() -> None:
    state = SessionState(
        status=SessionStatus.SUMMARY,
        player_score=8,
        player_correct_count=1,
        player_incorrect_count=1,
        player_skipped_count=2,
        total_reward=10,
    )

    summary = build_summary(state, config=solo_config())

    assert summary.outcome is None
    assert summary.opponent_score is None
    assert summary.opponent_correct_count is None
    assert summary.questions_attempted == 4
    assert summary.skipped_count == 2
    assert summary.accuracy == 0.5
