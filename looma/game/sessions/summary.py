from __future__ import annotations

from looma.game.sessions.types import (
    SessionConfig,
    SessionOutcome,
    SessionState,
    SessionSummary,
)


def compute_accuracy(*, correct_count: int, incorrect_count: int) -> float:
    answered = correct_count + incorrect_count
    if answered == 0:
        return 0.0
    return correct_count / answered


def resolve_outcome(*, player_score: int, opponent_score: int) -> SessionOutcome:
    if player_score > opponent_score:
        return SessionOutcome.WIN
    if player_score == opponent_score:
        return SessionOutcome.TIE
    return SessionOutcome.LOSS


def build_summary(state: SessionState, *, config: SessionConfig) -> SessionSummary:
    has_opponent = config.has_opponent
    return SessionSummary(
        mode=config.mode,
        player_score=state.player_score,
        opponent_score=state.opponent_score if has_opponent else None,
        correct_count=state.player_correct_count,
        incorrect_count=state.player_incorrect_count,
        skipped_count=state.player_skipped_count,
        opponent_correct_count=state.opponent_correct_count if has_opponent else None,
        questions_attempted=(
            state.player_correct_count + state.player_incorrect_count + state.player_skipped_count
        ),
        accuracy=compute_accuracy(
            correct_count=state.player_correct_count,
            incorrect_count=state.player_incorrect_count,
        ),
        outcome=(
            resolve_outcome(player_score=state.player_score, opponent_score=state.opponent_score)
            if has_opponent
            else None
        ),
        total_reward=state.total_reward,
        time_spent_seconds=state.elapsed_seconds,
    )
