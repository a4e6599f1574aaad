from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from looma.game.sessions.types import SessionConfig, SessionSummary


@dataclass(frozen=True, slots=True)
class SessionRecord:
    subject: str
    topic: str
    points_earned: int
    questions_attempted: int
    questions_correct: int
    questions_wrong: int
    duration_seconds: int
    reward_points: int = 0

    def as_payload(self) -> dict[str, object]:
        """Columns of a ``user_game_sessions`` row; the reward is credited separately."""
        return {
            "subject": self.subject,
            "topic": self.topic,
            "points_earned": self.points_earned,
            "questions_attempted": self.questions_attempted,
            "questions_correct": self.questions_correct,
            "questions_wrong": self.questions_wrong,
            "duration_seconds": self.duration_seconds,
        }


class SessionRecorder(Protocol):
    async def record(self, record: SessionRecord) -> None: ...


def build_session_record(summary: SessionSummary, *, config: SessionConfig) -> SessionRecord:
    return SessionRecord(
        subject=config.subject,
        topic=config.topic,
        points_earned=summary.player_score,
        questions_attempted=summary.questions_attempted,
        questions_correct=summary.correct_count,
        questions_wrong=summary.incorrect_count,
        duration_seconds=summary.time_spent_seconds,
        reward_points=summary.total_reward,
    )
