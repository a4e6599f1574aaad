from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from looma.game.sessions.errors import InvalidSessionConfigError


class SessionMode(str, Enum):
    BATTLE = "BATTLE"
    SOLO = "SOLO"


class TimingPolicy(str, Enum):
    PER_QUESTION = "PER_QUESTION"
    SESSION_WIDE = "SESSION_WIDE"


class SessionStatus(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    COUNTDOWN = "COUNTDOWN"
    QUESTION = "QUESTION"
    RESULT = "RESULT"
    SUMMARY = "SUMMARY"


class FeedbackCategory(str, Enum):
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    TIMED_OUT = "TIMED_OUT"


class SessionOutcome(str, Enum):
    WIN = "WIN"
    TIE = "TIE"
    LOSS = "LOSS"


class AnswerSentinel(Enum):
    TIMEOUT = "timeout"


TIMEOUT = AnswerSentinel.TIMEOUT

SelectedAnswer = str | AnswerSentinel | None

(
    RECORD_STATUS_NOT_RECORDED,
    RECORD_STATUS_PENDING,
    RECORD_STATUS_RECORDED,
    RECORD_STATUS_FAILED,
) = (
    "NOT_RECORDED",
    "PENDING",
    "RECORDED",
    "FAILED",
)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    mode: SessionMode
    timing: TimingPolicy
    question_count: int
    min_questions: int
    points_correct: int
    points_incorrect: int
    subscription_multiplier: int = 2
    is_subscribed: bool = False
    per_question_time_limit_seconds: int | None = None
    session_time_limit_seconds: int | None = None
    countdown_seconds: int = 0
    result_display_seconds: float = 2.0
    opponent_enabled: bool = False
    opponent_points_correct: int = 10
    opponent_correct_probability_answered: float = 0.6
    opponent_correct_probability_timeout: float = 0.5
    shuffle_on_load: bool = False
    shuffle_on_restart: bool = False
    allow_skip: bool = True
    subject: str = ""
    topic: str = ""

    def __post_init__(self) -> None:
        if self.question_count < 1:
            raise InvalidSessionConfigError("question_count must be at least 1")
        if not 1 <= self.min_questions <= self.question_count:
            raise InvalidSessionConfigError("min_questions must be between 1 and question_count")
        if self.countdown_seconds < 0:
            raise InvalidSessionConfigError("countdown_seconds must not be negative")
        if self.result_display_seconds < 0:
            raise InvalidSessionConfigError("result_display_seconds must not be negative")
        if self.subscription_multiplier < 1:
            raise InvalidSessionConfigError("subscription_multiplier must be at least 1")

        if self.timing is TimingPolicy.PER_QUESTION:
            if not self.per_question_time_limit_seconds or self.per_question_time_limit_seconds < 1:
                raise InvalidSessionConfigError("per-question timing needs a positive time limit")
            if self.session_time_limit_seconds is not None:
                raise InvalidSessionConfigError("per-question timing cannot carry a session time limit")
        else:
            if not self.session_time_limit_seconds or self.session_time_limit_seconds < 1:
                raise InvalidSessionConfigError("session-wide timing needs a positive time limit")
            if self.per_question_time_limit_seconds is not None:
                raise InvalidSessionConfigError("session-wide timing cannot carry a per-question limit")

        for probability in (
            self.opponent_correct_probability_answered,
            self.opponent_correct_probability_timeout,
        ):
            if not 0.0 <= probability <= 1.0:
                raise InvalidSessionConfigError("opponent probabilities must lie in [0, 1]")

    @property
    def has_opponent(self) -> bool:
        return self.opponent_enabled and self.mode is SessionMode.BATTLE


@dataclass(slots=True)
class SessionState:
    status: SessionStatus = SessionStatus.IDLE
    current_index: int = 0
    question_total: int = 0
    time_remaining: int = 0
    countdown_remaining: int = 0
    elapsed_seconds: int = 0
    player_score: int = 0
    opponent_score: int = 0
    player_correct_count: int = 0
    player_incorrect_count: int = 0
    player_skipped_count: int = 0
    opponent_correct_count: int = 0
    total_reward: int = 0
    selected_answer: SelectedAnswer = None
    last_answer_correct: bool | None = None
    last_feedback: FeedbackCategory | None = None
    last_feedback_message: str | None = None
    last_points_delta: int | None = None
    last_opponent_correct: bool | None = None
    error_message: str | None = None


@dataclass(frozen=True, slots=True)
class SessionSummary:
    mode: SessionMode
    player_score: int
    opponent_score: int | None
    correct_count: int
    incorrect_count: int
    skipped_count: int
    opponent_correct_count: int | None
    questions_attempted: int
    accuracy: float
    outcome: SessionOutcome | None
    total_reward: int
    time_spent_seconds: int
