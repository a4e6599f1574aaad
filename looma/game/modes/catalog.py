from __future__ import annotations

from looma.core.config import Settings, get_settings
from looma.game.sessions.types import SessionConfig, SessionMode, TimingPolicy

BATTLE_MIN_QUESTIONS = 5
SOLO_MIN_QUESTIONS = 1


def battle_config(
    *,
    subject: str,
    is_subscribed: bool = False,
    topic: str = "",
    settings: Settings | None = None,
) -> SessionConfig:
    resolved = settings or get_settings()
    question_count = resolved.battle_question_count
    return SessionConfig(
        mode=SessionMode.BATTLE,
        timing=TimingPolicy.PER_QUESTION,
        question_count=question_count,
        min_questions=min(BATTLE_MIN_QUESTIONS, question_count),
        points_correct=resolved.points_correct,
        points_incorrect=0,
        subscription_multiplier=resolved.subscription_multiplier,
        is_subscribed=is_subscribed,
        per_question_time_limit_seconds=resolved.battle_question_time_limit_seconds,
        countdown_seconds=resolved.battle_countdown_seconds,
        result_display_seconds=resolved.battle_result_display_seconds,
        opponent_enabled=True,
        opponent_points_correct=resolved.points_correct,
        opponent_correct_probability_answered=resolved.battle_opponent_answered_probability,
        opponent_correct_probability_timeout=resolved.battle_opponent_timeout_probability,
        shuffle_on_load=False,
        shuffle_on_restart=False,
        allow_skip=False,
        subject=subject,
        topic=topic,
    )


def solo_config(
    *,
    subject: str,
    topic: str,
    is_subscribed: bool = False,
    settings: Settings | None = None,
) -> SessionConfig:
    resolved = settings or get_settings()
    return SessionConfig(
        mode=SessionMode.SOLO,
        timing=TimingPolicy.SESSION_WIDE,
        question_count=resolved.solo_question_count,
        min_questions=SOLO_MIN_QUESTIONS,
        points_correct=resolved.points_correct,
        points_incorrect=resolved.solo_points_incorrect,
        subscription_multiplier=resolved.subscription_multiplier,
        is_subscribed=is_subscribed,
        session_time_limit_seconds=resolved.solo_session_time_limit_seconds,
        countdown_seconds=0,
        result_display_seconds=resolved.solo_result_display_seconds,
        opponent_enabled=False,
        shuffle_on_load=True,
        shuffle_on_restart=True,
        allow_skip=True,
        subject=subject,
        topic=topic,
    )


def build_session_config(
    mode: SessionMode | str,
    *,
    subject: str,
    topic: str = "",
    is_subscribed: bool = False,
    settings: Settings | None = None,
) -> SessionConfig:
    resolved_mode = SessionMode(mode)
    if resolved_mode is SessionMode.BATTLE:
        return battle_config(
            subject=subject,
            topic=topic,
            is_subscribed=is_subscribed,
            settings=settings,
        )
    return solo_config(
        subject=subject,
        topic=topic,
        is_subscribed=is_subscribed,
        settings=settings,
    )
