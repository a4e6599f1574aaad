from __future__ import annotations

import pytest

from looma.game.sessions.types import FeedbackCategory, SessionStatus
from tests.game.session_fixtures import (
    FakeGeneratingSupply,
    build_engine,
    make_questions,
    solo_config,
)


@pytest.mark.asyncio
async def test_solo_session_skips_countdown_and_starts_session_timer() -> None:
    engine, scheduler = build_engine(solo_config())

    await engine.start()

    state = engine.state
    assert state.status is SessionStatus.QUESTION
    assert state.current_index == 0
    assert state.time_remaining == 300
    scheduler.advance(10)
    assert engine.state.time_remaining == 290


@pytest.mark.asyncio
async def test_session_timer_expiry_discards_in_flight_question() -> None:
    engine, scheduler = build_engine(solo_config())
    await engine.start()

    question = engine.current_question
    assert question is not None
    engine.submit_answer(question.correct_answer)
    scheduler.advance(1)
    assert engine.state.current_index == 1
    assert engine.status is SessionStatus.QUESTION

    scheduler.advance(299)

    state = engine.state
    assert state.status is SessionStatus.SUMMARY
    assert state.player_score == 10
    assert state.player_correct_count == 1
    assert state.player_incorrect_count == 0
    assert state.player_skipped_count == 0
    assert state.selected_answer is None

    summary = engine.summary
    assert summary is not None
    assert summary.outcome is None
    assert summary.opponent_score is None
    assert summary.accuracy == 1.0
    assert summary.questions_attempted == 1
    assert summary.time_spent_seconds == 300


@pytest.mark.asyncio
async def test_session_timer_keeps_running_through_result_display() -> None:
    engine, scheduler = build_engine(
        solo_config(session_time_limit_seconds=5, result_display_seconds=10.0)
    )
    await engine.start()

    engine.submit_answer("A")
    assert engine.status is SessionStatus.RESULT
    scheduler.advance(5)

    state = engine.state
    assert state.status is SessionStatus.SUMMARY
    assert state.player_correct_count == 1
    assert scheduler.pending_count == 0


@pytest.mark.asyncio
async def test_incorrect_penalty_is_not_multiplied_for_subscribers() -> None:
    engine, scheduler = build_engine(solo_config(is_subscribed=True))
    await engine.start()

    engine.submit_answer("A")
    assert engine.state.last_points_delta == 20
    scheduler.advance(1)
    engine.submit_answer("B")

    state = engine.state
    assert state.last_points_delta == -2
    assert state.last_feedback is FeedbackCategory.INCORRECT
    assert state.player_score == 18
    assert state.total_reward == 20


@pytest.mark.asyncio
async def test_second_skip_for_same_question_is_a_no_op() -> None:
    engine, _ = build_engine(solo_config())
    await engine.start()
    first = engine.current_question
    assert first is not None

    assert engine.skip(question_id=first.question_id) is True
    assert engine.skip(question_id=first.question_id) is False

    state = engine.state
    assert state.current_index == 1
    assert state.player_skipped_count == 1
    assert state.player_correct_count == 0
    assert state.player_incorrect_count == 0


@pytest.mark.asyncio
async def test_skip_after_answer_is_ignored() -> None:
    engine, _ = build_engine(solo_config())
    await engine.start()

    engine.submit_answer("A")

    assert engine.skip() is False
    assert engine.state.player_skipped_count == 0
    assert engine.status is SessionStatus.RESULT


@pytest.mark.asyncio
async def test_skipping_last_question_moves_to_summary() -> None:
    engine, scheduler = build_engine(solo_config(question_count=3), questions=make_questions(3))
    await engine.start()

    engine.submit_answer("A")
    scheduler.advance(1)
    engine.submit_answer("C")
    scheduler.advance(1)
    assert engine.skip() is True

    summary = engine.summary
    assert engine.status is SessionStatus.SUMMARY
    assert summary is not None
    assert summary.correct_count + summary.incorrect_count + summary.skipped_count == 3
    assert summary.questions_attempted == 3
    assert summary.player_score == 8
    assert summary.total_reward == 10
    assert summary.accuracy == pytest.approx(0.5)
    assert scheduler.pending_count == 0


@pytest.mark.asyncio
async def test_all_skipped_session_has_zero_accuracy() -> None:
    engine, _ = build_engine(solo_config(question_count=2), questions=make_questions(2))
    await engine.start()

    engine.skip()
    engine.skip()

    summary = engine.summary
    assert summary is not None
    assert summary.accuracy == 0.0
    assert summary.skipped_count == 2


@pytest.mark.asyncio
async def test_restart_reshuffles_same_batch_and_resets_state() -> None:
    questions = make_questions(10)
    engine, scheduler = build_engine(
        solo_config(shuffle_on_restart=True),
        questions=questions,
        seed=3,
    )
    await engine.start()
    engine.submit_answer("A")
    scheduler.advance(1)
    engine.skip()
    first_order = [question.question_id for question in engine.questions]

    assert engine.restart() is True

    state = engine.state
    assert state.status is SessionStatus.QUESTION
    assert state.current_index == 0
    assert state.player_score == 0
    assert state.player_correct_count == 0
    assert state.player_skipped_count == 0
    assert state.time_remaining == 300
    assert sorted(question.question_id for question in engine.questions) == sorted(first_order)


@pytest.mark.asyncio
async def test_short_fetch_triggers_generation_in_solo_mode() -> None:
    supply = FakeGeneratingSupply(
        make_questions(4),
        generated=make_questions(12, prefix="g"),
    )
    engine, _ = build_engine(solo_config(), supply=supply)

    await engine.start()

    assert supply.generate_calls == [
        {"subject": "Physics", "topic": "waves", "count": 15, "grade": None}
    ]
    assert len(engine.questions) == 10
    assert all(question.question_id.startswith("g") for question in engine.questions)
