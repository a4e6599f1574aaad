from __future__ import annotations

import asyncio
import random
from collections.abc import Callable
from dataclasses import replace
from uuid import UUID, uuid4

import structlog

from looma.game.questions.static_bank import default_batch
from looma.game.questions.supply import FallbackProvider, QuestionSupply, load_question_batch
from looma.game.questions.types import Question
from looma.game.sessions.clock import AsyncioScheduler, Scheduler, TimerCallback, TimerHandle
from looma.game.sessions.errors import QuestionSupplyError
from looma.game.sessions.feedback import FeedbackMessages
from looma.game.sessions.opponent import BernoulliOpponent, OpponentSimulator
from looma.game.sessions.recorder import SessionRecord, SessionRecorder, build_session_record
from looma.game.sessions.scoring import classify_feedback, score_answer
from looma.game.sessions.summary import build_summary
from looma.game.sessions.types import (
    RECORD_STATUS_FAILED,
    RECORD_STATUS_NOT_RECORDED,
    RECORD_STATUS_PENDING,
    RECORD_STATUS_RECORDED,
    TIMEOUT,
    SelectedAnswer,
    SessionConfig,
    SessionState,
    SessionStatus,
    SessionSummary,
    TimingPolicy,
)

logger = structlog.get_logger("looma.game.sessions.engine")

StateListener = Callable[[SessionState], None]

(
    _TIMER_COUNTDOWN,
    _TIMER_QUESTION,
    _TIMER_SESSION,
    _TIMER_RESULT,
) = (
    "countdown",
    "question",
    "session",
    "result",
)
_TICK_SECONDS = 1.0
_RESTARTABLE_STATUSES = frozenset(
    {
        SessionStatus.COUNTDOWN,
        SessionStatus.QUESTION,
        SessionStatus.RESULT,
        SessionStatus.SUMMARY,
    }
)


class QuizSessionEngine:
    """Timed quiz/battle session state machine.

    The engine is the only writer of its ``SessionState``. Callers drive it through
    ``start``, ``submit_answer``, ``skip``, ``restart`` and ``cancel`` and observe
    it through ``state`` snapshots or ``subscribe``. Every scheduled callback is
    tied to the generation it was installed in, so callbacks left over from a
    cancelled or restarted round never touch the new round.
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        supply: QuestionSupply | None = None,
        recorder: SessionRecorder | None = None,
        scheduler: Scheduler | None = None,
        opponent: OpponentSimulator | None = None,
        feedback: FeedbackMessages | None = None,
        rng: random.Random | None = None,
        fallback: FallbackProvider | None = default_batch,
        grade: str | None = None,
        session_id: UUID | None = None,
    ) -> None:
        self._config = config
        self._supply = supply
        self._recorder = recorder
        self._scheduler = scheduler or AsyncioScheduler()
        self._rng = rng or random.Random()
        if opponent is None and config.has_opponent:
            opponent = BernoulliOpponent.from_config(config, rng=self._rng)
        self._opponent = opponent if config.has_opponent else None
        self._feedback = feedback or FeedbackMessages(rng=self._rng)
        self._fallback = fallback
        self._grade = grade
        self.session_id = session_id or uuid4()

        self._state = SessionState()
        self._questions: tuple[Question, ...] = ()
        self._generation = 0
        self._timers: dict[str, TimerHandle] = {}
        self._listeners: list[StateListener] = []
        self._summary: SessionSummary | None = None
        self._record_task: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._record_status = RECORD_STATUS_NOT_RECORDED
        self._record_error: Exception | None = None
        self._log = logger.bind(
            session_id=str(self.session_id),
            session_mode=config.mode.value,
            subject=config.subject,
        )

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return replace(self._state)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def current_question(self) -> Question | None:
        if self._state.status not in (SessionStatus.QUESTION, SessionStatus.RESULT):
            return None
        return self._questions[self._state.current_index]

    @property
    def summary(self) -> SessionSummary | None:
        return self._summary

    @property
    def record_status(self) -> str:
        return self._record_status

    @property
    def record_error(self) -> Exception | None:
        return self._record_error

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self) -> None:
        if self._state.status is not SessionStatus.IDLE:
            self._log.debug("quiz_session_start_ignored", status=self._state.status.value)
            return

        self._generation += 1
        generation = self._generation
        self._state = SessionState(status=SessionStatus.LOADING)
        self._log.info("quiz_session_loading", round_no=generation)
        self._notify()

        try:
            questions = await load_question_batch(
                self._supply,
                self._config,
                rng=self._rng,
                fallback=self._fallback,
                grade=self._grade,
            )
        except QuestionSupplyError as exc:
            if generation != self._generation:
                return
            self._state = SessionState(status=SessionStatus.IDLE, error_message=str(exc))
            self._log.error("quiz_session_aborted", reason="question_supply_failed")
            self._notify()
            raise

        if generation != self._generation:
            self._log.info("quiz_session_load_discarded", round_no=generation)
            return

        self._questions = questions
        self._begin_round()

    def submit_answer(self, value: str, *, question_id: str | None = None) -> bool:
        question = self._accepting_question(action="answer", question_id=question_id)
        if question is None:
            return False
        if value not in question.answer_values:
            self._log.debug(
                "quiz_input_ignored",
                action="answer",
                reason="unknown_answer_value",
                question_id=question.question_id,
            )
            return False

        self._cancel_timer(_TIMER_QUESTION)
        self._resolve_answer(question, value)
        return True

    def skip(self, *, question_id: str | None = None) -> bool:
        if not self._config.allow_skip:
            self._log.debug("quiz_input_ignored", action="skip", reason="skip_disabled")
            return False
        question = self._accepting_question(action="skip", question_id=question_id)
        if question is None:
            return False

        self._cancel_timer(_TIMER_QUESTION)
        self._state.player_skipped_count += 1
        self._log.info(
            "quiz_question_skipped",
            question_id=question.question_id,
            question_index=self._state.current_index,
        )
        self._advance()
        return True

    def restart(self) -> bool:
        if self._state.status not in _RESTARTABLE_STATUSES or not self._questions:
            self._log.debug("quiz_session_restart_ignored", status=self._state.status.value)
            return False

        self._cancel_all_timers()
        self._generation += 1
        if self._config.shuffle_on_restart:
            reshuffled = list(self._questions)
            self._rng.shuffle(reshuffled)
            self._questions = tuple(reshuffled)
        self._log.info("quiz_session_restarted", round_no=self._generation)
        self._begin_round()
        return True

    def cancel(self) -> None:
        self._cancel_all_timers()
        self._generation += 1
        previous_status = self._state.status
        self._state = SessionState()
        self._questions = ()
        self._summary = None
        self._reset_recording()
        self._log.info("quiz_session_cancelled", previous_status=previous_status.value)
        self._notify()

    async def wait_recorded(self) -> str:
        task = self._record_task
        if task is not None:
            await task
        return self._record_status

    async def retry_record(self) -> bool:
        if self._summary is None or self._recorder is None:
            return False
        if self._record_status != RECORD_STATUS_FAILED:
            return self._record_status == RECORD_STATUS_RECORDED
        record = build_session_record(self._summary, config=self._config)
        self._record_status = RECORD_STATUS_PENDING
        await self._record(self._recorder, record, generation=self._generation)
        return self._record_status == RECORD_STATUS_RECORDED

    def _accepting_question(self, *, action: str, question_id: str | None) -> Question | None:
        state = self._state
        if state.status is not SessionStatus.QUESTION:
            self._log.debug(
                "quiz_input_ignored",
                action=action,
                reason="not_in_question",
                status=state.status.value,
            )
            return None
        if state.selected_answer is not None:
            self._log.debug("quiz_input_ignored", action=action, reason="already_answered")
            return None
        question = self._questions[state.current_index]
        if question_id is not None and question_id != question.question_id:
            self._log.debug(
                "quiz_input_ignored",
                action=action,
                reason="stale_question",
                question_id=question_id,
                current_question_id=question.question_id,
            )
            return None
        return question

    def _begin_round(self) -> None:
        config = self._config
        self._summary = None
        self._reset_recording()
        self._state = SessionState(
            status=SessionStatus.COUNTDOWN,
            question_total=len(self._questions),
            countdown_remaining=config.countdown_seconds,
        )
        self._log.info(
            "quiz_session_started",
            round_no=self._generation,
            question_total=len(self._questions),
            timing=config.timing.value,
            subscribed=config.is_subscribed,
        )
        if config.countdown_seconds == 0:
            self._start_questions()
            return
        self._install_timer(_TIMER_COUNTDOWN, self._on_countdown_tick, interval=_TICK_SECONDS)
        self._notify()

    def _on_countdown_tick(self) -> None:
        self._state.countdown_remaining -= 1
        if self._state.countdown_remaining > 0:
            self._notify()
            return
        self._cancel_timer(_TIMER_COUNTDOWN)
        self._state.countdown_remaining = 0
        self._start_questions()

    def _start_questions(self) -> None:
        if self._config.timing is TimingPolicy.SESSION_WIDE:
            self._state.time_remaining = int(self._config.session_time_limit_seconds or 0)
            self._install_timer(_TIMER_SESSION, self._on_session_tick, interval=_TICK_SECONDS)
        self._show_question(0)

    def _show_question(self, index: int) -> None:
        state = self._state
        state.status = SessionStatus.QUESTION
        state.current_index = index
        state.selected_answer = None
        state.last_answer_correct = None
        state.last_feedback = None
        state.last_feedback_message = None
        state.last_points_delta = None
        state.last_opponent_correct = None
        if self._config.timing is TimingPolicy.PER_QUESTION:
            state.time_remaining = int(self._config.per_question_time_limit_seconds or 0)
            self._install_timer(_TIMER_QUESTION, self._on_question_tick, interval=_TICK_SECONDS)
        self._notify()

    def _on_question_tick(self) -> None:
        state = self._state
        state.time_remaining = max(0, state.time_remaining - 1)
        state.elapsed_seconds += 1
        if state.time_remaining > 0:
            self._notify()
            return
        self._cancel_timer(_TIMER_QUESTION)
        self._log.info(
            "quiz_question_timed_out",
            question_index=state.current_index,
        )
        self._resolve_answer(self._questions[state.current_index], TIMEOUT)

    def _on_session_tick(self) -> None:
        state = self._state
        state.time_remaining = max(0, state.time_remaining - 1)
        state.elapsed_seconds += 1
        if state.time_remaining > 0:
            self._notify()
            return
        discarded = state.status is SessionStatus.QUESTION and state.selected_answer is None
        self._log.info(
            "quiz_session_time_expired",
            question_index=state.current_index,
            status=state.status.value,
            in_flight_discarded=discarded,
        )
        self._enter_summary()

    def _resolve_answer(self, question: Question, selected: SelectedAnswer) -> None:
        config = self._config
        state = self._state
        timed_out = selected is TIMEOUT
        is_correct = not timed_out and isinstance(selected, str) and question.is_correct(selected)
        delta = score_answer(
            is_correct=is_correct,
            is_subscribed=config.is_subscribed,
            base_points=config.points_correct,
            incorrect_points=config.points_incorrect,
            multiplier=config.subscription_multiplier,
        )
        category = classify_feedback(selected, question)

        state.selected_answer = selected
        state.last_answer_correct = is_correct
        state.last_points_delta = delta
        state.last_feedback = category
        state.last_feedback_message = self._feedback.pick(category)
        state.player_score += delta
        if delta > 0:
            state.total_reward += delta
        if is_correct:
            state.player_correct_count += 1
        else:
            state.player_incorrect_count += 1

        if self._opponent is not None:
            opponent_correct = self._opponent.draw(question=question, player_timed_out=timed_out)
            state.last_opponent_correct = opponent_correct
            if opponent_correct:
                state.opponent_score += config.opponent_points_correct
                state.opponent_correct_count += 1

        state.status = SessionStatus.RESULT
        self._log.info(
            "quiz_answer_scored",
            question_id=question.question_id,
            question_index=state.current_index,
            feedback=category.value,
            points_delta=delta,
            player_score=state.player_score,
            opponent_correct=state.last_opponent_correct,
        )
        self._install_timer(
            _TIMER_RESULT,
            self._on_result_elapsed,
            delay=config.result_display_seconds,
        )
        self._notify()

    def _on_result_elapsed(self) -> None:
        self._timers.pop(_TIMER_RESULT, None)
        self._advance()

    def _advance(self) -> None:
        next_index = self._state.current_index + 1
        if next_index < len(self._questions):
            self._show_question(next_index)
            return
        self._enter_summary()

    def _enter_summary(self) -> None:
        self._cancel_all_timers()
        self._state.status = SessionStatus.SUMMARY
        summary = build_summary(self._state, config=self._config)
        self._summary = summary
        self._log.info(
            "quiz_session_completed",
            round_no=self._generation,
            player_score=summary.player_score,
            opponent_score=summary.opponent_score,
            correct=summary.correct_count,
            incorrect=summary.incorrect_count,
            skipped=summary.skipped_count,
            outcome=summary.outcome.value if summary.outcome is not None else None,
            time_spent_seconds=summary.time_spent_seconds,
        )
        self._notify()
        self._start_recording(summary)

    def _start_recording(self, summary: SessionSummary) -> None:
        if self._recorder is None:
            return
        record = build_session_record(summary, config=self._config)
        self._record_status = RECORD_STATUS_PENDING
        task = asyncio.get_running_loop().create_task(
            self._record(self._recorder, record, generation=self._generation)
        )
        # The loop keeps only weak references; hold the task until it finishes.
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        self._record_task = task

    def _reset_recording(self) -> None:
        self._record_task = None
        self._record_status = RECORD_STATUS_NOT_RECORDED
        self._record_error = None

    async def _record(
        self,
        recorder: SessionRecorder,
        record: SessionRecord,
        *,
        generation: int,
    ) -> None:
        try:
            await recorder.record(record)
        except Exception as exc:
            self._log.exception("quiz_session_record_failed", round_no=generation)
            if generation == self._generation:
                self._record_status = RECORD_STATUS_FAILED
                self._record_error = exc
            return
        self._log.info("quiz_session_recorded", round_no=generation)
        if generation == self._generation:
            self._record_status = RECORD_STATUS_RECORDED
            self._record_error = None

    def _install_timer(
        self,
        purpose: str,
        callback: TimerCallback,
        *,
        interval: float | None = None,
        delay: float | None = None,
    ) -> None:
        self._cancel_timer(purpose)
        guarded = self._guard(callback)
        if interval is not None:
            handle = self._scheduler.every(interval, guarded)
        else:
            handle = self._scheduler.after(delay or 0.0, guarded)
        self._timers[purpose] = handle

    def _guard(self, callback: TimerCallback) -> TimerCallback:
        generation = self._generation

        def _run() -> None:
            if generation != self._generation:
                return
            callback()

        return _run

    def _cancel_timer(self, purpose: str) -> None:
        handle = self._timers.pop(purpose, None)
        if handle is not None:
            handle.cancel()

    def _cancel_all_timers(self) -> None:
        for purpose in list(self._timers):
            self._cancel_timer(purpose)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)
