"""
Quiz session simulation on virtual time.
Run: python scripts/simulate_session.py --mode battle --subject Math --subscribed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
from dataclasses import asdict
from enum import Enum
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent))

from looma.core.config import get_settings  # noqa: E402
from looma.core.logging import configure_logging  # noqa: E402
from looma.game.modes.catalog import build_session_config  # noqa: E402
from looma.game.questions.supabase_supply import SupabaseQuestionSupply  # noqa: E402
from looma.game.questions.supply import QuestionSupply  # noqa: E402
from looma.game.sessions.clock import ManualScheduler  # noqa: E402
from looma.game.sessions.engine import QuizSessionEngine  # noqa: E402
from looma.game.sessions.types import SessionState, SessionStatus  # noqa: E402
from looma.services.supabase_rest import SupabaseRestConfig  # noqa: E402


class _AutoPlayer:
    def __init__(
        self,
        *,
        engine: QuizSessionEngine,
        scheduler: ManualScheduler,
        rng: random.Random,
        accuracy: float,
        skip_rate: float,
        max_think_seconds: int,
    ) -> None:
        self._engine = engine
        self._scheduler = scheduler
        self._rng = rng
        self._accuracy = accuracy
        self._skip_rate = skip_rate
        self._max_think_seconds = max_think_seconds
        self._planned: set[tuple[int, str]] = set()

    def on_state(self, state: SessionState) -> None:
        if state.status is not SessionStatus.QUESTION or state.selected_answer is not None:
            return
        question = self._engine.current_question
        if question is None:
            return
        key = (state.current_index, question.question_id)
        if key in self._planned:
            return
        self._planned.add(key)

        think_seconds = self._rng.uniform(0.5, self._max_think_seconds)
        if self._engine.config.allow_skip and self._rng.random() < self._skip_rate:
            self._scheduler.after(
                think_seconds,
                lambda: self._engine.skip(question_id=question.question_id),
            )
            return

        if self._rng.random() < self._accuracy:
            value = question.correct_answer
        else:
            wrong = [
                candidate
                for candidate in question.answer_values
                if candidate != question.correct_answer
            ]
            value = self._rng.choice(wrong)
        self._scheduler.after(
            think_seconds,
            lambda: self._engine.submit_answer(value, question_id=question.question_id),
        )


def _json_default(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    return str(value)


async def _run(args: argparse.Namespace) -> dict[str, object]:
    settings = get_settings()
    rng = random.Random(args.seed)
    scheduler = ManualScheduler()
    config = build_session_config(
        args.mode.upper(),
        subject=args.subject,
        topic=args.topic,
        is_subscribed=args.subscribed,
        settings=settings,
    )

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        supply: QuestionSupply | None = None
        if args.use_supabase:
            supply = SupabaseQuestionSupply(
                client=client,
                rest=SupabaseRestConfig.from_settings(settings),
            )
        engine = QuizSessionEngine(config, supply=supply, scheduler=scheduler, rng=rng)
        player = _AutoPlayer(
            engine=engine,
            scheduler=scheduler,
            rng=rng,
            accuracy=args.accuracy,
            skip_rate=args.skip_rate,
            max_think_seconds=args.max_think_seconds,
        )
        engine.subscribe(player.on_state)
        await engine.start()

        while engine.status is not SessionStatus.SUMMARY:
            scheduler.advance(1.0)

    summary = engine.summary
    assert summary is not None
    return {
        "mode": config.mode.value,
        "virtual_seconds": scheduler.now,
        "questions": [question.question_id for question in engine.questions],
        "summary": asdict(summary),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate one quiz session on virtual time.")
    parser.add_argument("--mode", choices=["battle", "solo"], default="battle")
    parser.add_argument("--subject", default="General")
    parser.add_argument("--topic", default="")
    parser.add_argument("--subscribed", action="store_true")
    parser.add_argument("--accuracy", type=float, default=0.7)
    parser.add_argument("--skip-rate", type=float, default=0.1)
    parser.add_argument("--max-think-seconds", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--use-supabase", action="store_true")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)
    result = asyncio.run(_run(args))
    print(json.dumps(result, ensure_ascii=False, indent=2, default=_json_default))


if __name__ == "__main__":
    main()
