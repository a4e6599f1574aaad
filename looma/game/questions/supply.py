from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

import structlog

from looma.game.questions.static_bank import default_batch
from looma.game.questions.types import Question
from looma.game.sessions.errors import QuestionSupplyError
from looma.game.sessions.types import SessionConfig, SessionMode

logger = structlog.get_logger("looma.game.questions.supply")

BATTLE_TOPIC = "quick-battle"
GENERATE_MIN_COUNT = 15
SUPPLY_UNAVAILABLE_MESSAGE = "Failed to load questions. Please try again."


class QuestionSupply(Protocol):
    async def fetch(self, subject: str, topic: str) -> Sequence[Question]: ...


@runtime_checkable
class GeneratingQuestionSupply(QuestionSupply, Protocol):
    async def generate(
        self,
        subject: str,
        topic: str,
        *,
        count: int,
        grade: str | None = None,
    ) -> Sequence[Question]: ...


FallbackProvider = Callable[[], Sequence[Question]]


def supply_topic_for(config: SessionConfig) -> str:
    if config.mode is SessionMode.BATTLE:
        return config.topic or BATTLE_TOPIC
    return config.topic


def _dedupe(questions: Sequence[Question]) -> list[Question]:
    seen: set[str] = set()
    unique: list[Question] = []
    for question in questions:
        if question.question_id in seen:
            continue
        seen.add(question.question_id)
        unique.append(question)
    return unique


async def _fetch_from_supply(
    supply: QuestionSupply,
    *,
    config: SessionConfig,
    grade: str | None,
) -> list[Question]:
    topic = supply_topic_for(config)
    fetched = _dedupe(await supply.fetch(config.subject, topic))
    if (
        config.mode is SessionMode.SOLO
        and len(fetched) < config.question_count
        and isinstance(supply, GeneratingQuestionSupply)
    ):
        logger.info(
            "question_supply_generating",
            subject=config.subject,
            topic=topic,
            fetched_count=len(fetched),
        )
        try:
            generated = await supply.generate(
                config.subject,
                topic,
                count=max(config.question_count, GENERATE_MIN_COUNT),
                grade=grade,
            )
        except Exception:
            logger.exception("question_supply_generate_failed", subject=config.subject, topic=topic)
            return fetched
        if len(generated) > len(fetched):
            fetched = _dedupe(generated)
    return fetched


async def load_question_batch(
    supply: QuestionSupply | None,
    config: SessionConfig,
    *,
    rng: random.Random | None = None,
    fallback: FallbackProvider | None = default_batch,
    grade: str | None = None,
) -> tuple[Question, ...]:
    """Resolve the fixed question batch for one session.

    Fetch errors and batches shorter than ``config.min_questions`` degrade to the
    fallback batch; ``QuestionSupplyError`` is raised only when neither source
    yields a usable batch.
    """
    resolved_rng = rng or random.Random()
    fetched: list[Question] = []
    if supply is not None:
        try:
            fetched = await _fetch_from_supply(supply, config=config, grade=grade)
        except Exception:
            logger.exception(
                "question_supply_fetch_failed",
                subject=config.subject,
                topic=supply_topic_for(config),
            )
            fetched = []

    if len(fetched) < config.min_questions:
        fallback_questions = list(fallback()) if fallback is not None else []
        if len(fallback_questions) < config.min_questions:
            logger.error(
                "question_supply_exhausted",
                subject=config.subject,
                fetched_count=len(fetched),
                fallback_count=len(fallback_questions),
                min_questions=config.min_questions,
            )
            raise QuestionSupplyError(SUPPLY_UNAVAILABLE_MESSAGE)
        logger.warning(
            "question_supply_fallback_used",
            subject=config.subject,
            fetched_count=len(fetched),
            min_questions=config.min_questions,
        )
        fetched = _dedupe(fallback_questions)

    if config.shuffle_on_load:
        resolved_rng.shuffle(fetched)
    return tuple(fetched[: config.question_count])
