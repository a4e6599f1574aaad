from __future__ import annotations

import httpx
import structlog

from looma.game.questions.types import InvalidQuestionError, Question
from looma.game.sessions.errors import QuestionSupplyError
from looma.services.supabase_rest import SupabaseRestConfig

logger = structlog.get_logger("looma.game.questions.supabase_supply")

QUESTIONS_TABLE_PATH = "rest/v1/ai_game_questions"
GENERATE_FUNCTION_PATH = "functions/v1/generate-questions"
DEFAULT_FETCH_LIMIT = 15


class SupabaseQuestionSupply:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        rest: SupabaseRestConfig,
        fetch_limit: int = DEFAULT_FETCH_LIMIT,
    ) -> None:
        self._client = client
        self._rest = rest
        self._fetch_limit = fetch_limit

    async def fetch(self, subject: str, topic: str) -> list[Question]:
        response = await self._client.get(
            self._rest.url(QUESTIONS_TABLE_PATH),
            params={
                "select": "*",
                "subject": f"eq.{subject}",
                "topic": f"eq.{topic}",
                "limit": str(self._fetch_limit),
            },
            headers=self._rest.headers(),
        )
        response.raise_for_status()
        rows = response.json()
        if not isinstance(rows, list):
            raise QuestionSupplyError("unexpected question payload shape")

        questions: list[Question] = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning("question_row_skipped", reason="not_an_object")
                continue
            try:
                questions.append(Question.from_row(row))
            except InvalidQuestionError as exc:
                logger.warning(
                    "question_row_skipped",
                    reason=str(exc),
                    question_id=row.get("id"),
                )
        logger.info(
            "questions_fetched",
            subject=subject,
            topic=topic,
            row_count=len(rows),
            question_count=len(questions),
        )
        return questions

    async def generate(
        self,
        subject: str,
        topic: str,
        *,
        count: int,
        grade: str | None = None,
    ) -> list[Question]:
        response = await self._client.post(
            self._rest.url(GENERATE_FUNCTION_PATH),
            json={"subject": subject, "topic": topic, "grade": grade, "count": count},
            headers=self._rest.headers(),
        )
        response.raise_for_status()
        body = response.json()
        if isinstance(body, dict) and body.get("error"):
            raise QuestionSupplyError(f"question generation service error: {body['error']}")
        logger.info("questions_generated", subject=subject, topic=topic, requested=count)
        return await self.fetch(subject, topic)
