from __future__ import annotations

import httpx
import structlog

from looma.game.sessions.errors import SessionRecordError
from looma.game.sessions.recorder import SessionRecord
from looma.services.supabase_rest import SupabaseRestConfig

logger = structlog.get_logger("looma.game.sessions.supabase_recorder")

GAME_SESSIONS_TABLE_PATH = "rest/v1/user_game_sessions"
USERS_TABLE_PATH = "rest/v1/users"
LEADERBOARD_RPC_PATH = "rest/v1/rpc/upsert_leaderboard_entry"
LEADERBOARD_CATEGORIES: tuple[str, ...] = ("weekly", "monthly", "all_time")
REWARD_BALANCE_COLUMN = "looma_cells"


class SupabaseSessionRecorder:
    """Persists finished sessions, credits leaderboard points and the reward balance.

    Only the session insert decides success; leaderboard updates and the reward
    credit are best effort.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        rest: SupabaseRestConfig,
        user_id: str,
        leaderboard_categories: tuple[str, ...] = LEADERBOARD_CATEGORIES,
    ) -> None:
        self._client = client
        self._rest = rest
        self._user_id = user_id
        self._leaderboard_categories = leaderboard_categories

    async def record(self, record: SessionRecord) -> None:
        try:
            response = await self._client.post(
                self._rest.url(GAME_SESSIONS_TABLE_PATH),
                json={"user_id": self._user_id, **record.as_payload()},
                headers=self._rest.headers(prefer="return=minimal"),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SessionRecordError("failed to save game session") from exc

        for category in self._leaderboard_categories:
            await self._update_rank(category=category, points=record.points_earned)
        if record.reward_points > 0:
            await self._credit_reward(points=record.reward_points)

    async def _update_rank(self, *, category: str, points: int) -> bool:
        try:
            response = await self._client.post(
                self._rest.url(LEADERBOARD_RPC_PATH),
                json={
                    "user_uuid": self._user_id,
                    "entry_category": category,
                    "points_earned": points,
                },
                headers=self._rest.headers(),
            )
            response.raise_for_status()
            return True
        except httpx.HTTPError:
            logger.exception(
                "leaderboard_update_failed",
                entry_category=category,
                user_id=self._user_id,
            )
            return False

    async def _credit_reward(self, *, points: int) -> bool:
        # Read-modify-write on the user's balance; PostgREST has no increment.
        user_filter = {"id": f"eq.{self._user_id}"}
        try:
            response = await self._client.get(
                self._rest.url(USERS_TABLE_PATH),
                params={**user_filter, "select": REWARD_BALANCE_COLUMN},
                headers=self._rest.headers(),
            )
            response.raise_for_status()
            rows = response.json()
            if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
                logger.warning("reward_credit_skipped", reason="user_not_found", user_id=self._user_id)
                return False
            balance = int(rows[0].get(REWARD_BALANCE_COLUMN) or 0)

            response = await self._client.patch(
                self._rest.url(USERS_TABLE_PATH),
                params=user_filter,
                json={REWARD_BALANCE_COLUMN: balance + points},
                headers=self._rest.headers(prefer="return=minimal"),
            )
            response.raise_for_status()
        except (httpx.HTTPError, ValueError):
            logger.exception("reward_credit_failed", reward_points=points, user_id=self._user_id)
            return False
        logger.info(
            "reward_credited",
            reward_points=points,
            balance=balance + points,
            user_id=self._user_id,
        )
        return True
