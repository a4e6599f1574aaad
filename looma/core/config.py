from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    supabase_url: str = Field(default="", alias="SUPABASE_URL")
    supabase_anon_key: str = Field(default="", alias="SUPABASE_ANON_KEY")
    supabase_access_token: str = Field(default="", alias="SUPABASE_ACCESS_TOKEN")
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    battle_question_count: int = Field(default=5, alias="BATTLE_QUESTION_COUNT")
    battle_countdown_seconds: int = Field(default=3, alias="BATTLE_COUNTDOWN_SECONDS")
    battle_question_time_limit_seconds: int = Field(
        default=15,
        alias="BATTLE_QUESTION_TIME_LIMIT_SECONDS",
    )
    battle_result_display_seconds: float = Field(default=2.0, alias="BATTLE_RESULT_DISPLAY_SECONDS")
    battle_opponent_answered_probability: float = Field(
        default=0.6,
        alias="BATTLE_OPPONENT_ANSWERED_PROBABILITY",
    )
    battle_opponent_timeout_probability: float = Field(
        default=0.5,
        alias="BATTLE_OPPONENT_TIMEOUT_PROBABILITY",
    )

    solo_question_count: int = Field(default=10, alias="SOLO_QUESTION_COUNT")
    solo_session_time_limit_seconds: int = Field(default=300, alias="SOLO_SESSION_TIME_LIMIT_SECONDS")
    solo_result_display_seconds: float = Field(default=1.4, alias="SOLO_RESULT_DISPLAY_SECONDS")
    solo_points_incorrect: int = Field(default=-2, alias="SOLO_POINTS_INCORRECT")

    points_correct: int = Field(default=10, alias="POINTS_CORRECT")
    subscription_multiplier: int = Field(default=2, alias="SUBSCRIPTION_MULTIPLIER")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
