from __future__ import annotations

from dataclasses import dataclass

from looma.core.config import Settings, get_settings


@dataclass(frozen=True, slots=True)
class SupabaseRestConfig:
    base_url: str
    api_key: str
    access_token: str = ""

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("Supabase base_url is not configured")
        if not self.api_key:
            raise ValueError("Supabase api_key is not configured")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SupabaseRestConfig:
        resolved = settings or get_settings()
        return cls(
            base_url=resolved.supabase_url,
            api_key=resolved.supabase_anon_key,
            access_token=resolved.supabase_access_token,
        )

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self, *, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer is not None:
            headers["Prefer"] = prefer
        return headers
