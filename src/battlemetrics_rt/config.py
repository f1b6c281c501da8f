"""
Client settings. Defaults match the production feed; BMRT_* environment
variables (or a .env file) override them, constructor kwargs override both.
"""

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from battlemetrics_rt.transport.websocket import DEFAULT_URL


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BMRT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = DEFAULT_URL
    heartbeat_interval: float = Field(default=30.0, gt=0)
    heartbeat_timeout: float = Field(default=60.0, gt=0)
    # Seconds since the last received message within which a reconnect asks
    # for replay. None replays regardless of age.
    replay_window: Optional[float] = Field(default=300.0, gt=0)
    backoff_min_step: int = Field(default=5, ge=0)
    backoff_max_step: int = Field(default=10, ge=0)
    backoff_max_delay: float = Field(default=60.0, ge=0)

    @field_validator("replay_window", mode="before")
    @classmethod
    def _blank_window_means_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ("", "none"):
            return None
        return value
