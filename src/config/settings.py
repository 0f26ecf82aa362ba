# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for store selection, staleness thresholds,
portal transport and logging settings.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portalsync.core.errors import PortalSyncError
from portalsync.core.models import ResourceKind


class ConfigurationError(PortalSyncError):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Durable store ===
    store_backend: Literal["json", "sqlite", "redis", "memory"] = "json"
    store_root: Path = Path("~/.portalsync/store")
    store_redis_url: str = ""

    # === Staleness (seconds; None = never refresh in background) ===
    feed_refresh_after_s: int | None = 0
    personal_info_refresh_after_s: int | None = None
    attendance_refresh_after_s: int | None = 300
    report_card_refresh_after_s: int | None = 900
    subjects_refresh_after_s: int | None = 900
    timetable_refresh_after_s: int | None = 900
    fee_receipts_refresh_after_s: int | None = 86400
    sessions_refresh_after_s: int | None = 86400
    feed_min_check_interval_s: int = 300

    # === Portal transport ===
    portal_base_url: str = ""
    portal_request_timeout_s: float = 30.0
    feed_page_size: int = 20

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "5MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("feed_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("feed_page_size must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.store_backend == "redis" and not self.store_redis_url:
            errors.append("STORE_REDIS_URL must be set when STORE_BACKEND=redis")

        if self.feed_min_check_interval_s < 0:
            errors.append("FEED_MIN_CHECK_INTERVAL_S must be >= 0")

        for kind, seconds in self._refresh_seconds().items():
            if seconds is not None and seconds < 0:
                errors.append(f"{kind.upper()}_REFRESH_AFTER_S must be >= 0")

        if self.portal_request_timeout_s <= 0:
            errors.append("PORTAL_REQUEST_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def _refresh_seconds(self) -> dict[ResourceKind, int | None]:
        return {
            "feed": self.feed_refresh_after_s,
            "personal_info": self.personal_info_refresh_after_s,
            "attendance": self.attendance_refresh_after_s,
            "report_card": self.report_card_refresh_after_s,
            "subjects": self.subjects_refresh_after_s,
            "timetable": self.timetable_refresh_after_s,
            "fee_receipts": self.fee_receipts_refresh_after_s,
            "sessions": self.sessions_refresh_after_s,
        }

    def refresh_after(self, kind: ResourceKind) -> timedelta | None:
        """Background-refresh threshold for a resource kind."""
        seconds = self._refresh_seconds()[kind]
        return None if seconds is None else timedelta(seconds=seconds)

    @property
    def feed_min_check_interval(self) -> timedelta:
        return timedelta(seconds=self.feed_min_check_interval_s)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
