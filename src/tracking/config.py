"""Runtime settings for basket tracking, read from the environment."""

import os
from dataclasses import dataclass
from datetime import timedelta


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    idle_minutes: int = 30
    sweep_interval_seconds: int = 300
    audit_attempts: int = 2
    catalog_path: str | None = None
    audit_log_path: str | None = None
    qr_scheme: str = "smartbasket"

    @property
    def idle_threshold(self) -> timedelta:
        return timedelta(minutes=self.idle_minutes)


def get_settings() -> Settings:
    """Build settings from ``SMARTBASKET_*`` environment variables."""
    return Settings(
        idle_minutes=_env_int("SMARTBASKET_IDLE_MINUTES", 30),
        sweep_interval_seconds=_env_int("SMARTBASKET_SWEEP_INTERVAL_SECONDS", 300),
        audit_attempts=max(1, _env_int("SMARTBASKET_AUDIT_ATTEMPTS", 2)),
        catalog_path=os.getenv("SMARTBASKET_CATALOG_PATH") or None,
        audit_log_path=os.getenv("SMARTBASKET_AUDIT_LOG_PATH") or None,
        qr_scheme=os.getenv("SMARTBASKET_QR_SCHEME") or "smartbasket",
    )
