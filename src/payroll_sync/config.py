"""Configuration management for payroll sync."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str | None
    payroll_api_base: str
    sync_concurrency: int
    catalog_timeout_seconds: float
    employee_timeout_seconds: float
    timesheet_timeout_seconds: float
    leave_timeout_seconds: float
    host: str
    port: int
    debug: bool

    def __post_init__(self) -> None:
        if self.sync_concurrency < 1:
            raise ValueError("sync_concurrency must be at least 1")

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            payroll_api_base=os.getenv(
                "PAYROLL_API_BASE", "https://api.xero.com/payroll.xro/1.0"
            ).rstrip("/"),
            sync_concurrency=int(os.getenv("SYNC_CONCURRENCY", "4")),
            catalog_timeout_seconds=float(os.getenv("CATALOG_TIMEOUT_SECONDS", "15")),
            employee_timeout_seconds=float(os.getenv("EMPLOYEE_TIMEOUT_SECONDS", "10")),
            timesheet_timeout_seconds=float(os.getenv("TIMESHEET_TIMEOUT_SECONDS", "15")),
            leave_timeout_seconds=float(os.getenv("LEAVE_TIMEOUT_SECONDS", "20")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
