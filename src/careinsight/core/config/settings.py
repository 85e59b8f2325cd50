"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """CareInsight server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of patient data.
    careinsight_host: str = "127.0.0.1"
    careinsight_port: int = 8001
    careinsight_log_level: str = "info"
    careinsight_allow_insecure_bind: bool = False

    # Storage (tracking record store)
    db_path: str = "~/.careinsight/tracking.db"

    # Insight catalog; empty means the catalog bundled with the package
    insights_catalog_path: str = ""

    # Insight derivation
    insight_window_days: int = 7
    rescue_medication_question_id: int = 1
    # isolate: a failing insight is returned with an empty series and an error
    # fail_fast: the first data access failure fails the whole call
    insight_failure_policy: Literal["isolate", "fail_fast"] = "isolate"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
