"""Environment-driven settings for resource-spine reconcilers.

Reconciler tuning (stabilization bounds, resume delays, request batch sizes)
and client wiring (region, endpoint) are operator concerns, so they are read
from ``RESOURCE_SPINE_*`` environment variables or a ``.env`` file and
validated once at startup.

Examples:
    >>> from resource_spine.core.settings import ReconcilerSettings
    >>> settings = ReconcilerSettings(stabilization_max_attempts=5)
    >>> settings.callback_delay_seconds
    30

Tags:
    settings, configuration, pydantic, environment, resource-spine
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconcilerSettings(BaseSettings):
    """Settings shared by every reconciler handler.

    Fields
    ──────
    log_level                  : Structlog log level
    json_logs                  : Force JSON (True) / console (False) logs; None auto-detects
    region_name                : AWS region for the RDS/EC2 clients
    endpoint_url               : Override endpoint (LocalStack, moto server)
    stabilization_max_attempts : Probe bound per logical operation
    callback_delay_seconds     : Base resume delay handed back to the scheduler
    max_callback_delay_seconds : Cap for exponential resume delays
    backoff                    : Resume delay policy
    probing_enabled            : When False, stabilization steps skip probing
    rules_file                 : YAML rule tables layered over the packaged ones
    max_parameters_per_request : Batch size for parameter modify/reset calls
    """

    model_config = SettingsConfigDict(
        env_prefix="RESOURCE_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Client ───────────────────────────────────────────────────
    region_name: str | None = None
    endpoint_url: str | None = None

    # ── Orchestration ────────────────────────────────────────────
    stabilization_max_attempts: int = Field(default=3, ge=1)
    callback_delay_seconds: int = Field(default=30, ge=0)
    max_callback_delay_seconds: int = Field(default=300, ge=0)
    backoff: Literal["constant", "exponential"] = "constant"
    probing_enabled: bool = True

    # ── Rules ────────────────────────────────────────────────────
    rules_file: Path | None = Field(
        default=None,
        description="Optional YAML file with rule sets layered over the packaged tables",
    )

    # ── RDS ──────────────────────────────────────────────────────
    max_parameters_per_request: int = Field(default=20, ge=1)
