"""Configuration for button-workflow.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkflowSettings(BaseSettings):
    """Settings shared by the CLI and the server.

    Environment variables:
    - WORKFLOW_STORAGE_PATH   (optional)
    - WORKFLOW_ACTION_DELAY_MS (optional)
    - LOG_LEVEL               (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    storage_path: Path = Field(
        default=Path("workflow_state/storage.json"),
        validation_alias="WORKFLOW_STORAGE_PATH",
        description="JSON file backing the durable key-value store",
    )

    action_delay_ms: int = Field(
        default=200,
        ge=0,
        validation_alias="WORKFLOW_ACTION_DELAY_MS",
        description="Pause between two consecutive actions of a run (milliseconds)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def action_delay_seconds(self) -> float:
        return self.action_delay_ms / 1000
