"""Pydantic models for Terminus configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ApiConfig(BaseModel):
    """Location of the hosting platform API."""

    protocol: str = "https"
    host: str = "terminus.pantheon.io"
    port: int = 443
    base_path: str = "/api"
    timeout: float = 30.0
    user_agent: str = "terminus-client/0.1.0"

    @property
    def base_url(self) -> str:
        default_port = (self.protocol == "https" and self.port == 443) or (
            self.protocol == "http" and self.port == 80
        )
        netloc = self.host if default_port else f"{self.host}:{self.port}"
        return f"{self.protocol}://{netloc}/{self.base_path.strip('/')}".rstrip("/")


class AuthConfig(BaseModel):
    """Session credentials produced by a prior login."""

    session_token: str = ""
    user_id: str = ""


class WorkflowPollConfig(BaseModel):
    """How long-running workflows are polled to completion."""

    poll_interval: float = Field(default=3.0, gt=0)
    max_wait: float | None = Field(default=None, gt=0)  # None = unbounded
    fetch_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)


class TerminusIdentity(BaseModel):
    """Top-level client identity metadata."""

    name: str = "Terminus"
    version: str = "0.1.0"


class TerminusConfig(BaseModel):
    """Root configuration model for .terminus.yaml."""

    terminus: TerminusIdentity = Field(default_factory=TerminusIdentity)
    api: ApiConfig = Field(default_factory=ApiConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    workflows: WorkflowPollConfig = Field(default_factory=WorkflowPollConfig)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
