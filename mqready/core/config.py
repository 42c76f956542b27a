"""Settings for the readiness probe and metrics harness, loaded from the environment."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from MQREADY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MQREADY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Readiness signal written by the configuration process
    ready_file: str = Field(
        default="/run/runmqserver/ready",
        description="File whose existence means configuration has completed",
    )

    # Service listener checked by the network probe
    listener_host: str = Field(default="127.0.0.1", description="Listener address")
    listener_port: int = Field(default=1414, ge=1, le=65535, description="Listener port")

    # Metrics endpoint
    metrics_port: int = Field(
        default=9157, ge=1, le=65535, description="Container port of the metrics exporter"
    )
    metrics_path: str = Field(default="/metrics", description="Metrics endpoint path")
    scrape_timeout: float = Field(
        default=10.0, gt=0, description="HTTP timeout for a single scrape in seconds"
    )

    # Polling
    poll_interval: float = Field(
        default=5.0, gt=0, description="Seconds between metrics readiness attempts"
    )
    poll_deadline: float = Field(
        default=60.0, gt=0, description="Seconds before the metrics endpoint is given up on"
    )
    # The exporter keeps its first sample as a baseline and returns nothing for it.
    # This interval is an observed property of the exporter, not a contract.
    settle_interval: float = Field(
        default=15.0, ge=0, description="Seconds to wait after the discard scrape"
    )
    service_restart_grace: float = Field(
        default=10.0, ge=0, description="Seconds to wait after restarting the queue manager"
    )

    # Metric shape rules
    approved_metric_suffixes: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["bytes", "seconds", "percentage", "count", "total"],
        description="Every metric key must end with one of these",
    )
    required_metric_labels: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["qmgr"],
        description="Every sample must carry at least one of these labels",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="Log format: text or json")

    @field_validator("approved_metric_suffixes", "required_metric_labels", mode="before")
    @classmethod
    def parse_csv(cls, v):
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return lower


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()
