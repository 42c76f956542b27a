"""
System Test Configuration.

Controls which image is tested, how the queue manager inside it is
configured, and where failure reports go.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _get_container_env() -> dict[str, str]:
    """Environment passed to every container under test."""
    qmgr = os.getenv("TEST_QMGR_NAME", "qm1")
    return {
        "LICENSE": "accept",
        "MQ_QMGR_NAME": qmgr,
        "MQ_ENABLE_METRICS": "true",
    }


@dataclass
class SystemTestConfig:
    """Configuration for system tests."""

    # Image under test
    image: str = "ibmcom/mq:latest"

    # Queue manager configured in the container
    qmgr_name: str = "qm1"
    service_user: str = "mqm"

    container_env: dict[str, str] = field(default_factory=_get_container_env)

    # Host the published metrics port is reachable on
    metrics_host: str = "localhost"

    # In-container readiness gate
    readiness_command: list[str] = field(default_factory=lambda: ["chkmqready"])
    readiness_interval: float = 1.0
    readiness_deadline: float = 120.0

    # Load scenarios
    rapid_fire_count: int = 30
    rapid_fire_pause: float = 1.0
    rapid_fire_cooldown: float = 11.0
    slow_poll_count: int = 2
    slow_poll_pause: float = 30.0

    # Failure reports
    report_dir: str = "test-results/scenario-reports"

    @classmethod
    def from_env(cls) -> "SystemTestConfig":
        """Load config from environment variables."""
        return cls(
            image=os.getenv("TEST_IMAGE", "ibmcom/mq:latest"),
            qmgr_name=os.getenv("TEST_QMGR_NAME", "qm1"),
            metrics_host=os.getenv("TEST_METRICS_HOST", "localhost"),
            readiness_deadline=float(os.getenv("TEST_READINESS_TIMEOUT", "120")),
            report_dir=os.getenv("TEST_REPORT_DIR", "test-results/scenario-reports"),
        )


# Global default config instance
_config: SystemTestConfig | None = None


def get_config() -> SystemTestConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = SystemTestConfig.from_env()
    return _config
