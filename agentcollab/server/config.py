"""
Server configuration for agentcollab.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


@dataclass
class ServerConfig:
    """Configuration for the agentcollab server."""

    host: str = "0.0.0.0"
    port: int = 8000

    # None keeps workflows and training data in memory.
    database_url: Optional[str] = None

    cors_origins: list = field(default_factory=lambda: ["*"])

    debug: bool = False

    log_level: str = "info"

    # Overrides every persona's default model when set.
    model: Optional[str] = None

    request_timeout: Optional[float] = None
    step_timeout: Optional[float] = None
    isolate_failures: bool = False

    # Per-user sessions kept in memory; the least recently used is dropped
    # past this limit, along with its agent memory and in-memory workflows.
    max_sessions: int = 1000

    api_version: str = "1.0"

    def __post_init__(self):
        if self.database_url is None:
            self.database_url = os.environ.get("DATABASE_URL") or None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create configuration from environment variables."""
        return cls(
            host=os.environ.get("AGENTCOLLAB_HOST", "0.0.0.0"),
            port=int(os.environ.get("AGENTCOLLAB_PORT", "8000")),
            database_url=os.environ.get("DATABASE_URL"),
            debug=os.environ.get("AGENTCOLLAB_DEBUG", "").lower() == "true",
            log_level=os.environ.get("AGENTCOLLAB_LOG_LEVEL", "info"),
            model=os.environ.get("AGENTCOLLAB_MODEL") or None,
            request_timeout=_optional_float(os.environ.get("AGENTCOLLAB_REQUEST_TIMEOUT")),
            step_timeout=_optional_float(os.environ.get("AGENTCOLLAB_STEP_TIMEOUT")),
            isolate_failures=os.environ.get("AGENTCOLLAB_ISOLATE_FAILURES", "").lower() == "true",
            max_sessions=int(os.environ.get("AGENTCOLLAB_MAX_SESSIONS", "1000")),
        )
