"""
Configuration for the UCI adapter.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chess_devtools.uci.bridge import (
    DEFAULT_BOUND_MULTIPLIER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT,
    DEFAULT_URL,
)

ENV_URL = "MOVE_SERVICE_URL"
ENV_TIMEOUT = "MOVE_SERVICE_TIMEOUT"

DEFAULT_LOG_FILE = Path.home() / ".chess_devtools" / "uci-adapter.log"


@dataclass
class AdapterConfig:
    """Settings for one adapter process.

    Values come from the environment (see from_env) and can be overridden
    on the command line.
    """

    # Move service
    url: str = DEFAULT_URL
    """Endpoint the move requests are POSTed to"""

    timeout: float = DEFAULT_TIMEOUT
    """Per-request timeout in seconds"""

    bound_multiplier: float = DEFAULT_BOUND_MULTIPLIER
    """A whole move request is abandoned after timeout * bound_multiplier"""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    """Requests per turn before illegal answers are given up on"""

    fallback_on_failure: bool = True
    """Play the first legal move when the service fails, instead of no reply"""

    # Identity
    name: str = "Gnomes"
    author: str = "Gnomes"

    # Logging
    log_file: Optional[Path] = DEFAULT_LOG_FILE
    """Diagnostic log file (None = stderr)"""

    wire_log_file: Optional[Path] = None
    """If set, every raw input and output line is mirrored here"""

    debug: bool = False
    """Log at DEBUG level instead of INFO"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.log_file is not None:
            self.log_file = Path(self.log_file)
        if self.wire_log_file is not None:
            self.wire_log_file = Path(self.wire_log_file)

        if not self.url.startswith(("http://", "https://")):
            raise ValueError(f"url must be an http(s) URL, got {self.url!r}")

        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

        if self.bound_multiplier < 1:
            raise ValueError(
                f"bound_multiplier must be at least 1, got {self.bound_multiplier}"
            )

        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

        if not self.name.strip() or not self.author.strip():
            raise ValueError("name and author must not be empty")

    @classmethod
    def from_env(cls, **overrides) -> "AdapterConfig":
        """
        Build a config from MOVE_SERVICE_URL / MOVE_SERVICE_TIMEOUT.

        Keyword arguments that are not None take precedence over the
        environment.
        """
        values = {}
        if os.environ.get(ENV_URL):
            values["url"] = os.environ[ENV_URL]
        if os.environ.get(ENV_TIMEOUT):
            try:
                values["timeout"] = float(os.environ[ENV_TIMEOUT])
            except ValueError:
                raise ValueError(
                    f"{ENV_TIMEOUT} must be a number of seconds, got {os.environ[ENV_TIMEOUT]!r}"
                )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
