"""
Run configuration — the immutable settings for one update run.

Built once by the CLI from its arguments plus environment overrides:

    TOOLDL_API_URL   release API base URL (default: https://api.github.com)
    TOOLDL_TIMEOUT   network timeout in seconds (default: 30)

Building a RunConfig performs no I/O; credential lookup happens
separately in ``services.credentials.resolve_credential``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

REGISTRY_FILE = "tools.txt"
SERVICE_NAME = "tooldl"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


class ConfigError(Exception):
    """Raised when an environment override is invalid."""


@dataclass(frozen=True)
class RunConfig:
    """Settings for a single run."""

    user: str
    token: str | None
    root: Path
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def registry_path(self) -> Path:
        return self.root / REGISTRY_FILE


def load_run_config(
    user: str,
    token: str | None = None,
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> RunConfig:
    """Build a RunConfig from CLI values and environment overrides.

    Args:
        user: Identity the credential is stored under.
        token: Optional token given on the command line.
        path: Tools root directory (default: cwd).
        env: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: If ``TOOLDL_TIMEOUT`` is not a positive number.
    """
    env = os.environ if env is None else env

    root = Path(path) if path else Path.cwd()
    api_url = env.get("TOOLDL_API_URL") or DEFAULT_API_URL

    raw_timeout = env.get("TOOLDL_TIMEOUT")
    timeout = DEFAULT_TIMEOUT
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"TOOLDL_TIMEOUT must be a number, got '{raw_timeout}'") from None
        if timeout <= 0:
            raise ConfigError(f"TOOLDL_TIMEOUT must be positive, got {raw_timeout}")

    config = RunConfig(
        user=user,
        token=token,
        root=root.resolve(),
        api_url=api_url.rstrip("/"),
        timeout=timeout,
    )
    logger.debug("Run config: root=%s api=%s timeout=%.0fs", config.root, config.api_url, config.timeout)
    return config
