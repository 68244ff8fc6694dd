from __future__ import annotations

import os
from dataclasses import dataclass, field


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _s(name: str, default: str) -> str:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else default


@dataclass(frozen=True)
class KinGraphConfig:
    # Service boundary: payloads above this size are rejected with 413
    max_html_bytes: int = field(default_factory=lambda: _i("KINGRAPH_MAX_HTML_BYTES", 1024 * 1024))

    log_level: str = field(default_factory=lambda: _s("KINGRAPH_LOG_LEVEL", "INFO").upper())

    # Default location of the JSON record store used by the CLI
    store_path: str = field(default_factory=lambda: _s("KINGRAPH_STORE_PATH", "./data/kingraph.json"))

    # Timeout (seconds) when the CLI fetches a page with --url
    http_timeout: float = field(default_factory=lambda: _f("KINGRAPH_HTTP_TIMEOUT", 30.0))


def load_config() -> KinGraphConfig:
    """Read configuration from the current environment."""
    return KinGraphConfig()


CONFIG = KinGraphConfig()
