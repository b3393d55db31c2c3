"""Environment-driven defaults for the path tracer."""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    """Integer from the environment; unset, empty or malformed values give ``default``."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer, using %r", name, raw, default)
        return default


# Logging settings
LOG_LEVEL = os.getenv("PATHTRACER_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("PATHTRACER_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Render settings
DEFAULT_SEED = _int_env("PATHTRACER_SEED", 42)
DEFAULT_WORKERS: Optional[int] = _int_env("PATHTRACER_WORKERS", None)

# Progress bar on stderr while rows complete
SHOW_PROGRESS = os.getenv("PATHTRACER_PROGRESS", "1").lower() not in ("0", "false", "no")

__all__ = [
    "LOG_LEVEL",
    "LOG_FORMAT",
    "DEFAULT_SEED",
    "DEFAULT_WORKERS",
    "SHOW_PROGRESS",
]
