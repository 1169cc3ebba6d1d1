"""Runtime configuration for the suggestion overlay."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ENV_PREFIX = "CARETPOP_"


@dataclass
class OverlayConfig:
    """Overlay controller settings.

    ``debug`` turns clamped caret indices into hard ``InvalidIndex``
    failures.
    """

    blur_grace_ms: int = 150
    max_visible: int = 5
    popup_max_width: int = 40
    max_stale_retries: int = 3
    debug: bool = False

    @property
    def blur_grace_seconds(self) -> float:
        return self.blur_grace_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OverlayConfig:
        """Build a config from ``CARETPOP_*`` environment variables."""
        env = os.environ if environ is None else environ
        config = cls()
        config.blur_grace_ms = _int_env(env, "BLUR_GRACE_MS", config.blur_grace_ms, 0)
        config.max_visible = _int_env(env, "MAX_VISIBLE", config.max_visible, 1)
        config.popup_max_width = _int_env(
            env, "POPUP_MAX_WIDTH", config.popup_max_width, 4
        )
        config.debug = env.get(ENV_PREFIX + "DEBUG") == "1"
        return config


def _int_env(env: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring %s%s=%r: not an integer", ENV_PREFIX, name, raw)
        return default
    if value < minimum:
        logger.warning("ignoring %s%s=%d: below %d", ENV_PREFIX, name, value, minimum)
        return default
    return value
