"""Engine tunables read from ``MODAL_LIBRARY_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "MODAL_LIBRARY_"

_TRUTHY = frozenset({"1", "true", "yes", "on"})

MAX_COUNT = 9999


def env_value(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    return env.get(f"{ENV_PREFIX}{name}")


def env_flag(name: str, default: bool, environ: Optional[Mapping[str, str]] = None) -> bool:
    raw = env_value(name, environ)
    if raw is None:
        return default
    return raw.lower() in _TRUTHY


def env_int(name: str, fallback: int, environ: Optional[Mapping[str, str]] = None) -> int:
    """Positive integer from the environment; anything else yields ``fallback``."""

    raw = env_value(name, environ)
    if raw is None:
        return fallback
    try:
        value = int(raw)
    except ValueError:
        return fallback
    return value if value > 0 else fallback


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Sizes and limits shared by the session and the modes."""

    visible_height: int = 20
    count_limit: int = MAX_COUNT
    jump_limit: int = 100
    history_limit: int = 100
    copy_suffix: str = " (copy)"
    clipboard: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        defaults = cls()
        suffix = env_value("COPY_SUFFIX", environ)
        return cls(
            visible_height=env_int("VISIBLE_HEIGHT", defaults.visible_height, environ),
            count_limit=min(env_int("COUNT_LIMIT", defaults.count_limit, environ), MAX_COUNT),
            jump_limit=env_int("JUMP_LIMIT", defaults.jump_limit, environ),
            history_limit=env_int("HISTORY_LIMIT", defaults.history_limit, environ),
            copy_suffix=defaults.copy_suffix if suffix is None else suffix,
            clipboard=env_flag("CLIPBOARD", defaults.clipboard, environ),
        )


__all__ = ["ENV_PREFIX", "MAX_COUNT", "EngineConfig", "env_flag", "env_int", "env_value"]
