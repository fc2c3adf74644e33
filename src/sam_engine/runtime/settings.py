"""Engine settings read from ``SAM_ENGINE_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .telemetry import env, env_flag

# Two read buffers worth of runes, as in the editors this engine grew out of.
DEFAULT_MAX_COMMAND = 2 * 8192
DEFAULT_BACKWARD_WINDOW = 500


def _env_int(name: str, fallback: int) -> int:
    raw = env(name)
    if raw is None:
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


@dataclass(slots=True)
class EngineSettings:
    """Tunables shared by the driver, the regex wrapper and pipe commands."""

    max_command: int = DEFAULT_MAX_COMMAND
    shell: str = "/bin/sh"
    backward_window: int = DEFAULT_BACKWARD_WINDOW
    trace: bool = False

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            max_command=_env_int("MAX_COMMAND", DEFAULT_MAX_COMMAND),
            shell=env("SHELL") or os.environ.get("SHELL") or "/bin/sh",
            backward_window=max(1, _env_int("BACKWARD_WINDOW", DEFAULT_BACKWARD_WINDOW)),
            trace=env_flag("TRACE", False),
        )


__all__ = ["EngineSettings", "DEFAULT_MAX_COMMAND", "DEFAULT_BACKWARD_WINDOW"]
