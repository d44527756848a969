"""Runtime settings for puzzle generation.

Defaults can be overridden through PUZZLEGEN_* environment variables,
and the CLI overrides those again with its own flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_DEPTH = 12
DEFAULT_ENGINE_TIMEOUT = 30.0
DEFAULT_MAX_ENGINES = 4
DEFAULT_MAX_PUZZLES = 10
DEFAULT_MAX_ALTERNATIVES = 3

_ENV_PREFIX = "PUZZLEGEN_"


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.environ.get(_ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{_ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(_ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{_ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{_ENV_PREFIX}{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Engine and generation limits for one process."""

    stockfish_path: str | None = None
    depth: int = DEFAULT_DEPTH
    engine_timeout: float = DEFAULT_ENGINE_TIMEOUT
    max_engines: int = DEFAULT_MAX_ENGINES
    max_puzzles: int = DEFAULT_MAX_PUZZLES
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from PUZZLEGEN_* environment variables.

        Raises:
            ValueError: If a variable is set to an invalid value.
        """
        return cls(
            stockfish_path=os.environ.get(_ENV_PREFIX + "STOCKFISH_PATH") or None,
            depth=_env_int("DEPTH", DEFAULT_DEPTH, 1),
            engine_timeout=_env_float("ENGINE_TIMEOUT", DEFAULT_ENGINE_TIMEOUT),
            max_engines=_env_int("MAX_ENGINES", DEFAULT_MAX_ENGINES, 1),
            max_puzzles=_env_int("MAX_PUZZLES", DEFAULT_MAX_PUZZLES, 1),
            max_alternatives=_env_int("MAX_ALTERNATIVES", DEFAULT_MAX_ALTERNATIVES, 0),
        )

    def override(self, **changes) -> Settings:
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
