"""
Configuration for hexpunch sessions.

Values come from keyword arguments or from ``HEXPUNCH_`` prefixed
environment variables (``HEXPUNCH_INITIAL_CAPACITY``,
``HEXPUNCH_GROWTH_CHUNK``, ``HEXPUNCH_BYTES_PER_LINE`` and
``HEXPUNCH_LOG_LEVEL``).
"""

import logging
import os
from dataclasses import dataclass
from typing import Final, Mapping, Optional

from .errors import ConfigError

ENV_PREFIX: Final[str] = "HEXPUNCH_"

DEFAULT_INITIAL_CAPACITY: Final[int] = 64 * 1024
DEFAULT_GROWTH_CHUNK: Final[int] = 1024
DEFAULT_BYTES_PER_LINE: Final[int] = 32
DEFAULT_LOG_LEVEL: Final[str] = "WARNING"

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default

    try:
        value = int(raw.strip(), 0)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None

    if value <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {value}")

    return value


@dataclass
class EditorConfig:
    """Tunable sizes used by buffers and dump rendering."""

    initial_capacity: int = DEFAULT_INITIAL_CAPACITY
    growth_chunk: int = DEFAULT_GROWTH_CHUNK
    bytes_per_line: int = DEFAULT_BYTES_PER_LINE
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        for name in ('initial_capacity', 'growth_chunk', 'bytes_per_line'):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")

        if self.bytes_per_line % 4:
            raise ConfigError("bytes_per_line must be a multiple of 4")

        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EditorConfig':
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            EditorConfig: Configuration with defaults for unset variables
        """

        env = os.environ if environ is None else environ

        return cls(
            initial_capacity=_env_int(env, "INITIAL_CAPACITY", DEFAULT_INITIAL_CAPACITY),
            growth_chunk=_env_int(env, "GROWTH_CHUNK", DEFAULT_GROWTH_CHUNK),
            bytes_per_line=_env_int(env, "BYTES_PER_LINE", DEFAULT_BYTES_PER_LINE),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the package logger and set its level."""

    logger = logging.getLogger("hexpunch")
    logger.setLevel((level or EditorConfig.from_env().log_level).upper())

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
