"""Runtime settings read from the environment.

A ``.env`` file in or above the working directory is loaded first, so local runs
can keep their settings out of the shell profile.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .exceptions import InvalidConfiguration
from .pipeline import DEFAULT_QUEUE_SIZE, DEFAULT_WORKERS

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class Settings:
    """Reactor settings.

    Attributes:
        queue_size: Training queue capacity (``REACTOR_QUEUE_SIZE``).
        workers: Training worker threads (``REACTOR_WORKERS``).
        max_messages: Messages of history to learn from (``REACTOR_MAX_MESSAGES``).
        debug: Verbose logging (``REACTOR_DEBUG``).
        json_logs: Emit JSON log lines instead of console output
            (``REACTOR_JSON_LOGS``).
    """

    queue_size: int = DEFAULT_QUEUE_SIZE
    workers: int = DEFAULT_WORKERS
    max_messages: int = 1000
    debug: bool = False
    json_logs: bool = False

    def __post_init__(self) -> None:
        if self.queue_size < 1:
            raise InvalidConfiguration(f"queue_size must be >= 1, got {self.queue_size}")
        if self.workers < 1:
            raise InvalidConfiguration(f"workers must be >= 1, got {self.workers}")
        if self.max_messages < 1:
            raise InvalidConfiguration(f"max_messages must be >= 1, got {self.max_messages}")

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str | Path] = None,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from ``REACTOR_*`` environment variables.

        Args:
            env_file: ``.env`` file to load; by default the nearest one
                found from the working directory upwards.
            dotenv: Load a ``.env`` file at all. Variables already set in
                the environment take precedence over the file.
        """
        if dotenv:
            load_dotenv(env_file or find_dotenv(usecwd=True))

        def get_int(key: str, default: int) -> int:
            value = os.getenv(f"REACTOR_{key}")
            if value:
                try:
                    return int(value)
                except ValueError:
                    pass
            return default

        def get_bool(key: str, default: bool) -> bool:
            value = os.getenv(f"REACTOR_{key}")
            if value is None or not value.strip():
                return default
            return value.strip().lower() in _TRUE_VALUES

        return cls(
            queue_size=get_int("QUEUE_SIZE", DEFAULT_QUEUE_SIZE),
            workers=get_int("WORKERS", DEFAULT_WORKERS),
            max_messages=get_int("MAX_MESSAGES", 1000),
            debug=get_bool("DEBUG", False),
            json_logs=get_bool("JSON_LOGS", False),
        )
