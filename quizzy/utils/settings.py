"""Runtime settings assembled from constants and environment overrides."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from quizzy.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizzy.constants.quiz_constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LEADERBOARD_SIZE,
    DEFAULT_QUIZ_LENGTH,
)

log = logging.getLogger(__name__)

_DEFAULT_QUESTIONS_PATH = Path("data/questions.txt")
_DEFAULT_RESULTS_PATH = Path("data/results.jsonl")


@dataclass(frozen=True, slots=True)
class AppSettings:
    quiz_length: int = DEFAULT_QUIZ_LENGTH
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE
    history_limit: int = DEFAULT_HISTORY_LIMIT
    questions_path: Path = _DEFAULT_QUESTIONS_PATH
    results_path: Path = _DEFAULT_RESULTS_PATH
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    shuffle_seed: int | None = None

    def __post_init__(self) -> None:
        for name in ("quiz_length", "leaderboard_size", "history_limit"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer.")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535.")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv_path: Path | None = None,
    ) -> "AppSettings":
        """Build settings from QUIZZY_* variables.

        When ``environ`` is omitted the process environment is used, after
        loading a ``.env`` file if one exists.
        """
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path)
            environ = os.environ

        settings = cls(
            quiz_length=_int_setting(environ, "QUIZZY_QUIZ_LENGTH", DEFAULT_QUIZ_LENGTH),
            leaderboard_size=_int_setting(environ, "QUIZZY_LEADERBOARD_SIZE", DEFAULT_LEADERBOARD_SIZE),
            history_limit=_int_setting(environ, "QUIZZY_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
            questions_path=Path(environ.get("QUIZZY_QUESTIONS_PATH", str(_DEFAULT_QUESTIONS_PATH))),
            results_path=Path(environ.get("QUIZZY_RESULTS_PATH", str(_DEFAULT_RESULTS_PATH))),
            host=environ.get("QUIZZY_HOST", DEFAULT_HOST),
            port=_int_setting(environ, "QUIZZY_PORT", DEFAULT_PORT),
            log_level=environ.get("QUIZZY_LOG_LEVEL", "INFO").upper(),
            shuffle_seed=_optional_int_setting(environ, "QUIZZY_SHUFFLE_SEED"),
        )
        log.debug("Loaded settings: %s", settings)
        return settings


def _int_setting(environ: Mapping[str, str], key: str, default: int) -> int:
    raw_value = environ.get(key)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw_value!r}.") from exc


def _optional_int_setting(environ: Mapping[str, str], key: str) -> int | None:
    raw_value = environ.get(key)
    if raw_value is None or not raw_value.strip():
        return None
    return _int_setting(environ, key, 0)
