"""Configuration and constants."""

from __future__ import annotations

import os
import logging
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from .errors import (
    ConfigError,
    InvalidConfigValueError,
    InvalidPathError,
    MissingApiKeyError,
    MissingFieldError,
)

# Load environment variables once
load_dotenv()

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"

# Supported file extensions
SUPPORTED_EXTENSIONS = {".yml", ".yaml"}

# Translated files go to <localisation_dir>/<target_lang>/<TARGET_SUBDIR>
TARGET_SUBDIR = "replace"

# Largest source file accepted for translation
MAX_FILE_SIZE = 50 * 1024 * 1024


@dataclass(frozen=True)
class ClientSettings:
    """Backend connection and behaviour settings, fixed for one run."""

    # API settings (OpenAI-compatible)
    api_base: str = "https://api.deepseek.com"
    model: str = "deepseek-reasoner"
    temperature: float = 0.7

    # 大模型翻译可能耗时很久，默认超时 10 分钟
    timeout_secs: float = 600
    max_retries: int = 3
    max_tokens: Optional[int] = None

    # Chunk budget in estimated tokens; about a third of the model context
    max_chunk_tokens: int = 4000
    stream: bool = False
    concurrency: int = 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientSettings":
        """Build settings from a config table, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown client_settings keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def with_overrides(self, **changes) -> "ClientSettings":
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> List[str]:
        """
        Validate settings.

        Returns:
            Every problem found; empty if valid
        """
        problems: List[str] = []

        if not self.api_base:
            problems.append("api_base must not be empty")
        if not self.model:
            problems.append("model must not be empty")
        if not 0.0 <= self.temperature <= 2.0:
            problems.append(f"temperature must be between 0.0 and 2.0, got {self.temperature}")
        if self.timeout_secs <= 0:
            problems.append(f"timeout_secs must be greater than 0, got {self.timeout_secs}")
        if self.max_retries < 0:
            problems.append(f"max_retries must not be negative, got {self.max_retries}")
        if self.max_tokens is not None and self.max_tokens < 1:
            problems.append(f"max_tokens must be at least 1, got {self.max_tokens}")
        if self.max_chunk_tokens < 100:
            problems.append(f"max_chunk_tokens must be at least 100, got {self.max_chunk_tokens}")
        if self.concurrency < 1:
            problems.append(f"concurrency must be at least 1, got {self.concurrency}")

        return problems


@dataclass
class TranslationTask:
    """One source language -> target languages job over a localisation dir."""

    source_lang: str
    target_langs: List[str]
    localisation_dir: Path
    glossaries: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "TranslationTask":
        if "localisation_dir" not in data:
            raise MissingFieldError("localisation_dir")

        localisation_dir = Path(data["localisation_dir"]).expanduser()
        if base_dir is not None and not localisation_dir.is_absolute():
            localisation_dir = base_dir / localisation_dir

        return cls(
            source_lang=str(data.get("source_lang", "")).strip(),
            target_langs=[str(t).strip() for t in data.get("target_langs", []) if str(t).strip()],
            localisation_dir=localisation_dir,
            glossaries=[str(g) for g in data.get("glossaries", [])],
        )

    def validate(self) -> None:
        """
        Check required fields and paths.

        Raises:
            MissingFieldError: source_lang or target_langs is empty
            InvalidPathError: localisation_dir or its source folder is missing
        """
        if not self.source_lang:
            raise MissingFieldError("source_lang")

        if not self.target_langs:
            raise MissingFieldError("target_langs")

        if not self.localisation_dir.is_dir():
            raise InvalidPathError(f"localisation directory does not exist: {self.localisation_dir}")

        if not self.source_dir.is_dir():
            raise InvalidPathError(f"source language directory does not exist: {self.source_dir}")

    @property
    def source_dir(self) -> Path:
        return self.localisation_dir / self.source_lang

    def target_dir(self, target_lang: str) -> Path:
        return self.localisation_dir / target_lang / TARGET_SUBDIR


def load_task_file(path: Path) -> Tuple[ClientSettings, List[TranslationTask]]:
    """
    Load and validate a TOML task file.

    Example::

        [client_settings]
        model = "deepseek-chat"
        concurrency = 4

        [[task]]
        source_lang = "english"
        target_langs = ["simp_chinese"]
        glossaries = ["stellaris"]
        localisation_dir = "mod/localisation"

    Relative ``localisation_dir`` values resolve against the task file's
    directory.

    Raises:
        ConfigError: on any parse or validation failure
    """
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise InvalidPathError(f"cannot read task file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse task file {path}: {e}") from e

    settings_table = data.get("client_settings", {})
    if not isinstance(settings_table, dict):
        raise ConfigError("client_settings must be a table")

    try:
        settings = ClientSettings.from_dict(settings_table)
    except TypeError as e:
        raise ConfigError(f"Invalid client_settings: {e}") from e

    problems = settings.validate()
    if problems:
        raise InvalidConfigValueError(problems)

    raw_tasks = data.get("task", [])
    if not isinstance(raw_tasks, list) or not raw_tasks:
        raise MissingFieldError("task")

    base_dir = path.resolve().parent
    tasks = []
    for raw in raw_tasks:
        if not isinstance(raw, dict):
            raise ConfigError("each [[task]] entry must be a table")
        task = TranslationTask.from_dict(raw, base_dir)
        task.validate()
        tasks.append(task)

    return settings, tasks


def load_api_key() -> str:
    """
    Read the API key from the environment (or a ``.env`` file).

    Raises:
        MissingApiKeyError: if OPENAI_API_KEY is not set
    """
    api_key = os.environ.get(API_KEY_ENV)
    if not api_key:
        raise MissingApiKeyError(
            f"{API_KEY_ENV} is required. Set it in the environment or a .env file"
        )
    return api_key


def has_api_key() -> bool:
    return bool(os.environ.get(API_KEY_ENV))
