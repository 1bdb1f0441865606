"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DATA_DIR_ENV = "LEVSIM_DATA_DIR"
LOG_LEVEL_ENV = "LEVSIM_LOG_LEVEL"

DEFAULT_DATA_DIR = Path.home() / ".levsim" / "data"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration.

    Attributes:
        data_dir: Directory holding the persisted state files
        log_level: Name of the root log level (e.g. "INFO")
    """
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        data_dir = env.get(DATA_DIR_ENV)
        log_level = env.get(LOG_LEVEL_ENV)
        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
            log_level=log_level.strip().upper() if log_level else DEFAULT_LOG_LEVEL,
        )
