"""Runtime settings, read from the environment with development defaults."""

import logging
import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    secret_key: str
    snapshot_path: Optional[str] = None
    log_level: int = logging.INFO
    log_path: Optional[str] = None


def _log_level(raw) -> int:
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        secret_key=env.get("SECRET_KEY", "vhf-assessment-dev-key-change-in-prod"),
        snapshot_path=env.get("HCID_SNAPSHOT_PATH") or None,
        log_level=_log_level(env.get("VHF_LOG_LEVEL")),
        log_path=env.get("VHF_LOG_PATH") or None,
    )
