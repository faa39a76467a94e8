from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

APP_NAME = "clipcat"
DEFAULT_DELIMITER = "======"
CONFIG_ENV_VAR = "CLIPCAT_CONFIG"
LOG_FILE_ENV_VAR = "CLIPCAT_LOG_FILE"


def _env_value(key: str) -> str | None:
    """Look `key` up in the process environment, then in the nearest `.env` file."""
    if value := os.environ.get(key):
        return value
    env_file = find_dotenv(usecwd=True)
    if not env_file:
        return None
    return dotenv_values(env_file).get(key) or None


def default_config_path() -> Path:
    """Location of the persisted configuration (`~/.config/clipcat/config.json` unless overridden)."""
    if override := _env_value(CONFIG_ENV_VAR):
        return Path(override).expanduser()
    return Path.home() / ".config" / APP_NAME / "config.json"


def default_log_file() -> str:
    return _env_value(LOG_FILE_ENV_VAR) or ""


class RunOptions(BaseModel):
    """Options for a single clipcat invocation, rebuilt from the command line each run."""

    model_config = ConfigDict(frozen=True)

    files: list[str] = Field(default_factory=list, description="Input file paths.")
    ignore_pattern: str | None = Field(default=None, description="Skip paths matching this regex.")
    ignore_gitignore: bool = Field(default=False, description="Do not filter with .gitignore rules.")
    delimiter: str = Field(default=DEFAULT_DELIMITER, description="Separator after each file block.")
    wrap_code: bool = Field(default=True, description="Fence contents as language-tagged code blocks.")
    save_name: str | None = Field(default=None, description="Save the arguments under this name.")
    by_name: str | None = Field(default=None, description="Replay the preset with this name.")
    exec_command: str | None = Field(default=None, description="Command run against every file.")
    file_exec: dict[str, str] = Field(
        default_factory=dict,
        description="Per-extension command overrides.",
    )
    exec_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Timeout in seconds for each external command.",
    )
    log_file: str = Field(default="", description="Log file path.")
