from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clipcat.exceptions import ConfigError, PresetNotFoundError
from clipcat.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

PLAINTEXT = "plaintext"

EXT2LANG: dict[str, str] = {
    ".bash": "bash",
    ".c": "c",
    ".cc": "cpp",
    ".cfg": "ini",
    ".conf": "ini",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".css": "css",
    ".cxx": "cpp",
    ".fish": "fish",
    ".go": "go",
    ".h": "c",
    ".hpp": "cpp",
    ".htm": "html",
    ".html": "html",
    ".ini": "ini",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "javascript",
    ".kt": "kotlin",
    ".lua": "lua",
    ".markdown": "markdown",
    ".md": "markdown",
    ".mjs": "javascript",
    ".php": "php",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".scss": "scss",
    ".sh": "bash",
    ".sql": "sql",
    ".swift": "swift",
    ".toml": "toml",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".zsh": "zsh",
}

NAME_FLAG = "-name"


def guess_language(suffix: str) -> str:
    """Get the code fence language for a file extension (`plaintext` when unknown)."""
    return EXT2LANG.get(suffix.lower(), PLAINTEXT)


def strip_name_args(args: Sequence[str]) -> list[str]:
    """Drop `-name <value>` / `-name=<value>` so a preset never records being saved."""
    out: list[str] = []
    skip_next = False
    for tok in args:
        if skip_next:
            skip_next = False
            continue
        if tok == NAME_FLAG:
            skip_next = True
            continue
        if tok.startswith(f"{NAME_FLAG}="):
            continue
        out.append(tok)
    return out


class FolderConfig(BaseModel):
    """Presets saved for one working directory."""

    model_config = ConfigDict(extra="ignore")

    saved_name: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Preset name -> argument tokens.",
    )

    @field_validator("saved_name", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:  # noqa: ANN401
        return {} if value is None else value


class Configuration(BaseModel):
    """Persisted clipcat configuration.

    Attributes:
        folders: Absolute working directory -> presets saved there.
        file_type_executables: File extension (with leading dot) -> default command.
    """

    model_config = ConfigDict(extra="ignore")

    folders: dict[str, FolderConfig] = Field(default_factory=dict)
    file_type_executables: dict[str, str] = Field(default_factory=dict)

    @field_validator("folders", "file_type_executables", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:  # noqa: ANN401
        # older config writers emit `null` for empty maps
        return {} if value is None else value

    def presets(self, folder: str) -> dict[str, list[str]]:
        folder_config = self.folders.get(folder)
        if folder_config is None:
            return {}
        return folder_config.saved_name

    def get_preset(self, folder: str, name: str) -> list[str]:
        """Return the argument tokens saved as `name` in `folder`.

        Raises:
            PresetNotFoundError: if nothing (or an empty list) is stored under that name.
        """
        args = self.presets(folder).get(name)
        if not args:
            raise PresetNotFoundError(folder=folder, name=name)
        return list(args)

    def set_preset(self, folder: str, name: str, args: Sequence[str]) -> None:
        """Store `args` (without its `-name` pair) as preset `name`; call `save_config` afterwards."""
        folder_config = self.folders.setdefault(folder, FolderConfig())
        folder_config.saved_name[name] = strip_name_args(args)


def load_config(path: Path) -> Configuration:
    """Load the configuration, or an empty one when the file does not exist yet.

    Args:
        path (Path): location of the JSON config file

    Raises:
        ConfigError: if the file cannot be read or does not hold a valid configuration.

    Returns:
        Configuration: the parsed configuration
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        logger.debug("No config file, starting empty", path=str(path))
        return Configuration()
    except OSError as e:
        raise ConfigError(path=path, reason=f"failed to read: {e}") from e
    try:
        return Configuration.model_validate_json(raw)
    except ValueError as e:  # ValidationError, or undecodable bytes
        raise ConfigError(path=path, reason=f"failed to parse: {e}") from e


def save_config(config: Configuration, path: Path) -> None:
    """Write the configuration as indented JSON, creating parent directories as needed.

    Raises:
        ConfigError: on any I/O failure.
    """
    data = config.model_dump_json(by_alias=True, indent=2)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfigError(path=path, reason=f"failed to write: {e}") from e
