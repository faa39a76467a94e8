from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ClipcatError(Exception):
    """Base exception for errors in the clipcat module."""


@dataclass(frozen=True)
class ArgumentsError(ClipcatError):
    """Raised when the command line cannot be parsed."""

    message: str
    usage: str = ""

    def __str__(self) -> str:
        return f"{self.message}\n{self.usage}".rstrip()


@dataclass(frozen=True)
class ConfigError(ClipcatError):
    """Raised when the configuration file cannot be read, parsed or written."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Config file {self.path}: {self.reason}"


@dataclass(frozen=True)
class PresetNotFoundError(ClipcatError):
    """Raised when a named preset does not exist for a folder."""

    folder: str
    name: str

    def __str__(self) -> str:
        return f"No saved arguments found for name '{self.name}' in folder '{self.folder}'"


@dataclass(frozen=True)
class NoPresetsError(ClipcatError):
    """Raised when no file list was given and the folder has no preset to fall back to."""

    folder: str

    def __str__(self) -> str:
        return (
            f"No saved arguments found in folder '{self.folder}'. "
            "Please save arguments first using the -name option."
        )


@dataclass(frozen=True)
class InvalidSelectionError(ClipcatError):
    """Raised when the interactive preset choice is not a valid index."""

    selection: str
    choices: int

    def __str__(self) -> str:
        return f"Invalid selection {self.selection!r}: expected a number between 1 and {self.choices}"


@dataclass(frozen=True)
class InvalidIgnorePatternError(ClipcatError):
    """Raised when `-ignore-pattern` is not a valid regular expression."""

    pattern: str
    reason: str

    def __str__(self) -> str:
        return f"Invalid regex pattern {self.pattern!r}: {self.reason}"


@dataclass(frozen=True)
class ExecutableError(ClipcatError):
    """Raised when a file-type executable fails to launch, exits non-zero or times out."""

    command: str
    file: str
    reason: str
    output: str = ""

    def __str__(self) -> str:
        return f"Failed to run executable '{self.command}' with file '{self.file}': {self.reason}\nOutput: {self.output}"


@dataclass(frozen=True)
class ClipboardError(ClipcatError):
    """Raised when the system clipboard cannot be written."""

    reason: str

    def __str__(self) -> str:
        return f"Failed to copy output to clipboard: {self.reason}"
