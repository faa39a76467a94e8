from __future__ import annotations

import re
import subprocess  # noqa: S404
from pathlib import Path
from typing import TYPE_CHECKING

import pathspec

from clipcat.config import guess_language
from clipcat.exceptions import ExecutableError, InvalidIgnorePatternError
from clipcat.logging import logger
from clipcat.output_construction import FileBlock

if TYPE_CHECKING:
    from collections.abc import Mapping

    from clipcat.config import Configuration
    from clipcat.settings import RunOptions


def compile_ignore_pattern(pattern: str | None) -> re.Pattern[str] | None:
    """Compile the `-ignore-pattern` regex, if any.

    Raises:
        InvalidIgnorePatternError: if the pattern is not a valid regular expression.
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidIgnorePatternError(pattern=pattern, reason=str(e)) from e


def find_git_root(start: Path) -> Path | None:
    """Return the closest directory at or above `start` holding a `.git` entry."""
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return None


def _read_lines(path: Path) -> list[str]:
    if not path.is_file():
        return []
    try:
        return path.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError as e:
        logger.warning("Error reading ignore file", path=str(path), error=str(e))
        return []


def rebase_pattern(line: str, prefix: str) -> str | None:
    """Rewrite a `.gitignore` line from directory `prefix` so it applies from the tree root.

    Patterns without an inner slash match at any depth below their directory;
    the others are anchored to it. Blank lines and comments give None.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    if not prefix:
        return stripped
    negate = stripped.startswith("!")
    body = stripped[1:] if negate else stripped
    if not body:
        return None
    if "/" in body.rstrip("/"):
        rebased = f"{prefix}/{body.lstrip('/')}"
    else:
        rebased = f"{prefix}/**/{body}"
    return f"!{rebased}" if negate else rebased


class GitIgnoreMatcher:
    """Match paths against the ignore rules of one git working tree.

    Rules come from `.git/info/exclude`, the root `.gitignore` and every nested
    `.gitignore` on the way down to a file. They are merged, shallowest first,
    into a single spec so a deeper `!pattern` can re-include what a parent ignored.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._patterns: dict[Path, list[str]] = {}
        self._specs: dict[Path, pathspec.GitIgnoreSpec] = {}
        self._exclude = _read_lines(root / ".git" / "info" / "exclude")

    @classmethod
    def for_directory(cls, cwd: Path) -> GitIgnoreMatcher | None:
        """Build a matcher for the working tree containing `cwd`, or None outside version control."""
        root = find_git_root(cwd.resolve())
        if root is None:
            logger.debug("Not inside a git working tree, gitignore filter disabled", cwd=str(cwd))
            return None
        return cls(root)

    def _patterns_for(self, directory: Path) -> list[str]:
        if directory not in self._patterns:
            prefix = directory.relative_to(self.root).as_posix()
            prefix = "" if prefix == "." else prefix
            lines = (rebase_pattern(line, prefix) for line in _read_lines(directory / ".gitignore"))
            self._patterns[directory] = [p for p in lines if p is not None]
        return self._patterns[directory]

    def _spec_for(self, directory: Path) -> pathspec.GitIgnoreSpec:
        if directory not in self._specs:
            patterns = [p for p in (rebase_pattern(line, "") for line in self._exclude) if p is not None]
            current = self.root
            patterns.extend(self._patterns_for(current))
            for part in directory.relative_to(self.root).parts:
                current /= part
                patterns.extend(self._patterns_for(current))
            self._specs[directory] = pathspec.GitIgnoreSpec.from_lines(patterns)
        return self._specs[directory]

    def matches(self, path: Path) -> bool:
        try:
            rel = path.resolve().relative_to(self.root)
        except ValueError:
            return False
        if not rel.parts:
            return False
        return self._spec_for(self.root / rel.parent).match_file(rel.as_posix())


def resolve_executable(
    suffix: str,
    *,
    exec_command: str | None,
    file_exec: Mapping[str, str],
    file_type_executables: Mapping[str, str],
) -> str | None:
    """Pick the command to run for a file with extension `suffix`.

    Priority: the global `-exec` override, then the `-file-exec` mapping, then the
    persisted `file_type_executables`. An empty command in a mapping means none.
    """
    if exec_command:
        return exec_command
    if suffix in file_exec:
        return file_exec[suffix] or None
    return file_type_executables.get(suffix) or None


def run_executable(command: str, file_path: str, timeout: float | None = None) -> str:
    """Run `command` with `file_path` appended and return its merged stdout/stderr.

    The command is split on whitespace and executed without a shell.

    Raises:
        ExecutableError: if the program cannot be launched, times out or exits non-zero.
    """
    parts = command.split()
    if not parts:
        raise ExecutableError(command=command, file=file_path, reason="empty command")
    try:
        proc = subprocess.run(  # noqa: S603
            [*parts, file_path],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        output = (e.output or b"").decode("utf-8", errors="replace")
        raise ExecutableError(
            command=command,
            file=file_path,
            reason=f"timed out after {timeout}s",
            output=output,
        ) from e
    except OSError as e:
        raise ExecutableError(command=command, file=file_path, reason=str(e)) from e

    output = proc.stdout.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        raise ExecutableError(
            command=command,
            file=file_path,
            reason=f"exit status {proc.returncode}",
            output=output,
        )
    return output


def read_file_text(path: Path) -> str | None:
    """Read the whole file as text, or log and return None when it cannot be read."""
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        logger.warning("Error reading file", path=str(path), error=str(e))
        return None


def process_file(
    file_path: str,
    options: RunOptions,
    config: Configuration,
    *,
    ignore_regex: re.Pattern[str] | None = None,
    gitignore: GitIgnoreMatcher | None = None,
) -> FileBlock | None:
    """Turn one input path into a `FileBlock`, or None when it is filtered out or unreadable.

    Args:
        file_path (str): the path as given on the command line
        options (RunOptions): options of the current run
        config (Configuration): persisted configuration (for `file_type_executables`)
        ignore_regex (re.Pattern[str] | None): compiled `-ignore-pattern`
        gitignore (GitIgnoreMatcher | None): matcher for the enclosing working tree

    Raises:
        ExecutableError: if the resolved executable fails.

    Returns:
        FileBlock | None: the block to emit for this file
    """
    if ignore_regex is not None and ignore_regex.search(file_path):
        logger.debug("Skipping file matching ignore pattern", path=file_path)
        return None

    path = Path(file_path)
    if gitignore is not None and gitignore.matches(path):
        logger.debug("Skipping gitignored file", path=file_path)
        return None

    executable = resolve_executable(
        path.suffix,
        exec_command=options.exec_command,
        file_exec=options.file_exec,
        file_type_executables=config.file_type_executables,
    )
    exec_output = ""
    if executable is not None:
        exec_output = run_executable(executable, file_path, timeout=options.exec_timeout)

    content = read_file_text(path)
    if content is None:
        return None

    return FileBlock(
        path=file_path,
        language=guess_language(path.suffix),
        content=content,
        exec_output=exec_output,
    )
