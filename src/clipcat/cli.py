"""
clipcat: copy a set of source files to the clipboard, ready to paste into an LLM chat.

Overview
--------
Each selected file is written as its path, its content (fenced as a code block
tagged with the file's language unless `-wrap-code false`), the output of an
optional per-file command, and a delimiter line. The result goes to the system
clipboard.

Argument lists can be saved per working directory with `-name` and replayed
with `-by-name`; running without `-files` replays the only preset of the
current directory, or asks which one to use when there are several.

Usage
-----
    - Copy two files:
        clipcat -files src/app.py src/util.py

    - Skip tests, no fences, custom delimiter:
        clipcat -files src/*.py -ignore-pattern "test_" -wrap-code false -delimiter ----

    - Append `go vet` output to every Go file:
        clipcat -files main.go -file-exec ".go=go_vet_wrapper"

    - Save, then replay:
        clipcat -files main.go util.go -name backend
        clipcat -by-name backend
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from clipcat import __version__
from clipcat.config import Configuration, load_config, save_config
from clipcat.exceptions import ArgumentsError, ClipcatError, InvalidSelectionError, NoPresetsError
from clipcat.file_manipulation import GitIgnoreMatcher, compile_ignore_pattern, process_file
from clipcat.logging import logger, setup_logging
from clipcat.output_construction import FileBlock, build_output, copy_to_clipboard
from clipcat.settings import (
    APP_NAME,
    DEFAULT_DELIMITER,
    RunOptions,
    default_config_path,
    default_log_file,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


VALUE_FLAGS = frozenset(
    {
        "-ignore-pattern",
        "-delimiter",
        "-wrap-code",
        "-name",
        "-by-name",
        "-exec",
        "-file-exec",
        "-exec-timeout",
        "-log-file",
    },
)


def join_flag_values(argv: Sequence[str]) -> list[str]:
    """Rewrite `-flag value` as `-flag=value` for flags taking exactly one value.

    argparse refuses a separate value that starts with `-`, while a flag such as
    `-delimiter` always consumes the next token. A flag with nothing after it is
    left alone so argparse still reports the missing value.
    """
    out: list[str] = []
    tokens = iter(argv)
    for tok in tokens:
        if tok in VALUE_FLAGS:
            value = next(tokens, None)
            if value is not None:
                out.append(f"{tok}={value}")
                continue
        out.append(tok)
    return out


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser raising `ArgumentsError` instead of exiting, so parsing is all-or-nothing."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentsError(message=message, usage=self.format_usage())


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered not in {"true", "false"}:
        msg = f"expected 'true' or 'false', got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return lowered == "true"


def parse_timeout(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        seconds = 0.0
    if seconds <= 0:
        msg = f"expected a positive number of seconds, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return seconds


def parse_file_exec(value: str) -> dict[str, str]:
    """Parse a whitespace-separated list of `.ext=executable` pairs.

    Args:
        value (str): e.g. ".go=gofmt .py=ruff"

    Raises:
        argparse.ArgumentTypeError: if a pair has no `=`.

    Returns:
        dict[str, str]: extension -> command
    """
    pairs: dict[str, str] = {}
    for pair in value.split():
        ext, sep, command = pair.partition("=")
        if not sep:
            msg = f"invalid pair {pair!r}, expected '.ext=executable'"
            raise argparse.ArgumentTypeError(msg)
        pairs[ext] = command
    return pairs


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog=APP_NAME,
        description="Concatenate files into the clipboard, with per-folder argument presets.",
        add_help=False,
        allow_abbrev=False,
    )
    p.add_argument(
        "-files",
        nargs="+",
        action="extend",
        default=[],
        metavar="FILE",
        help="Input file paths (everything up to the next flag).",
    )
    p.add_argument("-ignore-pattern", type=str, default=None, help="Skip paths matching this regex.")
    p.add_argument(
        "-ignore-gitignore",
        action="store_true",
        help="Do not filter files with .gitignore rules.",
    )
    p.add_argument(
        "-delimiter",
        type=str,
        default=DEFAULT_DELIMITER,
        help=f"Separator written after each file (default: {DEFAULT_DELIMITER}).",
    )
    p.add_argument(
        "-wrap-code",
        type=parse_bool,
        default=True,
        metavar="true|false",
        help="Fence file contents as code blocks (default: true).",
    )
    p.add_argument("-name", dest="save_name", default=None, help="Save these arguments under NAME and exit.")
    p.add_argument("-by-name", dest="by_name", default=None, help="Replay the arguments saved under NAME.")
    p.add_argument(
        "-exec",
        dest="exec_command",
        default=None,
        metavar="COMMAND",
        help="Command run against every file (file path appended).",
    )
    p.add_argument(
        "-file-exec",
        type=parse_file_exec,
        action="append",
        default=[],
        metavar=".ext=executable ...",
        help="Per-extension commands, space separated.",
    )
    p.add_argument(
        "-exec-timeout",
        type=parse_timeout,
        default=None,
        metavar="SECONDS",
        help="Timeout for each external command.",
    )
    p.add_argument("-log-file", type=str, default="", help="Log file path.")
    p.add_argument("-help", action="help", help="Show this help message and exit.")
    p.add_argument("-version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str]) -> RunOptions:
    """Parse the command line (or a replayed preset) into `RunOptions`.

    Raises:
        ArgumentsError: on an unknown flag, a missing value or a malformed value.
    """
    args = build_parser().parse_args(join_flag_values(argv))
    values = vars(args)
    file_exec: dict[str, str] = {}
    for pairs in values.pop("file_exec"):
        file_exec.update(pairs)
    return RunOptions(**values, file_exec=file_exec)


def save_preset(
    config: Configuration,
    config_path: Path,
    *,
    folder: str,
    name: str,
    args: Sequence[str],
) -> None:
    config.set_preset(folder, name, args)
    save_config(config, config_path)
    logger.info("Saved preset", name=name, folder=folder, config=str(config_path))
    print(f"Arguments saved for name '{name}' in folder '{folder}'")


def select_preset(presets: Mapping[str, list[str]], *, folder: str) -> list[str]:
    """Pick a preset when no file list was given.

    A single preset is used as is; with several, a numbered list is printed and
    one line is read from stdin.

    Raises:
        NoPresetsError: if the folder has no preset.
        InvalidSelectionError: if the answer is not a number in range.
    """
    if not presets:
        raise NoPresetsError(folder=folder)
    names = sorted(presets)
    if len(names) == 1:
        return list(presets[names[0]])

    print("Multiple saved names found. Please select one:")
    for i, name in enumerate(names, start=1):
        print(f"{i}: {name}")
    try:
        raw = input("Enter the number of the name to use: ").strip()
    except EOFError as e:
        raise InvalidSelectionError(selection="", choices=len(names)) from e
    if not (raw.isascii() and raw.isdigit()) or not 1 <= int(raw) <= len(names):
        raise InvalidSelectionError(selection=raw, choices=len(names))
    return list(presets[names[int(raw) - 1]])


def resolve_preset(options: RunOptions, config: Configuration, *, folder: str) -> RunOptions:
    """Swap in a saved argument list when `-by-name` is given or no files were passed.

    The preset replaces the whole command line and goes through `parse_args`
    again; a replayed preset is not resolved a second time.
    """
    if options.by_name:
        args = config.get_preset(folder, options.by_name)
    elif not options.files:
        args = select_preset(config.presets(folder), folder=folder)
    else:
        return options
    logger.info("Replaying preset", folder=folder, args=args)
    return parse_args(args)


def process_files(options: RunOptions, config: Configuration, *, cwd: Path) -> str:
    """Run every input file through the filters and build the clipboard text."""
    ignore_regex = compile_ignore_pattern(options.ignore_pattern)
    gitignore = None if options.ignore_gitignore else GitIgnoreMatcher.for_directory(cwd)

    blocks: list[FileBlock] = []
    for file_path in options.files:
        block = process_file(
            file_path,
            options,
            config,
            ignore_regex=ignore_regex,
            gitignore=gitignore,
        )
        if block is not None:
            blocks.append(block)

    logger.info("Processed files", given=len(options.files), emitted=len(blocks))
    return build_output(blocks, delimiter=options.delimiter, wrap_code=options.wrap_code)


def _error_context(error: ClipcatError) -> dict[str, str]:
    return {f.name: str(getattr(error, f.name)) for f in dataclasses.fields(error)}


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if log_file := default_log_file():
        setup_logging(log_file)
    config_path = default_config_path()

    try:
        config = load_config(config_path)
        options = parse_args(args)
        if options.log_file:
            setup_logging(options.log_file)

        cwd = Path.cwd()
        if options.save_name:
            save_preset(config, config_path, folder=str(cwd), name=options.save_name, args=args)
            return 0

        options = resolve_preset(options, config, folder=str(cwd))
        content = process_files(options, config, cwd=cwd)
        copy_to_clipboard(content)
    except ClipcatError as e:
        logger.error(str(e), error=type(e).__name__, **_error_context(e))
        return 1

    print("Output has been copied to the clipboard.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
