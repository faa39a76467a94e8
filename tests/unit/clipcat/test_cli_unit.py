from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from clipcat import __version__, cli
from clipcat.config import Configuration
from clipcat.exceptions import (
    ArgumentsError,
    ExecutableError,
    InvalidIgnorePatternError,
    InvalidSelectionError,
    NoPresetsError,
    PresetNotFoundError,
)

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_full_command_line() -> None:
    options = cli.parse_args(
        [
            "-files",
            "a.py",
            "b.go",
            "-ignore-pattern",
            "vendor/",
            "-ignore-gitignore",
            "-delimiter",
            "####",
            "-wrap-code",
            "false",
            "-exec",
            "wc -l",
            "-file-exec",
            ".go=gofmt .py=ruff",
            "-exec-timeout",
            "2.5",
        ],
    )

    assert options.files == ["a.py", "b.go"]
    assert options.ignore_pattern == "vendor/"
    assert options.ignore_gitignore is True
    assert options.delimiter == "####"
    assert options.wrap_code is False
    assert options.exec_command == "wc -l"
    assert options.file_exec == {".go": "gofmt", ".py": "ruff"}
    assert options.exec_timeout == 2.5  # noqa: PLR2004
    assert options.save_name is None
    assert options.by_name is None


@pytest.mark.unit
def test_parse_args_files_stop_at_next_flag_and_repeat() -> None:
    options = cli.parse_args(["-files", "a.py", "-name", "x", "-files", "b.py", "c.py"])

    assert options.files == ["a.py", "b.py", "c.py"]
    assert options.save_name == "x"


@pytest.mark.unit
def test_parse_args_later_file_exec_wins() -> None:
    options = cli.parse_args(["-file-exec", ".go=gofmt", "-file-exec", ".go=golint .rs=rustfmt"])

    assert options.file_exec == {".go": "golint", ".rs": "rustfmt"}


@pytest.mark.unit
def test_parse_args_value_starting_with_dash_via_equals() -> None:
    options = cli.parse_args(["-files", "a.py", "-delimiter=-----"])

    assert options.delimiter == "-----"


@pytest.mark.unit
def test_parse_args_value_starting_with_dash_as_separate_token() -> None:
    options = cli.parse_args(["-files", "a.py", "-delimiter", "-----", "-ignore-pattern", "-old"])

    assert options.files == ["a.py"]
    assert options.delimiter == "-----"
    assert options.ignore_pattern == "-old"


@pytest.mark.unit
def test_join_flag_values_leaves_trailing_flag_and_file_lists_alone() -> None:
    argv = ["-files", "a.py", "-b.py", "-file-exec", ".go=gofmt .py=ruff", "-delimiter"]

    assert cli.join_flag_values(argv) == [
        "-files",
        "a.py",
        "-b.py",
        "-file-exec=.go=gofmt .py=ruff",
        "-delimiter",
    ]


@pytest.mark.unit
@pytest.mark.parametrize(
    "argv",
    [
        ["-delimiter"],
        ["-files"],
        ["-by-name"],
        ["-unknown-flag"],
        ["stray.py"],
        ["-file-exec", ".go"],
        ["-wrap-code", "maybe"],
        ["-exec-timeout", "-1"],
        ["-exec-timeout", "soon"],
    ],
)
def test_parse_args_rejects_bad_command_lines(argv: list[str]) -> None:
    with pytest.raises(ArgumentsError) as exc_info:
        cli.parse_args(argv)

    assert "usage: clipcat" in str(exc_info.value)


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["-version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_resolve_preset_keeps_explicit_files() -> None:
    options = cli.parse_args(["-files", "a.py"])

    assert cli.resolve_preset(options, Configuration(), folder="/work") is options


@pytest.mark.unit
def test_resolve_preset_by_name_reparses_saved_args() -> None:
    config = Configuration()
    config.set_preset("/work", "docs", ["-files", "README.md", "-wrap-code", "false"])

    options = cli.resolve_preset(cli.parse_args(["-by-name", "docs", "-files", "x.py"]), config, folder="/work")

    assert options.files == ["README.md"]
    assert options.wrap_code is False
    assert options.by_name is None


@pytest.mark.unit
def test_resolve_preset_by_name_missing_raises() -> None:
    with pytest.raises(PresetNotFoundError):
        cli.resolve_preset(cli.parse_args(["-by-name", "nope"]), Configuration(), folder="/work")


@pytest.mark.unit
def test_resolve_preset_single_preset_used_automatically() -> None:
    config = Configuration()
    config.set_preset("/work", "only", ["-files", "a.py"])

    options = cli.resolve_preset(cli.parse_args([]), config, folder="/work")

    assert options.files == ["a.py"]


@pytest.mark.unit
def test_select_preset_without_presets_raises() -> None:
    with pytest.raises(NoPresetsError) as exc_info:
        cli.select_preset({}, folder="/work")

    assert "save arguments first" in str(exc_info.value)


@pytest.mark.unit
def test_select_preset_prompts_with_sorted_numbered_list(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr("builtins.input", lambda _prompt: "2")
    presets = {"zeta": ["-files", "z.py"], "alpha": ["-files", "a.py"]}

    args = cli.select_preset(presets, folder="/work")

    assert args == ["-files", "z.py"]
    out = capsys.readouterr().out
    assert "1: alpha\n2: zeta\n" in out


@pytest.mark.unit
@pytest.mark.parametrize("answer", ["0", "3", "one", "", "-1", " 1.0"])
def test_select_preset_rejects_invalid_answers(monkeypatch: pytest.MonkeyPatch, answer: str) -> None:
    monkeypatch.setattr("builtins.input", lambda _prompt: answer)

    with pytest.raises(InvalidSelectionError):
        cli.select_preset({"a": ["-files", "a.py"], "b": ["-files", "b.py"]}, folder="/work")


@pytest.mark.unit
def test_select_preset_end_of_input_is_invalid(mocker: MockerFixture) -> None:
    mocker.patch("builtins.input", side_effect=EOFError)

    with pytest.raises(InvalidSelectionError):
        cli.select_preset({"a": ["-files", "a.py"], "b": ["-files", "b.py"]}, folder="/work")


@pytest.mark.unit
def test_process_files_matches_reference_output(workdir: Path) -> None:
    (workdir / "a.py").write_text("print(1)", encoding="utf-8")
    (workdir / "b.unknown").write_text("xyz", encoding="utf-8")
    options = cli.parse_args(["-files", "a.py", "b.unknown"])

    content = cli.process_files(options, Configuration(), cwd=workdir)

    assert content == "a.py\n```python\nprint(1)\n```\n======\nb.unknown\n```plaintext\nxyz\n```\n======\n"
    assert cli.process_files(options, Configuration(), cwd=workdir) == content


@pytest.mark.unit
def test_process_files_ignore_pattern_beats_everything(workdir: Path) -> None:
    (workdir / "keep.py").write_text("keep", encoding="utf-8")
    (workdir / "skip_me.py").write_text("skip", encoding="utf-8")
    options = cli.parse_args(["-files", "keep.py", "skip_me.py", "-ignore-gitignore", "-ignore-pattern", "skip_"])

    content = cli.process_files(options, Configuration(), cwd=workdir)

    assert "skip_me.py" not in content
    assert "keep.py" in content


@pytest.mark.unit
def test_process_files_invalid_ignore_pattern_raises(workdir: Path) -> None:
    options = cli.parse_args(["-files", "a.py", "-ignore-pattern", "[oops"])

    with pytest.raises(InvalidIgnorePatternError):
        cli.process_files(options, Configuration(), cwd=workdir)


@pytest.mark.unit
def test_process_files_respects_gitignore_unless_disabled(workdir: Path) -> None:
    (workdir / ".git").mkdir()
    (workdir / ".gitignore").write_text("*.log\n", encoding="utf-8")
    (workdir / "app.py").write_text("app", encoding="utf-8")
    (workdir / "debug.log").write_text("noise", encoding="utf-8")

    filtered = cli.process_files(cli.parse_args(["-files", "app.py", "debug.log"]), Configuration(), cwd=workdir)
    unfiltered = cli.process_files(
        cli.parse_args(["-files", "app.py", "debug.log", "-ignore-gitignore"]),
        Configuration(),
        cwd=workdir,
    )

    assert "debug.log" not in filtered
    assert "debug.log\n```plaintext\nnoise\n```\n" in unfiltered


@pytest.mark.unit
def test_process_files_exec_output_does_not_leak_to_next_file(workdir: Path) -> None:
    (workdir / "a.go").write_text("package main", encoding="utf-8")
    (workdir / "b.py").write_text("print(2)", encoding="utf-8")
    options = cli.parse_args(["-files", "a.go", "b.py", "-file-exec", ".go=echo"])

    content = cli.process_files(options, Configuration(), cwd=workdir)

    assert content == "a.go\n```go\npackage main\n```\na.go\n\n======\nb.py\n```python\nprint(2)\n```\n======\n"


@pytest.mark.unit
def test_process_files_skips_unreadable_file_and_continues(workdir: Path) -> None:
    (workdir / "b.py").write_text("print(2)", encoding="utf-8")

    content = cli.process_files(cli.parse_args(["-files", "missing.py", "b.py"]), Configuration(), cwd=workdir)

    assert content == "b.py\n```python\nprint(2)\n```\n======\n"


@pytest.mark.unit
def test_process_files_failing_executable_is_fatal(workdir: Path) -> None:
    (workdir / "a.py").write_text("print(1)", encoding="utf-8")

    with pytest.raises(ExecutableError):
        cli.process_files(cli.parse_args(["-files", "a.py", "-exec", "false"]), Configuration(), cwd=workdir)
