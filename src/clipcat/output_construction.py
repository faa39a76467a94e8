from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pyperclip
from pydantic import BaseModel, ConfigDict, Field

from clipcat.exceptions import ClipboardError

if TYPE_CHECKING:
    from collections.abc import Iterable

FENCE = "```"


class FileBlock(BaseModel):
    """One processed input file, ready to be rendered.

    Attributes:
        path: The path exactly as given on the command line.
        language: Code fence language (`plaintext` when unknown).
        content: Full file content.
        exec_output: Merged stdout/stderr of the file's executable, empty if none ran.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="File path as given")
    language: str = Field(..., description="Code fence language")
    content: str = Field(..., description="File content")
    exec_output: str = Field("", description="Captured executable output")


def render_block(block: FileBlock, *, delimiter: str, wrap_code: bool) -> str:
    """Render a single file block; every segment ends with a newline.

    Args:
        block (FileBlock): the file to render
        delimiter (str): separator written after the block
        wrap_code (bool): whether to fence the content with a language-tagged code block

    Returns:
        str: the rendered block
    """
    out = io.StringIO()
    out.write(f"{block.path}\n")
    if wrap_code:
        out.write(f"{FENCE}{block.language}\n")
    out.write(f"{block.content}\n")
    if wrap_code:
        out.write(f"{FENCE}\n")
    if block.exec_output:
        out.write(f"{block.exec_output}\n")
    out.write(f"{delimiter}\n")
    return out.getvalue()


def build_output(blocks: Iterable[FileBlock], *, delimiter: str, wrap_code: bool) -> str:
    return "".join(render_block(b, delimiter=delimiter, wrap_code=wrap_code) for b in blocks)


def copy_to_clipboard(text: str) -> None:
    """Write `text` to the system clipboard.

    Raises:
        ClipboardError: if no clipboard mechanism is available or the copy fails.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(reason=str(e)) from e
