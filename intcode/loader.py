"""Program source loading: comma-separated signed integers, one program per line."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Union

from .errors import ProgramLoadError
from .memory import INT64_MAX, INT64_MIN

_INT_RE = re.compile(r"^[+-]?[0-9]+$")

PathLike = Union[str, Path]


def _parse_token(token: str, *, line: int, column: int) -> int:
    text = token.strip()
    if not _INT_RE.match(text):
        raise ProgramLoadError(
            f"line {line}, value {column}: non-numeric token {text!r}",
            line=line,
            token=text,
        )
    value = int(text)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ProgramLoadError(
            f"line {line}, value {column}: {text} does not fit a signed 64-bit cell",
            line=line,
            token=text,
        )
    return value


def parse_program(text: str, *, line: int = 1) -> List[int]:
    """Parse one program from comma-separated text.

    Surrounding whitespace and CR/LF line endings are ignored; any token that
    is not a signed decimal integer raises ProgramLoadError.
    """
    stripped = text.strip()
    if not stripped:
        raise ProgramLoadError(f"line {line}: empty program", line=line, token="")
    return [_parse_token(token, line=line, column=index + 1) for index, token in enumerate(stripped.split(","))]


def parse_programs(text: str) -> List[List[int]]:
    """Parse every non-blank line of *text* as an independent program."""
    programs = []
    for number, raw_line in enumerate(text.splitlines(), start=1):
        if not raw_line.strip():
            continue
        programs.append(parse_program(raw_line, line=number))
    if not programs:
        raise ProgramLoadError("no program found", line=None, token=None)
    return programs


def load_programs(path: PathLike) -> List[List[int]]:
    return parse_programs(Path(path).read_text(encoding="utf-8"))


def load_program(path: PathLike, *, line: int = 0) -> List[int]:
    """Load the program on the *line*-th non-blank line (0-based) of *path*."""
    programs = load_programs(path)
    if not 0 <= line < len(programs):
        raise ProgramLoadError(f"{path}: no program at index {line} ({len(programs)} available)", line=line)
    return programs[line]


__all__ = ["parse_program", "parse_programs", "load_program", "load_programs"]
