"""Source text handling.

Block comments are removed, each line is cut at its `//` comment, and the
file is split into its `program` header, `kamus` and `algoritma` sections.
Statement and argument lists are split on separators that sit outside
quotes, brackets and parentheses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List
import re

from .errors import fail

BLOCK_COMMENT_RE = re.compile(r'/\*.*?\*/', re.S)


@dataclass
class ProgramSource:
    """A program split into its sections.

    `kamus_start` and `algoritma_start` are the 1-based source line numbers
    of the first line of each section body.
    """
    name: str
    kamus: List[str]
    kamus_start: int
    algoritma: List[str]
    algoritma_start: int


def strip_block_comments(text: str) -> str:
    """Remove `/* ... */` comments, keeping their newlines so line numbers hold."""
    return BLOCK_COMMENT_RE.sub(lambda m: '\n' * m.group(0).count('\n'), text)


def split_top_level(text: str, separator: str) -> List[str]:
    """Split on `separator` where it is outside quotes, brackets and parentheses."""
    parts: List[str] = []
    current: List[str] = []
    in_string = False
    in_char = False
    depth = 0
    for c in text:
        if c == '"' and not in_char:
            in_string = not in_string
        elif c == "'" and not in_string:
            in_char = not in_char
        elif not in_string and not in_char:
            if c in '([':
                depth += 1
            elif c in ')]' and depth > 0:
                depth -= 1
            elif c == separator and depth == 0:
                parts.append(''.join(current))
                current = []
                continue
        current.append(c)
    parts.append(''.join(current))
    return parts


def strip_line_comment(line: str) -> str:
    """Cut a line at `//` unless the marker sits inside a quoted literal."""
    in_string = False
    in_char = False
    for i, c in enumerate(line):
        if c == '"' and not in_char:
            in_string = not in_string
        elif c == "'" and not in_string:
            in_char = not in_char
        elif c == '/' and not in_string and not in_char and line.startswith('//', i):
            return line[:i].strip()
    return line.strip()


def split_statements(line: str) -> List[str]:
    """Return the non-empty `;` separated statements of a source line."""
    stripped = strip_line_comment(line)
    if not stripped:
        return []
    return [s.strip() for s in split_top_level(stripped, ';') if s.strip()]


def split_arguments(text: str) -> List[str]:
    if not text.strip():
        return []
    return [part.strip() for part in split_top_level(text, ',')]


def load_program(text: str) -> ProgramSource:
    """Locate the sections of a program.

    Raises a StructureError when the header, `kamus`, `algoritma` or
    `endprogram` is missing or out of order.
    """
    lines = strip_block_comments(text).split('\n')
    trimmed = [strip_line_comment(line) for line in lines]

    header = next((i for i, line in enumerate(trimmed) if re.match(r'^program\s+\S', line)), -1)
    kamus = trimmed.index('kamus') if 'kamus' in trimmed else -1
    algoritma = trimmed.index('algoritma') if 'algoritma' in trimmed else -1
    end = trimmed.index('endprogram') if 'endprogram' in trimmed else -1

    missing = [label for label, index in (('program header', header), ('kamus', kamus),
                                          ('algoritma', algoritma), ('endprogram', end)) if index < 0]
    if missing:
        raise fail('StructureError', 'invalid program structure, missing ' + ', '.join(missing))
    if not header < kamus < algoritma < end:
        raise fail('StructureError', "invalid program structure, expected 'program', 'kamus', "
                                     "'algoritma' and 'endprogram' in that order")

    return ProgramSource(
        name=trimmed[header].split()[1],
        kamus=lines[kamus + 1:algoritma],
        kamus_start=kamus + 2,
        algoritma=lines[algoritma + 1:end],
        algoritma_start=algoritma + 2,
    )


def format_report(name: str, started: datetime, output: List[str]) -> List[str]:
    """Banner lines followed by the program output, in append order."""
    return [
        '--- Execution Properties ---',
        f'Program Name: {name}',
        f"Execution Time: {started.strftime('%Y-%m-%d %H:%M:%S')}",
        '--- Program Output ---',
    ] + list(output)
