"""Processing of the `kamus` (declarations) section.

Declarations are handled in two passes. The first pass registers every
type, aliases (`type NAME TARGET`) and records (`type NAME <` ... `>`), so
that the second pass can resolve any type name regardless of the order
in which types and variables were written. The second pass creates
constants (`const NAME : TYPE = VALUE`) and variables
(`a, b : TYPE`) in the environment.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Set
import re

from .environment import Environment
from .errors import PsdError, fail
from .source import strip_line_comment
from .types import TypeRegistry
from .values import cast_value, create_default

NAME = r'[A-Za-z_]\w*'
TYPE_ALIAS_RE = re.compile(rf'^type\s+({NAME})\s+({NAME}(?:\s*\[\s*\d+\s*\])*)$')
TYPE_RECORD_RE = re.compile(rf'^type\s+({NAME})\s*<$')
CONST_RE = re.compile(rf'^const\s+({NAME})\s*:\s*(.+?)\s*=\s*(.+)$')
NAME_LIST_RE = re.compile(rf'^({NAME}(?:\s*,\s*{NAME})*)\s*:\s*(.+?)$')


def split_names(names: str) -> List[str]:
    return [n.strip() for n in names.split(',')]


class DeclarationProcessor:
    def __init__(self, registry: TypeRegistry, env: Environment,
                 debug: Optional[Callable[[str], None]] = None):
        self.registry = registry
        self.env = env
        self.debug = debug or (lambda msg: None)

    def process(self, lines: List[str], first_line: int = 1):
        """Run both passes over the raw lines of a declarations section.

        `first_line` is the source line number of `lines[0]`, used for
        diagnostics.
        """
        cleaned = [strip_line_comment(line) for line in lines]
        type_lines = self.register_types(cleaned, first_line)
        self.bind_names(cleaned, first_line, type_lines)

    def register_types(self, lines: List[str], first_line: int) -> Set[int]:
        """Pass 1. Returns the indexes of every line that belongs to a type declaration."""
        consumed: Set[int] = set()
        i = 0
        while i < len(lines):
            line = lines[i]
            if not re.match(r'^type\b', line):
                i += 1
                continue
            consumed.add(i)
            try:
                match = TYPE_ALIAS_RE.match(line)
                if match:
                    name, target = match.groups()
                    self.warn_redefinition(name)
                    self.registry.register_alias(name, target)
                    self.debug(f"type {name} = {target}")
                    i += 1
                    continue
                match = TYPE_RECORD_RE.match(line)
                if not match:
                    raise fail('ParseError', f'invalid type declaration {line!r}')
                name = match.group(1)
            except PsdError as e:
                raise e.at(first_line + i, line)

            fields: Dict[str, str] = {}
            j = i + 1
            # An unterminated record block runs to the end of the section
            while j < len(lines) and lines[j] != '>':
                consumed.add(j)
                member = lines[j]
                if member:
                    try:
                        self.add_fields(name, member, fields)
                    except PsdError as e:
                        raise e.at(first_line + j, member)
                j += 1
            consumed.add(j)
            try:
                self.warn_redefinition(name)
                self.registry.register_record(name, fields)
            except PsdError as e:
                raise e.at(first_line + i, line)
            self.debug(f"type {name} <{', '.join(f'{k}: {v}' for k, v in fields.items())}>")
            i = j + 1
        return consumed

    def add_fields(self, record: str, member: str, fields: Dict[str, str]):
        match = NAME_LIST_RE.match(member)
        if not match:
            raise fail('ParseError', f'invalid field declaration in record {record}: {member!r}')
        names, field_type = match.groups()
        for name in split_names(names):
            if name in fields:
                raise fail('ParseError', f'duplicate field {name} in record {record}')
            fields[name] = field_type.strip()

    def warn_redefinition(self, name: str):
        if name in self.registry:
            self.debug(f"warning: type {name} redefined")

    def bind_names(self, lines: List[str], first_line: int, skip: Set[int]):
        """Pass 2: constants and variables."""
        for i, line in enumerate(lines):
            if not line or i in skip:
                continue
            try:
                self.bind_line(line)
            except PsdError as e:
                raise e.at(first_line + i, line)

    def bind_line(self, line: str):
        match = CONST_RE.match(line)
        if match:
            name, type_text, value_text = match.groups()
            self.declare_const(name, type_text, value_text.strip())
            return
        match = NAME_LIST_RE.match(line)
        if match:
            names, type_text = match.groups()
            canonical = self.registry.resolve(type_text)
            for name in split_names(names):
                self.env.declare(name, create_default(self.registry, canonical), canonical)
                self.debug(f"declare {name}: {canonical}")
            return
        raise fail('ParseError', f'invalid declaration {line!r}')

    def declare_const(self, name: str, type_text: str, value_text: str):
        parsed = self.registry.resolve_parsed(type_text)
        if parsed.dimensions or self.registry.is_record(parsed.base):
            raise fail('TypeError', f'constant {name} must have a primitive type, not {parsed}')
        if parsed.base == 'string':
            if not re.match(r'^".*"$', value_text):
                raise fail('ParseError', f'string constant {name} must be written in double quotes (")')
            value_text = value_text[1:-1]
        elif parsed.base == 'character':
            if not re.match(r"^'.*'$", value_text):
                raise fail('ParseError', f"character constant {name} must be written in single quotes (')")
            value_text = value_text[1:-1]
        value = cast_value(self.registry, value_text, parsed.base)
        self.env.declare(name, value, str(parsed), is_const=True)
        self.debug(f"declare const {name}: {parsed} = {value!r}")
