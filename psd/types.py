"""Type definitions and the type registry.

This module defines the static side of the pseudocode type system: the
five reserved primitives, aliases (synonyms for another, possibly
dimensioned, type name) and records (ordered, named, typed fields). Type
names are written as a base identifier followed by zero or more positive
array dimensions, for example `integer[3][2]`. The canonical form of a
type is the fully alias-resolved base with all dimensions attached,
outermost first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import re

from .errors import fail

PRIMITIVES: Tuple[str, ...] = ('integer', 'real', 'character', 'string', 'boolean')

TYPE_NAME_RE = re.compile(r'^\s*([A-Za-z_]\w*)((?:\s*\[\s*\d+\s*\])*)\s*$')
DIMENSION_RE = re.compile(r'\[\s*(\d+)\s*\]')


@dataclass
class TypeDef:
    """A registered type.

    `kind` is one of 'primitive', 'alias' or 'record'. Aliases carry the raw
    name of their target; records carry an ordered mapping of field name to
    raw field type name.
    """
    kind: str
    target: Optional[str] = None
    fields: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedTypeName:
    """A base type identifier plus its array dimensions (outer to inner)."""
    base: str
    dimensions: Tuple[int, ...] = ()

    def __str__(self) -> str:
        return self.base + ''.join(f'[{d}]' for d in self.dimensions)

    @property
    def is_array(self) -> bool:
        return bool(self.dimensions)


def parse_type_name(raw: str) -> ParsedTypeName:
    """Split a type name such as `point[4][2]` into base and dimensions."""
    match = TYPE_NAME_RE.match(raw)
    if not match:
        raise fail('ParseError', f'invalid type name {raw!r}')
    dimensions = tuple(int(d) for d in DIMENSION_RE.findall(match.group(2)))
    for d in dimensions:
        if d <= 0:
            raise fail('TypeError', f'array dimension must be positive in {raw.strip()!r}')
    return ParsedTypeName(match.group(1), dimensions)


class TypeRegistry:
    """Holds every type known to one interpreter run."""

    def __init__(self):
        self.definitions: Dict[str, TypeDef] = {}
        for name in PRIMITIVES:
            self.register_primitive(name)

    def __contains__(self, name: str) -> bool:
        return name in self.definitions

    def register_primitive(self, name: str):
        self.definitions[name] = TypeDef('primitive')

    def _check_redefinition(self, name: str):
        if name in PRIMITIVES:
            raise fail('TypeError', f'cannot redefine primitive type {name}')

    def register_alias(self, name: str, target: str):
        self._check_redefinition(name)
        parse_type_name(target)
        self.definitions[name] = TypeDef('alias', target=target.strip())

    def register_record(self, name: str, fields: Dict[str, str]):
        self._check_redefinition(name)
        self.definitions[name] = TypeDef('record', fields=dict(fields))

    def lookup(self, base: str) -> TypeDef:
        if base not in self.definitions:
            raise fail('TypeError', f'unknown type {base!r}')
        return self.definitions[base]

    def is_record(self, base: str) -> bool:
        return base in self.definitions and self.definitions[base].kind == 'record'

    def resolve_parsed(self, raw: str) -> ParsedTypeName:
        """Resolve `raw` to a ParsedTypeName whose base is a primitive or record.

        Aliases may themselves name array types; their dimensions are nested
        inside the dimensions written at the use site.
        """
        parsed = parse_type_name(raw)
        dimensions: List[int] = list(parsed.dimensions)
        current = parsed.base
        seen = set()
        while True:
            definition = self.lookup(current)
            if definition.kind != 'alias':
                break
            if current in seen:
                raise fail('TypeError', f'circular type definition: {current}')
            seen.add(current)
            target = parse_type_name(definition.target)
            dimensions.extend(target.dimensions)
            current = target.base
        return ParsedTypeName(current, tuple(dimensions))

    def resolve(self, raw: str) -> str:
        """Return the canonical name of `raw`, e.g. `matrix` -> `integer[3][3]`."""
        return str(self.resolve_parsed(raw))

    def element_type(self, canonical: str) -> str:
        """Drop the outermost dimension of an array type."""
        parsed = self.resolve_parsed(canonical)
        if not parsed.dimensions:
            raise fail('TypeError', f'type {canonical} is not an array')
        return str(ParsedTypeName(parsed.base, parsed.dimensions[1:]))

    def field_type(self, record: str, name: str) -> str:
        definition = self.lookup(record)
        if definition.kind != 'record':
            raise fail('TypeError', f'type {record} is not a record')
        if name not in definition.fields:
            raise fail('NameError', f'record {record} has no field {name!r}')
        return self.resolve(definition.fields[name])
