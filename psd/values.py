"""Runtime values and conversions.

Scalars are plain Python objects: `int` for integer, `float` for real,
`bool` for boolean and `str` for both string and character. Composite
values are `ArrayVal` and `RecordVal`; each exclusively owns its children,
so the value graph of a run is always a tree and can be mutated in place
by walking down from a variable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
import math
import re

from .errors import fail
from .types import TypeRegistry

INTEGER_TEXT_RE = re.compile(r'^[+-]?\d+$')
REAL_TEXT_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
FORMAT_RE = re.compile(r'%[sdif%]')


@dataclass
class ArrayVal:
    """A fixed length array; `items` are the elements, outermost dimension first."""
    items: List[Any]

    def __repr__(self) -> str:
        return f"Array({self.items!r})"


@dataclass
class RecordVal:
    """A record value.

    `type_name` is the canonical record type the value was built for and
    `fields` maps each field name, in declaration order, to its value.
    """
    type_name: str
    fields: Dict[str, Any]

    def __repr__(self) -> str:
        return f"Record({self.type_name}, {self.fields!r})"


def is_composite(value: Any) -> bool:
    return isinstance(value, (ArrayVal, RecordVal))


def type_name(value: Any) -> str:
    """Return the language-level kind of a runtime value."""
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'real'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, ArrayVal):
        return 'array'
    if isinstance(value, RecordVal):
        return value.type_name
    return type(value).__name__


def to_string(value: Any) -> str:
    """Render a value as text, the way `output` and string casts show it."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(to_string(item) for item in value.items) + ']'
    if isinstance(value, RecordVal):
        entries = ', '.join(f"{k}: {to_string(v)}" for k, v in value.fields.items())
        return '{' + entries + '}'
    return str(value)


def format_values(template: str, values: List[Any]) -> str:
    """Fill `%s`, `%d`/`%i` and `%f` in `template` with `values`, in order.

    `%%` is a literal percent sign. A placeholder without a value is left
    as written; values without a placeholder are appended, space separated.
    """
    remaining = list(values)

    def substitute(match: re.Match) -> str:
        spec = match.group(0)
        if spec == '%%':
            return '%'
        if not remaining:
            return spec
        value = remaining.pop(0)
        if spec == '%s':
            return to_string(value)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise fail('EvaluationError', f'{spec} expects a number, got {type_name(value)}')
        if spec == '%f':
            return to_string(float(value))
        if not math.isfinite(value):
            raise fail('EvaluationError', f'{spec} cannot show {to_string(value)}')
        return str(int(value))

    text = FORMAT_RE.sub(substitute, template)
    return ' '.join([text] + [to_string(v) for v in remaining])


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality; callers check that the operand kinds are comparable."""
    if isinstance(a, ArrayVal) and isinstance(b, ArrayVal):
        if len(a.items) != len(b.items):
            return False
        return all(values_equal(x, y) for x, y in zip(a.items, b.items))
    if isinstance(a, RecordVal) and isinstance(b, RecordVal):
        if a.type_name != b.type_name or a.fields.keys() != b.fields.keys():
            return False
        return all(values_equal(a.fields[k], b.fields[k]) for k in a.fields)
    return a == b


def _primitive_default(base: str) -> Any:
    if base == 'integer':
        return 0
    if base == 'real':
        return 0.0
    if base == 'boolean':
        return False
    return ''


def create_default(registry: TypeRegistry, type_spec: str, _building: Tuple[str, ...] = ()) -> Any:
    """Build the default value for a (possibly aliased, possibly array) type.

    Every array element and record field gets its own freshly built value.
    Record fields are defaulted in declaration order.
    """
    parsed = registry.resolve_parsed(type_spec)
    definition = registry.lookup(parsed.base)
    if definition.kind == 'record' and parsed.base in _building:
        raise fail('TypeError', f'recursive record type {parsed.base}')

    def build(dimensions: Tuple[int, ...]) -> Any:
        if dimensions:
            return ArrayVal([build(dimensions[1:]) for _ in range(dimensions[0])])
        if definition.kind == 'record':
            inner = _building + (parsed.base,)
            return RecordVal(parsed.base, {
                name: create_default(registry, field_type, inner)
                for name, field_type in definition.fields.items()
            })
        return _primitive_default(parsed.base)

    return build(parsed.dimensions)


def cast_value(registry: TypeRegistry, value: Any, target: str) -> Any:
    """Convert `value` to the primitive type `target`.

    Arrays and records pass through unchanged; shape checks belong to the
    caller. Raises a CastError when text cannot be read as a number.
    """
    if is_composite(value):
        return value
    parsed = registry.resolve_parsed(target)
    if parsed.dimensions or registry.is_record(parsed.base):
        raise fail('TypeError', f'cannot convert {type_name(value)} to {parsed}')
    base = parsed.base
    if base == 'integer':
        if isinstance(value, bool):
            raise fail('CastError', f'cannot convert boolean {to_string(value)} to integer')
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if not math.isfinite(value):
                raise fail('CastError', f'cannot convert {to_string(value)} to integer')
            return int(value)
        text = to_string(value).strip()
        if not INTEGER_TEXT_RE.match(text):
            raise fail('CastError', f'input {to_string(value)!r} is not a valid integer')
        return int(text)
    if base == 'real':
        if isinstance(value, bool):
            raise fail('CastError', f'cannot convert boolean {to_string(value)} to real')
        if isinstance(value, (int, float)):
            return float(value)
        text = to_string(value).strip()
        if not REAL_TEXT_RE.match(text):
            raise fail('CastError', f'input {to_string(value)!r} is not a valid real')
        return float(text)
    if base == 'boolean':
        if isinstance(value, bool):
            return value
        # Anything that is not the word "true" reads as false
        return to_string(value).strip().lower() == 'true'
    if base == 'string':
        return to_string(value)
    if base == 'character':
        text = to_string(value)
        return text[0] if text else ''
    return value
