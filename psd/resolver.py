"""Assignment through access paths.

A target such as `class.students[i].grade` is a variable name followed by
field and index accessors. `PathResolver` walks the accessors from the
variable down, re-resolving the declared type at every step, and writes the
converted value only at the last accessor.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

from .ast import FieldAccessor, Target
from .environment import Environment, Variable
from .errors import fail
from .evaluator import ExpressionEvaluator
from .parser import parse_target
from .types import TypeRegistry
from .values import ArrayVal, RecordVal, cast_value, is_composite, type_name


class PathResolver:
    def __init__(self, registry: TypeRegistry, evaluator: ExpressionEvaluator):
        self.registry = registry
        self.evaluator = evaluator
        self.cache: Dict[str, Target] = {}

    def parse(self, text: str) -> Target:
        key = text.strip()
        if key not in self.cache:
            self.cache[key] = parse_target(key)
        return self.cache[key]

    def coerce(self, value: Any, declared: str) -> Any:
        """Convert `value` for storage in a slot of type `declared`."""
        parsed = self.registry.resolve_parsed(declared)
        if parsed.is_array:
            if not isinstance(value, ArrayVal):
                raise fail('TypeError', f'cannot assign {type_name(value)} to array type {parsed}')
            if len(value.items) != parsed.dimensions[0]:
                raise fail('TypeError', f'array of length {len(value.items)} does not fit type {parsed}')
            element = self.registry.element_type(str(parsed))
            return ArrayVal([self.coerce(item, element) for item in value.items])
        if self.registry.is_record(parsed.base):
            if not isinstance(value, RecordVal) or value.type_name != parsed.base:
                raise fail('TypeError', f'cannot assign {type_name(value)} to record type {parsed.base}')
            return copy.deepcopy(value)
        if is_composite(value):
            raise fail('TypeError', f'cannot assign {type_name(value)} to {parsed.base}')
        return cast_value(self.registry, value, parsed.base)

    def assign(self, target_text: str, value: Any, env: Environment):
        """Write `value` into the location named by `target_text`."""
        target = self.parse(target_text)
        variable = env.get(target.name)
        if variable.is_const:
            raise fail('ConstError', f'cannot assign to constant {target.name}')
        if not target.accessors:
            variable.value = self.coerce(value, variable.type)
            return

        # (container, key) of the slot holding `current`; a Variable is keyed by None
        container: Any = variable
        key: Any = None
        current = variable.value
        current_type = variable.type
        last = len(target.accessors) - 1
        for position, accessor in enumerate(target.accessors):
            parsed = self.registry.resolve_parsed(current_type)
            if isinstance(accessor, FieldAccessor):
                if parsed.is_array or not self.registry.is_record(parsed.base):
                    raise fail('TypeError', f'type {parsed} is not a record, cannot access .{accessor.name}')
                field_type = self.registry.field_type(parsed.base, accessor.name)
                container, key = current.fields, accessor.name
                current_type = field_type
            else:
                index = self.evaluator.evaluate_index(accessor.index, env.snapshot())
                if parsed.is_array:
                    if index < 0 or index >= len(current.items):
                        raise fail('BoundsError', f'array index {index} out of range 0..{len(current.items) - 1}')
                    container, key = current.items, index
                    current_type = self.registry.element_type(str(parsed))
                elif parsed.base == 'string':
                    if position != last:
                        raise fail('TypeError', 'cannot access into a character of a string')
                    if index < 0 or index >= len(current):
                        raise fail('BoundsError', f'string index {index} out of range for {current!r}')
                    if isinstance(value, str) and len(value) != 1:
                        raise fail('TypeError', f'string index {index} takes a single character, got {value!r}')
                    char = self.coerce(value, 'character')
                    self._store(container, key, current[:index] + char + current[index + 1:])
                    return
                else:
                    raise fail('TypeError', f'cannot index into type {parsed}')
            if position == last:
                self._store(container, key, self.coerce(value, current_type))
                return
            current = container[key]

    def read(self, target_text: str, env: Environment) -> Any:
        """Return the value currently stored at `target_text`."""
        target = self.parse(target_text)
        node = self.evaluator.parse(target_text)
        if target.name not in env:
            raise fail('NameError', f'undeclared variable {target.name}')
        return self.evaluator.evaluate_node(node, env.snapshot())

    @staticmethod
    def _store(container: Any, key: Any, value: Any):
        if isinstance(container, Variable):
            container.value = value
        else:
            container[key] = value
