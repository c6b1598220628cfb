"""Expression evaluation.

`ExpressionEvaluator` parses expression text (caching the parsed nodes)
and evaluates it against a mapping of variable names to values. It never
writes to that mapping.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

from .ast import Node, Literal, Ident, BinaryOp, LogicalOp, UnaryOp, Index, Member, Call
from .builtin_function import BuiltinFunction
from .errors import fail
from .parser import parse_expression
from .types import TypeRegistry
from .values import ArrayVal, RecordVal, cast_value, is_composite, type_name, values_equal


def is_number(value: Any) -> bool:
    # bool is a subclass of int; booleans are not numbers here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def truncating_divmod(a: int, b: int):
    """Integer division rounded toward zero, with the matching remainder."""
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return quotient, a - b * quotient


class ExpressionEvaluator:
    """Evaluates expressions for one interpreter run."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self.cache: Dict[str, Node] = {}
        self.functions: Dict[str, BuiltinFunction] = {}
        self.load_builtins()

    def load_builtins(self):
        def std_size(args: List[Any]) -> Any:
            value = args[0]
            if isinstance(value, ArrayVal):
                return len(value.items)
            if isinstance(value, str):
                return len(value)
            raise fail('EvaluationError', f'size expects an array or string, got {type_name(value)}')

        def std_abs(args: List[Any]) -> Any:
            value = args[0]
            if not is_number(value):
                raise fail('EvaluationError', f'abs expects a number, got {type_name(value)}')
            return abs(value)

        def make_cast(target: str) -> Callable[[List[Any]], Any]:
            def std_cast(args: List[Any]) -> Any:
                if is_composite(args[0]):
                    raise fail('EvaluationError', f'{target} expects a primitive value, got {type_name(args[0])}')
                return cast_value(self.registry, args[0], target)
            return std_cast

        self.functions['size'] = BuiltinFunction('size', 1, std_size)
        self.functions['length'] = BuiltinFunction('length', 1, std_size)
        self.functions['abs'] = BuiltinFunction('abs', 1, std_abs)
        for target in ('integer', 'real', 'string', 'character', 'boolean'):
            self.functions[target] = BuiltinFunction(target, 1, make_cast(target))

    def parse(self, text: str) -> Node:
        key = text.strip()
        if key not in self.cache:
            self.cache[key] = parse_expression(key)
        return self.cache[key]

    def evaluate(self, text: str, env: Mapping[str, Any]) -> Any:
        """Parse and evaluate `text` against a name -> value mapping."""
        return self.evaluate_node(self.parse(text), env)

    def evaluate_node(self, node: Node, env: Mapping[str, Any]) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Ident):
            if node.name not in env:
                raise fail('NameError', f'undeclared variable {node.name}')
            return env[node.name]
        if isinstance(node, LogicalOp):
            left = self.require_boolean(node.op, self.evaluate_node(node.left, env))
            # Short-circuit: the right side only runs when it decides the result
            if node.op == 'and' and not left:
                return False
            if node.op == 'or' and left:
                return True
            return self.require_boolean(node.op, self.evaluate_node(node.right, env))
        if isinstance(node, UnaryOp):
            operand = self.evaluate_node(node.operand, env)
            if node.op == 'not':
                return not self.require_boolean('not', operand)
            if is_number(operand):
                return -operand
            raise fail('EvaluationError', f'unary - expects a number, got {type_name(operand)}')
        if isinstance(node, BinaryOp):
            left = self.evaluate_node(node.left, env)
            right = self.evaluate_node(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, Index):
            target = self.evaluate_node(node.target, env)
            index = self.evaluate_index(node.index, env)
            if isinstance(target, ArrayVal):
                if index < 0 or index >= len(target.items):
                    raise fail('BoundsError', f'array index {index} out of range 0..{len(target.items) - 1}')
                return target.items[index]
            if isinstance(target, str):
                if index < 0 or index >= len(target):
                    raise fail('BoundsError', f'string index {index} out of range for {target!r}')
                return target[index]
            raise fail('TypeError', f'cannot index a value of type {type_name(target)}')
        if isinstance(node, Member):
            target = self.evaluate_node(node.target, env)
            if not isinstance(target, RecordVal):
                raise fail('TypeError', f'cannot access field {node.name} on type {type_name(target)}')
            if node.name not in target.fields:
                raise fail('NameError', f'record {target.type_name} has no field {node.name!r}')
            return target.fields[node.name]
        if isinstance(node, Call):
            func = self.functions.get(node.func)
            if func is None:
                raise fail('EvaluationError', f'unknown function {node.func}')
            if func.arity is not None and len(node.args) != func.arity:
                raise fail('EvaluationError', f'{func.name} expects {func.arity} argument(s), got {len(node.args)}')
            args = [self.evaluate_node(arg, env) for arg in node.args]
            return func.fn(args)
        raise fail('EvaluationError', f'unsupported expression node {type(node).__name__}')

    def evaluate_index(self, node: Node, env: Mapping[str, Any]) -> int:
        index = self.evaluate_node(node, env)
        if isinstance(index, bool) or not isinstance(index, int):
            raise fail('TypeError', f'index must be an integer, got {type_name(index)}')
        return index

    def require_boolean(self, op: str, value: Any) -> bool:
        if not isinstance(value, bool):
            raise fail('EvaluationError', f"operator '{op}' expects boolean operands, got {type_name(value)}")
        return value

    def mismatch(self, op: str, a: Any, b: Any):
        return fail('EvaluationError', f"operator '{op}' not supported for {type_name(a)} and {type_name(b)}")

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op in ('+', '-', '*', '/'):
            if op == '+' and isinstance(a, str) and isinstance(b, str):
                return a + b
            if not (is_number(a) and is_number(b)):
                raise self.mismatch(op, a, b)
            if op == '+':
                return a + b
            if op == '-':
                return a - b
            if op == '*':
                return a * b
            if b == 0:
                raise fail('EvaluationError', 'division by zero')
            return a / b
        if op in ('div', 'mod'):
            if not (is_number(a) and is_number(b)) or isinstance(a, float) or isinstance(b, float):
                raise self.mismatch(op, a, b)
            if b == 0:
                raise fail('EvaluationError', f'division by zero ({op})')
            quotient, remainder = truncating_divmod(a, b)
            return quotient if op == 'div' else remainder
        if op in ('=', '<>'):
            comparable = (
                (is_number(a) and is_number(b))
                or (isinstance(a, str) and isinstance(b, str))
                or (isinstance(a, bool) and isinstance(b, bool))
                or (isinstance(a, ArrayVal) and isinstance(b, ArrayVal))
                or (isinstance(a, RecordVal) and isinstance(b, RecordVal))
            )
            if not comparable:
                raise self.mismatch(op, a, b)
            equal = values_equal(a, b)
            return equal if op == '=' else not equal
        if op in ('<', '<=', '>', '>='):
            if not ((is_number(a) and is_number(b)) or (isinstance(a, str) and isinstance(b, str))):
                raise self.mismatch(op, a, b)
            if op == '<':
                return a < b
            if op == '<=':
                return a <= b
            if op == '>':
                return a > b
            return a >= b
        raise fail('EvaluationError', f'unknown operator {op}')
