from dataclasses import dataclass
from typing import Any, Dict, List

from psd.errors import fail


@dataclass
class Variable:
    """A declared variable: its value, canonical type and const flag."""
    value: Any
    type: str
    is_const: bool = False


class Environment:
    """Maps variable names to Variables for a single run.

    Counted loops keep their upper bound in a separate table so the
    bookkeeping can never collide with a program variable.
    """
    def __init__(self):
        self.variables: Dict[str, Variable] = {}
        self.loop_bounds: Dict[str, Any] = {}

    def __contains__(self, name: str) -> bool:
        return name in self.variables

    def names(self) -> List[str]:
        return list(self.variables.keys())

    def declare(self, name: str, value: Any, type_name: str, is_const: bool = False) -> Variable:
        if name in self.variables:
            raise fail('NameError', f'variable {name} already declared')
        variable = Variable(value, type_name, is_const)
        self.variables[name] = variable
        return variable

    def get(self, name: str) -> Variable:
        if name not in self.variables:
            raise fail('NameError', f'undeclared variable {name}')
        return self.variables[name]

    def value(self, name: str) -> Any:
        return self.get(name).value

    def snapshot(self) -> Dict[str, Any]:
        # Shallow: the evaluator only reads through it
        return {name: variable.value for name, variable in self.variables.items()}

    def set_loop_bound(self, name: str, end: Any):
        self.loop_bounds[name] = end

    def loop_bound(self, name: str) -> Any:
        if name not in self.loop_bounds:
            raise fail('ParseError', f"'endfor' reached without an active loop over {name}")
        return self.loop_bounds[name]

    def clear_loop_bound(self, name: str):
        self.loop_bounds.pop(name, None)
