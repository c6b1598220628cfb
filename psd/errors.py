from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorVal:
    """Represents a pseudocode error.

    `name` is the error kind (ParseError, TypeError, CastError, NameError,
    ConstError, BoundsError, EvaluationError, StructureError, InputError)
    and `message` the human readable explanation.
    """
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


class PsdError(Exception):
    """Exception type used to propagate pseudocode errors.

    Every error is fatal to a run. The engine and the declaration processor
    attach the 1-based source line and the offending text before the error
    leaves the interpreter.
    """
    def __init__(self, err: ErrorVal, line: Optional[int] = None, statement: Optional[str] = None):
        super().__init__(f"{err.name}: {err.message}")
        self.err = err
        self.line = line
        self.statement = statement

    @property
    def name(self) -> str:
        return self.err.name

    def at(self, line: int, statement: str) -> 'PsdError':
        if self.line is None:
            self.line = line
            self.statement = statement
        return self

    def report(self) -> str:
        if self.line is None:
            return f"[{self.err.name}] {self.err.message}"
        return f"Error at line {self.line}:\n>>> {self.statement}\n{self.err.name}: {self.err.message}"


def fail(kind: str, message: str) -> PsdError:
    return PsdError(ErrorVal(kind, message))
