# Pseudocode interpreter package
# This package provides an interpreter for kamus/algoritma structured pseudocode.
from .interpreter import run_program, Interpreter
from .errors import PsdError, ErrorVal
from .source import load_program

__all__ = [
    'run_program',
    'load_program',
    'Interpreter',
    'PsdError',
    'ErrorVal',
]
