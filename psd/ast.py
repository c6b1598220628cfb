"""Expression syntax tree for the pseudocode language.

Statements are never turned into a tree: the engine works directly on
source lines. Only expressions and assignment targets are parsed, into the
nodes defined here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Union


@dataclass
class Node:
    """Base class for all expression nodes."""
    pass


@dataclass
class Literal(Node):
    value: Any
    kind: str  # 'integer', 'real', 'string', 'character' or 'boolean'


@dataclass
class Ident(Node):
    name: str


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class LogicalOp(Node):
    op: str  # 'and' or 'or'; the right side is evaluated lazily
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str  # 'not' or '-'
    operand: Node


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class Member(Node):
    target: Node
    name: str


@dataclass
class Call(Node):
    func: str
    args: List[Node]


@dataclass
class FieldAccessor:
    name: str


@dataclass
class IndexAccessor:
    index: Node


Accessor = Union[FieldAccessor, IndexAccessor]


@dataclass
class Target:
    """An assignment target: a variable name followed by accessors."""
    name: str
    accessors: List[Accessor]
