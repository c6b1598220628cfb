"""Expression and assignment-target parser.

Statements are recognised line by line by the engine; this module only
parses the expression parts of a statement (conditions, right-hand sides,
arguments, loop bounds) and the left-hand side of assignments. The text is
fed into a Lark LALR parser built from `EXPRESSION_GRAMMAR` and the
resulting parse tree is transformed into the nodes of `psd.ast`.

The grammar has two start symbols: `expression` for values and `target` for
assignment paths of the form `name(.field | [expression])*`.
"""

from __future__ import annotations

from typing import List

from lark import Lark, Transformer
from lark.exceptions import LarkError

from .ast import (
    Node, Literal, Ident, BinaryOp, LogicalOp, UnaryOp, Index, Member, Call,
    FieldAccessor, IndexAccessor, Target,
)
from .errors import fail


EXPRESSION_GRAMMAR = r"""
    ?expression: or_test

    ?or_test: and_test
            | or_test "or" and_test          -> logic_or
    ?and_test: comparison
             | and_test "and" comparison     -> logic_and
    ?comparison: sum
               | sum COMP_OP sum             -> binary
    ?sum: product
        | sum PLUS product                   -> binary
        | sum MINUS product                  -> binary
    ?product: unary
            | product STAR unary             -> binary
            | product SLASH unary            -> binary
            | product DIV unary              -> binary
            | product MOD unary              -> binary
    ?unary: "not" unary                      -> logic_not
          | MINUS unary                      -> negate
          | postfix
    ?postfix: atom
            | postfix "[" expression "]"     -> index
            | postfix "." NAME               -> member
    ?atom: INT                               -> integer
         | REAL                              -> real
         | STRING                            -> string
         | CHAR                              -> character
         | TRUE                              -> boolean
         | FALSE                             -> boolean
         | NAME "(" [arguments] ")"          -> call
         | NAME                              -> variable
         | "(" expression ")"
    arguments: expression ("," expression)*

    target: NAME accessor*
    ?accessor: "." NAME                      -> field_accessor
             | "[" expression "]"            -> index_accessor

    COMP_OP: /<=|>=|<>|<|>|=/
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    DIV: "div"
    MOD: "mod"
    TRUE: "true"
    FALSE: "false"
    REAL.2: /\d+\.\d+/
    INT: /\d+/
    STRING: /"[^"]*"/
    CHAR: /'[^']*'/
    NAME: /[A-Za-z_]\w*/

    %import common.WS
    %ignore WS
"""


EXPRESSION_PARSER = Lark(
    EXPRESSION_GRAMMAR,
    parser='lalr',
    start=['expression', 'target'],
    maybe_placeholders=False,
)


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into expression nodes."""

    def integer(self, items):
        return Literal(int(items[0]), 'integer')

    def real(self, items):
        return Literal(float(items[0]), 'real')

    def string(self, items):
        return Literal(str(items[0])[1:-1], 'string')

    def character(self, items):
        return Literal(str(items[0])[1:-1], 'character')

    def boolean(self, items):
        return Literal(items[0].type == 'TRUE', 'boolean')

    def variable(self, items):
        return Ident(str(items[0]))

    def call(self, items):
        args: List[Node] = items[1] if len(items) > 1 else []
        return Call(func=str(items[0]), args=args)

    def arguments(self, items):
        return list(items)

    def index(self, items):
        return Index(target=items[0], index=items[1])

    def member(self, items):
        return Member(target=items[0], name=str(items[1]))

    def negate(self, items):
        # items: MINUS token, operand
        return UnaryOp(op='-', operand=items[-1])

    def logic_not(self, items):
        return UnaryOp(op='not', operand=items[0])

    def logic_and(self, items):
        return LogicalOp(op='and', left=items[0], right=items[1])

    def logic_or(self, items):
        return LogicalOp(op='or', left=items[0], right=items[1])

    def binary(self, items):
        left, operator, right = items
        return BinaryOp(op=str(operator), left=left, right=right)

    def field_accessor(self, items):
        return FieldAccessor(str(items[0]))

    def index_accessor(self, items):
        return IndexAccessor(items[0])

    def target(self, items):
        return Target(name=str(items[0]), accessors=list(items[1:]))


def _parse(text: str, start: str):
    try:
        tree = EXPRESSION_PARSER.parse(text, start=start)
    except LarkError as e:
        what = 'expression' if start == 'expression' else 'assignment target'
        detail = (str(e).strip().splitlines() or [type(e).__name__])[0]
        raise fail('ParseError', f'invalid {what} {text.strip()!r}: {detail}')
    return ASTTransformer().transform(tree)


def parse_expression(text: str) -> Node:
    """Parse an expression such as `a[i] + size(b) * 2`."""
    return _parse(text, 'expression')


def parse_target(text: str) -> Target:
    """Parse an assignment target such as `people[i].name`."""
    return _parse(text, 'target')
