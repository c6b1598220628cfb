"""Interpreter for the pseudocode language.

This module implements the statement execution engine. There is no
statement syntax tree: a program counter walks over the lines of the
`algoritma` section, each line is split into `;` separated statements and
every statement is recognised by its leading keyword (or as an
assignment). Control flow is implemented by scanning the lines forward or
backward from the current position for the matching block keyword,
counting nested blocks of the same family on the way. Expressions are
handed to `ExpressionEvaluator` and writes go through `PathResolver`.
"""

from __future__ import annotations

import re
import sys
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .console import InputBuffer
from .declarations import DeclarationProcessor
from .environment import Environment
from .errors import PsdError, fail
from .evaluator import ExpressionEvaluator, is_number
from .resolver import PathResolver
from .source import ProgramSource, load_program, split_arguments, split_statements
from .types import TypeRegistry
from .values import format_values, to_string

WORD_RE = re.compile(r'^[A-Za-z_]\w*')
ELSE_IF_RE = re.compile(r'^else\s+if\b')
CALL_RE = re.compile(r'^(outputf|output|inputf|input)\s*\((.*)\)$', re.S)
HEADER_IF = re.compile(r'^if\s+(.+)\s+then$')
HEADER_ELSE_IF = re.compile(r'^else\s+if\s+(.+)\s+then$')
HEADER_FOR = re.compile(r'^for\s+([A-Za-z_]\w*)\s*=\s*(.+?)\s+to\s+(.+)\s+do$')
HEADER_WHILE = re.compile(r'^while\s+(.+)\s+do$')
HEADER_UNTUK = re.compile(r'^untuk\s+(.+)$')


def keyword_of(statement: str) -> Optional[str]:
    """The leading keyword of a statement; `else if` counts as one keyword."""
    match = WORD_RE.match(statement)
    if not match:
        return None
    word = match.group(0)
    if word == 'else' and ELSE_IF_RE.match(statement):
        return 'else if'
    return word


def split_assignment(statement: str) -> Optional[Tuple[str, str, str]]:
    """Split `lhs = rhs` (or `lhs += rhs` ...) at its first top-level `=`.

    Returns (lhs, operator, rhs) where operator is '' for a plain
    assignment, or None when the statement is not an assignment.
    """
    in_string = False
    in_char = False
    depth = 0
    for i, c in enumerate(statement):
        if c == '"' and not in_char:
            in_string = not in_string
        elif c == "'" and not in_string:
            in_char = not in_char
        elif in_string or in_char:
            continue
        elif c in '([':
            depth += 1
        elif c in ')]':
            depth -= 1
        elif c == '=' and depth == 0:
            previous = statement[i - 1] if i > 0 else ''
            if previous in '<>' and previous:
                return None
            operator = previous if previous in ('+', '-', '*', '/') else ''
            lhs = statement[:i - 1] if operator else statement[:i]
            rhs = statement[i + 1:]
            if not lhs.strip() or not rhs.strip():
                return None
            return lhs.strip(), operator, rhs.strip()
    return None


class Interpreter:
    """Runs one program: owns its types, variables and input/output buffers."""

    def __init__(self, read_line: Optional[Callable[[], str]] = None,
                 debug_level: int = 0, debug_file: Optional[str] = 'debug.txt'):
        self.registry = TypeRegistry()
        self.env = Environment()
        self.evaluator = ExpressionEvaluator(self.registry)
        self.resolver = PathResolver(self.registry, self.evaluator)
        self.input = InputBuffer(read_line)
        self.output: List[str] = []
        # True after outputf, until the next output ends the line
        self.line_open = False
        self.lines: List[str] = []
        self.statements: List[List[str]] = []
        # Set when a false condition jumps onto an `else`/`else if` line
        self.pending_branch = False
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 and debug_file else None

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    # Public API
    def run(self, program: ProgramSource) -> List[str]:
        """Declare and execute a loaded program; returns the output lines."""
        try:
            self.debug(f"run {program.name}")
            self.declare(program.kamus, program.kamus_start)
            self.execute(program.algoritma, program.algoritma_start)
            self.debug(f"finished {program.name}: {len(self.output)} output line(s)")
            return self.output
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def declare(self, lines: Sequence[str], first_line: int = 1):
        processor = DeclarationProcessor(self.registry, self.env, debug=lambda msg: self.debug(msg, 2))
        processor.process(list(lines), first_line)
        self.debug(f"declared: {', '.join(self.env.names()) or '(nothing)'}")

    def execute(self, lines: Sequence[str], first_line: int = 1) -> List[str]:
        """Execute statement lines; `first_line` is the source number of `lines[0]`."""
        self.lines = list(lines)
        self.statements = [split_statements(line) for line in self.lines]
        pc = 0
        while pc < len(self.lines):
            next_pc = pc + 1
            for statement in self.statements[pc]:
                arrived_by_jump = self.pending_branch
                self.pending_branch = False
                try:
                    jump = self.execute_statement(statement, pc, arrived_by_jump)
                except PsdError as e:
                    raise e.at(first_line + pc, statement)
                if jump is not None:
                    self.debug(f"line {first_line + pc}: jump to line {first_line + jump}", 3)
                    next_pc = jump
                    break
            pc = next_pc
        return self.output

    # Statements
    def execute_statement(self, statement: str, pc: int, arrived_by_jump: bool = False) -> Optional[int]:
        """Run one statement; returns the next line index when control jumps."""
        keyword = keyword_of(statement)
        call = CALL_RE.match(statement)
        if call:
            self.call_io(call.group(1), split_arguments(call.group(2)))
            return None
        if keyword == 'if':
            match = self.header(HEADER_IF, statement, 'if')
            if self.condition(match.group(1)):
                return None
            return self.skip_branch(pc)
        if keyword == 'else if':
            if not arrived_by_jump:
                return self.find_forward(pc, 'if', 'endif')
            match = self.header(HEADER_ELSE_IF, statement, 'else if')
            if self.condition(match.group(1)):
                return None
            return self.skip_branch(pc)
        if keyword == 'else' and statement == 'else':
            if arrived_by_jump:
                return None
            return self.find_forward(pc, 'if', 'endif')
        if keyword == 'endif' and statement == 'endif':
            return None
        if keyword == 'for':
            return self.enter_for(statement, pc)
        if keyword == 'endfor' and statement == 'endfor':
            return self.close_for(pc)
        if keyword == 'while':
            match = self.header(HEADER_WHILE, statement, 'while')
            if self.condition(match.group(1)):
                return None
            return self.find_forward(pc, 'while', 'endwhile') + 1
        if keyword == 'endwhile' and statement == 'endwhile':
            return self.find_backward(pc, 'while', 'endwhile')
        if keyword == 'repeat' and statement == 'repeat':
            return None
        if keyword == 'untuk':
            match = self.header(HEADER_UNTUK, statement, 'untuk')
            done = self.condition(match.group(1))
            repeat_pc = self.find_backward(pc, 'repeat', 'untuk')
            return None if done else repeat_pc + 1
        assignment = split_assignment(statement)
        if assignment:
            self.assign(*assignment)
            return None
        raise fail('ParseError', f'unrecognised statement {statement!r}')

    def call_io(self, name: str, args: List[str]):
        if name == 'output':
            values = [self.evaluate(arg) for arg in args]
            self.write(' '.join(to_string(v) for v in values))
            return
        if name == 'outputf':
            if not args:
                raise fail('ParseError', 'outputf needs a format string')
            template = self.evaluate(args[0])
            if not isinstance(template, str):
                raise fail('EvaluationError', f'outputf format must be a string, got {to_string(template)}')
            values = [self.evaluate(arg) for arg in args[1:]]
            self.write(format_values(template, values), newline=False)
            return
        if name == 'inputf':
            if not args:
                raise fail('ParseError', 'inputf needs a format string')
            self.debug(f"inputf: format {args[0]} ignored", 1)
            args = args[1:]
        for target in args:
            token = self.input.next_token()
            self.resolver.assign(target, token, self.env)
            self.debug(f"input {target} <- {token!r}", 2)

    def write(self, text: str, newline: bool = True):
        """Append `text` to the output; without `newline` the line stays open for more text."""
        if self.line_open:
            self.output[-1] += text
        else:
            self.output.append(text)
        self.line_open = not newline

    def header(self, pattern: re.Pattern, statement: str, keyword: str) -> re.Match:
        match = pattern.match(statement)
        if not match:
            raise fail('ParseError', f"malformed '{keyword}' statement {statement!r}")
        return match

    def evaluate(self, expression: str) -> Any:
        return self.evaluator.evaluate(expression, self.env.snapshot())

    def condition(self, expression: str) -> bool:
        value = self.evaluate(expression)
        if not isinstance(value, bool):
            raise fail('EvaluationError', f'condition {expression!r} is {to_string(value)}, not a boolean')
        self.debug(f"condition {expression} -> {to_string(value)}", 3)
        return value

    def assign(self, lhs: str, operator: str, rhs: str):
        value = self.evaluate(rhs)
        if operator:
            current = self.resolver.read(lhs, self.env)
            value = self.evaluator.apply_binary_op(operator, current, value)
        self.resolver.assign(lhs, value, self.env)
        self.debug(f"assign {lhs} {operator}= {to_string(value)}", 2)

    def skip_branch(self, pc: int) -> int:
        """Jump from a false `if`/`else if` to the next sibling branch or `endif`."""
        target = self.find_forward(pc, 'if', 'endif', ('else if', 'else'))
        self.pending_branch = self.keyword_at(target) in ('else if', 'else')
        return target

    def enter_for(self, statement: str, pc: int) -> Optional[int]:
        match = self.header(HEADER_FOR, statement, 'for')
        name, start_text, end_text = match.groups()
        variable = self.env.get(name)
        if variable.is_const:
            raise fail('ConstError', f'loop variable {name} cannot be a constant')
        start = self.evaluate(start_text)
        end = self.evaluate(end_text)
        if not (is_number(start) and is_number(end)):
            raise fail('EvaluationError', f'for loop bounds must be numbers, got {to_string(start)} and {to_string(end)}')
        self.env.set_loop_bound(name, end)
        self.resolver.assign(name, start, self.env)
        if self.env.value(name) > end:
            # endfor increments the variable, clears the bound and falls through
            return self.find_forward(pc, 'for', 'endfor')
        return None

    def close_for(self, pc: int) -> Optional[int]:
        for_pc = self.find_backward(pc, 'for', 'endfor')
        match = self.header(HEADER_FOR, self.statements[for_pc][0], 'for')
        name = match.group(1)
        end = self.env.loop_bound(name)
        self.resolver.assign(name, self.env.value(name) + 1, self.env)
        if self.env.value(name) <= end:
            return for_pc + 1
        self.env.clear_loop_bound(name)
        return None

    # Block scanning
    def keyword_at(self, index: int) -> Optional[str]:
        statements = self.statements[index]
        return keyword_of(statements[0]) if statements else None

    def find_forward(self, pc: int, opener: str, closer: str, targets: Tuple[str, ...] = ()) -> int:
        """Index of the `closer` (or a sibling in `targets`) matching the block at `pc`."""
        depth = 0
        for i in range(pc + 1, len(self.lines)):
            keyword = self.keyword_at(i)
            if keyword == opener:
                depth += 1
            elif keyword == closer:
                if depth == 0:
                    return i
                depth -= 1
            elif depth == 0 and keyword in targets:
                return i
        raise fail('ParseError', f"missing '{closer}' for '{opener}'")

    def find_backward(self, pc: int, opener: str, closer: str) -> int:
        """Index of the `opener` line that the `closer` at `pc` belongs to."""
        depth = 0
        for i in range(pc - 1, -1, -1):
            keyword = self.keyword_at(i)
            if keyword == closer:
                depth += 1
            elif keyword == opener:
                if depth == 0:
                    return i
                depth -= 1
        raise fail('ParseError', f"'{closer}' without matching '{opener}'")


def run_program(source: str, read_line: Optional[Callable[[], str]] = None,
                debug_level: int = 0) -> List[str]:
    """Convenience function to load and run a program from source text.

    Returns the output buffer. Raises PsdError on structure, declaration or
    runtime errors.
    """
    program = load_program(source)
    interpreter = Interpreter(read_line=read_line, debug_level=debug_level)
    return interpreter.run(program)
