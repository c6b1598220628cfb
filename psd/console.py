import builtins
from collections import deque
from typing import Callable, Optional

from psd.errors import fail


class InputBuffer:
    """Line-buffered token source for `input` statements.

    Tokens are handed out first in, first out; a new line is read (blocking)
    only when every token of the previous line has been consumed. Blank
    lines are skipped.
    """
    def __init__(self, read_line: Optional[Callable[[], str]] = None):
        self.read_line = read_line
        self.tokens = deque()

    def _read(self) -> str:
        if self.read_line is not None:
            return self.read_line()
        return builtins.input()

    def next_token(self) -> str:
        while not self.tokens:
            try:
                line = self._read()
            except (EOFError, StopIteration):
                raise fail('InputError', 'end of input reached while reading a value')
            self.tokens.extend(line.split())
        return self.tokens.popleft()
