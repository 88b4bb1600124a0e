"""Single-line interactive editor with cursor movement and tab completion.

The whole line is redrawn after every key: the text is written from the
column where input started and padded with spaces to the right edge, so
whatever a longer earlier version of the line left behind is erased.
"""

import unicodedata
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from lineshell.completion import complete
from lineshell.terminal import Key, KeyCode, Terminal

Completer: TypeAlias = Callable[[str, int], tuple[str, int]]


@dataclass
class EditBuffer:
    """The text being edited and the insertion point within it."""

    text: str = ""
    cursor: int = 0

    def insert(self, ch: str) -> None:
        self.text = self.text[: self.cursor] + ch + self.text[self.cursor :]
        self.cursor += len(ch)

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
        self.cursor -= 1

    def delete(self) -> None:
        self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]

    def left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def right(self) -> None:
        self.cursor = min(len(self.text), self.cursor + 1)

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.text)


_MOVES: dict[KeyCode, Callable[[EditBuffer], None]] = {
    KeyCode.BACKSPACE: EditBuffer.backspace,
    KeyCode.DELETE: EditBuffer.delete,
    KeyCode.LEFT: EditBuffer.left,
    KeyCode.RIGHT: EditBuffer.right,
    KeyCode.HOME: EditBuffer.home,
    KeyCode.END: EditBuffer.end,
}


def is_printable(text: str) -> bool:
    """True for text free of control characters (category Cc)."""
    return bool(text) and all(unicodedata.category(ch) != "Cc" for ch in text)


class LineEditor:
    """Reads one line from a terminal, a key at a time."""

    def __init__(self, terminal: Terminal, completer: Completer = complete) -> None:
        self.terminal = terminal
        self.completer = completer
        self.buffer = EditBuffer()
        self.origin = 0

    def read_line(self) -> str:
        """Edit a fresh line until Enter is pressed and return its text."""
        self.buffer = EditBuffer()
        with self.terminal.session():
            self.origin = self.terminal.get_column()
            while True:
                self.render()
                if self.handle_key(self.terminal.read_key()):
                    self.terminal.write("\n")
                    self.terminal.flush()
                    return self.buffer.text

    def handle_key(self, key: Key) -> bool:
        """Apply one key press to the buffer. Returns True on Enter."""
        if key.code is KeyCode.ENTER:
            return True

        move = _MOVES.get(key.code)
        if move is not None:
            move(self.buffer)
        elif key.code is KeyCode.TAB:
            if self.buffer.text:
                text, cursor = self.completer(self.buffer.text, self.buffer.cursor)
                self.buffer = EditBuffer(text, max(0, min(len(text), cursor)))
        elif key.code is KeyCode.CHAR and is_printable(key.char):
            self.buffer.insert(key.char)
        return False

    def render(self) -> None:
        term = self.terminal
        text = self.buffer.text
        padding = max(0, term.width() - self.origin - len(text) - 1)

        term.show_cursor(False)
        term.set_column(self.origin)
        term.write(text + " " * padding)
        term.set_column(self.origin + self.buffer.cursor)
        term.show_cursor(True)
        term.flush()


def read_line(terminal: Terminal | None = None) -> str:
    """Read a line from the console with editing keys and tab completion."""
    return LineEditor(terminal or Terminal()).read_line()
