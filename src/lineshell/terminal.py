"""Raw keystroke input and cursor/colour control for an ANSI terminal."""

import contextlib
import logging
import os
import re
import select
import shutil
import sys
import termios
import tty
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

logger = logging.getLogger(__name__)

STDIN_FILENO = 0
ESC = "\x1b"
CSI = ESC + "["

_CURSOR_REPORT = re.compile(rb"\x1b\[(\d+);(\d+)R")
_REPORT_TIMEOUT = 0.1

_COLOURS: dict[str, int] = {
    "black": 30,
    "dark_red": 31,
    "dark_green": 32,
    "dark_yellow": 33,
    "dark_blue": 34,
    "dark_magenta": 35,
    "dark_cyan": 36,
    "gray": 37,
    "grey": 37,
    "dark_gray": 90,
    "dark_grey": 90,
    "red": 91,
    "green": 92,
    "yellow": 93,
    "blue": 94,
    "magenta": 95,
    "cyan": 96,
    "white": 97,
}
# bright_* spellings for the high-intensity half of the palette
_COLOURS.update({f"bright_{name}": code for name, code in _COLOURS.items() if code >= 91})


class KeyCode(Enum):
    ENTER = auto()
    BACKSPACE = auto()
    DELETE = auto()
    LEFT = auto()
    RIGHT = auto()
    UP = auto()
    DOWN = auto()
    HOME = auto()
    END = auto()
    TAB = auto()
    ESCAPE = auto()
    CHAR = auto()


@dataclass(frozen=True)
class Key:
    """A single key press: what it was, and the text it carries (if any)."""

    code: KeyCode
    char: str = ""


_SEQUENCES: dict[bytes, KeyCode] = {
    b"\r": KeyCode.ENTER,
    b"\n": KeyCode.ENTER,
    b"\x7f": KeyCode.BACKSPACE,
    b"\x08": KeyCode.BACKSPACE,
    b"\t": KeyCode.TAB,
    b"\x1b": KeyCode.ESCAPE,
    b"\x1b[A": KeyCode.UP,
    b"\x1b[B": KeyCode.DOWN,
    b"\x1b[C": KeyCode.RIGHT,
    b"\x1b[D": KeyCode.LEFT,
    b"\x1bOA": KeyCode.UP,
    b"\x1bOB": KeyCode.DOWN,
    b"\x1bOC": KeyCode.RIGHT,
    b"\x1bOD": KeyCode.LEFT,
    b"\x1b[H": KeyCode.HOME,
    b"\x1b[F": KeyCode.END,
    b"\x1bOH": KeyCode.HOME,
    b"\x1bOF": KeyCode.END,
    b"\x1b[1~": KeyCode.HOME,
    b"\x1b[7~": KeyCode.HOME,
    b"\x1b[4~": KeyCode.END,
    b"\x1b[8~": KeyCode.END,
    b"\x1b[3~": KeyCode.DELETE,
}


def _char_length(lead: int) -> int:
    """Bytes in the UTF-8 character that starts with lead (1 if it is not a lead byte)."""
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _escape_length(data: bytes) -> int:
    """Length of the escape sequence at the start of data."""
    for length in (4, 3):
        if data[:length] in _SEQUENCES:
            return length
    introducer = data[1:2]
    if introducer == b"O" and len(data) >= 3:
        return 3
    if introducer == b"[":
        # CSI: parameter and intermediate bytes, then one final byte
        for i in range(2, len(data)):
            if 0x40 <= data[i] <= 0x7E:
                return i + 1
        return len(data)
    return 1


def split_key(data: bytes) -> tuple[Key, bytes]:
    """Split the first key press off data; returns it with the leftover bytes.

    A key is one known escape sequence, one control byte, or one UTF-8
    character. Unrecognised escape sequences come back as CHAR with their
    raw text; being control characters, the editor ignores them.
    """
    if data[:1] == b"\x1b":
        length = _escape_length(data)
    else:
        length = _char_length(data[0])
    head, rest = data[:length], data[length:]
    code = _SEQUENCES.get(head)
    if code is not None:
        return Key(code), rest
    return Key(KeyCode.CHAR, head.decode("utf-8", errors="replace")), rest


def decode_key(data: bytes) -> Key:
    """The first key press in data."""
    return split_key(data)[0]


def colour_code(name: str) -> int:
    """Look up the ANSI foreground code for a colour name, ignoring case."""
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return _COLOURS[key]
    except KeyError:
        raise ValueError(f"unknown colour: {name}") from None


class Terminal:
    """The console as the line editor sees it.

    Input is read key by key from a file descriptor in cbreak mode;
    output is ANSI escape sequences written to a text stream.
    """

    def __init__(self, stdin_fd: int = STDIN_FILENO, stdout=None) -> None:
        self.stdin_fd = stdin_fd
        self._stdout = stdout
        self.cursor_visible = True
        self.current_colour: int | None = None
        self._pending = b""

    @property
    def stdout(self):
        # resolved late so a replaced sys.stdout is honoured
        return sys.stdout if self._stdout is None else self._stdout

    def is_interactive(self) -> bool:
        return os.isatty(self.stdin_fd)

    def read_key(self) -> Key:
        """Block until a key is pressed and return it.

        One read can return several keys (typing ahead, a paste); the
        bytes after the first key are kept for the following calls.
        """
        if not self._pending:
            self._pending = self._read()
        if self._pending[0] >= 0xC0:
            # finish a UTF-8 character split across reads
            while len(self._pending) < _char_length(self._pending[0]):
                more = os.read(self.stdin_fd, 32)
                if not more:
                    break
                self._pending += more
        key, self._pending = split_key(self._pending)
        return key

    def _read(self) -> bytes:
        data = os.read(self.stdin_fd, 32)
        if not data:
            raise EOFError
        return data

    def write(self, text: str) -> None:
        self.stdout.write(text)

    def flush(self) -> None:
        self.stdout.flush()

    def width(self) -> int:
        return shutil.get_terminal_size((80, 24)).columns

    def show_cursor(self, visible: bool) -> None:
        self.write(CSI + ("?25h" if visible else "?25l"))
        self.cursor_visible = visible

    def set_column(self, column: int) -> None:
        """Move the cursor to a 0-based column on the current row."""
        self.write(f"{CSI}{column + 1}G")

    def get_column(self) -> int:
        """Ask the terminal where the cursor is (0-based column).

        Only meaningful while input is unbuffered; answers 0 when the
        terminal does not report in time. Keys typed while waiting for
        the report are kept for read_key.
        """
        self.write(CSI + "6n")
        self.flush()
        response = b""
        match = None
        while match is None:
            ready, _, _ = select.select([self.stdin_fd], [], [], _REPORT_TIMEOUT)
            if not ready:
                break
            chunk = os.read(self.stdin_fd, 32)
            if not chunk:
                break
            response += chunk
            match = _CURSOR_REPORT.search(response)
        if match is None:
            logger.debug("no cursor position report (got %r)", response)
            self._pending += response
            return 0
        self._pending += response[: match.start()] + response[match.end() :]
        return int(match.group(2)) - 1

    def colour(self, name: str) -> None:
        """Set the foreground colour by name, e.g. "red" or "Dark_Cyan"."""
        code = colour_code(name)
        self.write(f"{CSI}{code}m")
        self.current_colour = code

    def default_colour(self) -> None:
        self.write(CSI + "39m")
        self.current_colour = None

    @contextlib.contextmanager
    def session(self) -> Iterator["Terminal"]:
        """Borrow the terminal for one read.

        Switches stdin to cbreak mode (no echo, no line buffering, signals
        still delivered) and puts back the previous terminal attributes,
        cursor visibility and colour however the block exits.
        """
        saved_attrs = None
        saved_visible = self.cursor_visible
        saved_colour = self.current_colour
        if self.is_interactive():
            saved_attrs = termios.tcgetattr(self.stdin_fd)
            tty.setcbreak(self.stdin_fd, termios.TCSANOW)
        try:
            yield self
        finally:
            if saved_attrs is not None:
                termios.tcsetattr(self.stdin_fd, termios.TCSADRAIN, saved_attrs)
            self.show_cursor(saved_visible)
            if saved_colour is None:
                self.default_colour()
            else:
                self.write(f"{CSI}{saved_colour}m")
                self.current_colour = saved_colour
            self.flush()
