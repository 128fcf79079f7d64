"""
Terminal interaction: the y/n confirmation prompt and the checkbox menu.
"""
import os
import sys
import termios
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence, TextIO, Tuple

from .config import Option

ENTER_KEYS = (b"\r", b"\n")
SPACE = b" "
ESCAPE = b"\x1b"
ARROW_UP = b"\x1b[A"
ARROW_DOWN = b"\x1b[B"

CURSOR_UP = "\x1b[{count}A\r"
CLEAR_TO_EOL = "\x1b[K"

GUIDANCE = "Please choose y or n\n"

MAX_ANSWER_BYTES = 16


class InputClosedError(EOFError):
    """Standard input reached end of file while an answer was expected."""


def answer_hint(default: Optional[bool]) -> str:
    if default is True:
        return "(Y/n)"
    if default is False:
        return "(y/N)"
    return "(y/n)"


def read_line(fd: int, limit: int = MAX_ANSWER_BYTES) -> str:
    """
    Read one line from a descriptor a byte at a time.

    Nothing past the newline is consumed, so a menu reading the same
    descriptor afterwards sees the remaining input. Bytes beyond `limit` are
    read and dropped. Returns "" only at end of input.
    """
    data = bytearray()
    while True:
        byte = os.read(fd, 1)
        if not byte:
            break
        if len(data) < limit:
            data += byte
        if byte == b"\n":
            break
    return os.fsdecode(bytes(data))


def _read_stream_line(stream: TextIO, limit: int = MAX_ANSWER_BYTES) -> str:
    line = stream.readline(limit)
    rest = line
    while rest and not rest.endswith("\n"):
        rest = stream.readline(limit)
    return line


def confirm(question: str, default: Optional[bool] = None,
            stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> bool:
    """
    Ask a yes/no question until it gets a usable answer.

    An empty answer picks the default when there is one. End of input is
    treated like an empty answer; with no default to fall back on it raises
    InputClosedError.

    Without an explicit stream, answers are read straight from the stdin
    descriptor, the same way SelectionMenu reads keys.
    """
    stdout = stdout or sys.stdout
    if stdin is None:
        fd = sys.stdin.fileno()

        def next_line() -> str:
            return read_line(fd)
    else:
        def next_line() -> str:
            return _read_stream_line(stdin)

    while True:
        stdout.write(f"{question}? {answer_hint(default)} ")
        stdout.flush()

        line = next_line()
        answer = line.strip()

        if not answer:
            if default is not None:
                return default
            if not line:
                raise InputClosedError(f"No answer to '{question}': input closed")
            stdout.write(GUIDANCE)
            continue

        if answer in ("y", "Y"):
            return True
        if answer in ("n", "N"):
            return False
        stdout.write(GUIDANCE)


@contextmanager
def raw_mode(fd: Optional[int]):
    """
    Turn off line buffering and echo on a terminal for the duration of the block.

    The previous settings are restored on every exit path. Descriptors that
    are not terminals are left alone.
    """
    if fd is None or not os.isatty(fd):
        yield
        return

    original = termios.tcgetattr(fd)
    raw = termios.tcgetattr(fd)
    raw[3] &= ~(termios.ICANON | termios.ECHO)
    raw[6][termios.VMIN] = 1
    raw[6][termios.VTIME] = 0
    termios.tcsetattr(fd, termios.TCSAFLUSH, raw)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSAFLUSH, original)


def split_keys(buffer: bytes) -> Tuple[List[bytes], bytes]:
    """
    Split raw input into keys: 3-byte ESC [ x sequences or single bytes.

    A trailing ESC or ESC [ is returned as the unconsumed rest, since the
    rest of the sequence may arrive with the next read.
    """
    keys = []
    i = 0
    while i < len(buffer):
        if buffer[i:i + 1] == ESCAPE:
            sequence = buffer[i:i + 3]
            if len(sequence) == 3 and sequence[1:2] == b"[":
                keys.append(sequence)
                i += 3
                continue
            if len(sequence) < 3 and b"\x1b[".startswith(sequence):
                break
        keys.append(buffer[i:i + 1])
        i += 1
    return keys, buffer[i:]


class SelectionMenu:
    """Checkbox list driven by arrow keys, space and enter."""

    def __init__(self, header: str, options: Sequence[Option], *,
                 fd: Optional[int] = None, stdout: Optional[TextIO] = None,
                 read_key: Optional[Callable[[], bytes]] = None):
        self.header = header
        self.options = list(options)
        self.selected = [option.default for option in self.options]
        self.cursor = 0
        self.stdout = stdout or sys.stdout

        if read_key is None:
            if fd is None:
                fd = sys.stdin.fileno()

            def read_key() -> bytes:
                return os.read(fd, 1)
        self.fd = fd
        self.read_key = read_key

    def option_lines(self, clear: bool = False) -> List[str]:
        suffix = CLEAR_TO_EOL if clear else ""
        lines = []
        for index, option in enumerate(self.options):
            cursor = ">" if index == self.cursor else " "
            checkbox = "[x]" if self.selected[index] else "[ ]"
            lines.append(f"{cursor} {checkbox} {option.name}{suffix}\n")
        return lines

    def render(self) -> str:
        return f"{self.header}\n" + "".join(self.option_lines())

    def redraw_text(self) -> str:
        """Move back over the option lines and repaint them."""
        return CURSOR_UP.format(count=len(self.options)) + "".join(self.option_lines(clear=True))

    def handle_key(self, key: bytes) -> bool:
        """
        Apply one key. Returns True when the key confirms the menu.
        """
        if key[:1] in ENTER_KEYS:
            return True

        if key[:1] == SPACE:
            self.selected[self.cursor] = not self.selected[self.cursor]
            self._redraw()
        elif key == ARROW_UP:
            if self.cursor > 0:
                self.cursor -= 1
                self._redraw()
        elif key == ARROW_DOWN:
            if self.cursor < len(self.options) - 1:
                self.cursor += 1
                self._redraw()
        return False

    def run(self) -> List[bool]:
        """Show the menu and return the selection flags once Enter is pressed."""
        if not self.options:
            return []

        self._write(self.render())
        pending = b""
        with raw_mode(self.fd):
            while True:
                chunk = self.read_key()
                if not chunk:
                    raise InputClosedError(f"Input closed during '{self.header}'")
                keys, pending = split_keys(pending + chunk)
                if any(self.handle_key(key) for key in keys):
                    break
        self._write("\n")
        return list(self.selected)

    def _redraw(self):
        self._write(self.redraw_text())

    def _write(self, text: str):
        self.stdout.write(text)
        self.stdout.flush()
