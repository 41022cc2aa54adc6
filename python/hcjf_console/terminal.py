"""Terminal capability used by the editor, the spinner and the shells.

Everything that touches the screen goes through a :class:`Terminal`, so
tests can swap in a recording fake and the raw-mode handling stays in one
place.
"""

from __future__ import annotations

import contextlib
import os
import select
import sys
import threading
from typing import Iterator, Optional, TextIO

from prompt_toolkit.input.vt100 import raw_mode
from prompt_toolkit.output.color_depth import ColorDepth
from prompt_toolkit.output.vt100 import Vt100_Output
from prompt_toolkit.styles import DEFAULT_ATTRS

try:
    import termios
except ImportError:  # pragma: no cover - non-POSIX
    termios = None  # type: ignore


class Terminal:
    """Abstract terminal; every render step runs under :attr:`lock`."""

    def __init__(self) -> None:
        self.lock = threading.RLock()

    # Output -----------------------------------------------------------
    def write(self, text: str) -> None:
        raise NotImplementedError

    def write_styled(
        self,
        text: str,
        color: Optional[str] = None,
        *,
        bgcolor: Optional[str] = None,
        bold: bool = False,
    ) -> None:
        raise NotImplementedError

    def erase_line(self) -> None:
        """Erase the whole current line and return to column 0."""
        raise NotImplementedError

    def move_to_column(self, column: int) -> None:
        raise NotImplementedError

    def clear_screen(self) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def newline(self) -> None:
        self.write("\n")

    def print_line(self, text: str = "", color: Optional[str] = None) -> None:
        with self.lock:
            if color:
                self.write_styled(text, color)
            else:
                self.write(text)
            self.newline()
            self.flush()

    # Input ------------------------------------------------------------
    def poll(self, timeout: float) -> bool:
        """Return True when input is ready within *timeout* seconds."""
        raise NotImplementedError

    def read(self, size: int) -> bytes:
        raise NotImplementedError

    @contextlib.contextmanager
    def input_mode(self) -> Iterator[None]:
        yield


class _KeyInputMode(raw_mode):
    """Unbuffered, non-echoing input that still honours Ctrl-C.

    Signals and CR→NL translation are left enabled so an interrupt reaches
    the main thread and Enter arrives as a newline byte.
    """

    @classmethod
    def _patch_lflag(cls, attrs: int) -> int:
        return attrs & ~(termios.ECHO | termios.ICANON | termios.IEXTEN)

    @classmethod
    def _patch_iflag(cls, attrs: int) -> int:
        return attrs & ~(termios.IXON | termios.IXOFF)


class TtyTerminal(Terminal):
    """Real terminal: prompt_toolkit VT100 output plus raw stdin reads."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        super().__init__()
        self._stdin = stdin or sys.stdin
        self._fileno = self._stdin.fileno()
        self.output = Vt100_Output.from_pty(stdout or sys.stdout)
        self.color_depth = ColorDepth.DEPTH_4_BIT

    def write(self, text: str) -> None:
        self.output.write(text)

    def write_styled(
        self,
        text: str,
        color: Optional[str] = None,
        *,
        bgcolor: Optional[str] = None,
        bold: bool = False,
    ) -> None:
        attrs = DEFAULT_ATTRS._replace(color=color or "", bgcolor=bgcolor or "", bold=bold)
        self.output.set_attributes(attrs, self.color_depth)
        self.output.write(text)
        self.output.reset_attributes()

    def erase_line(self) -> None:
        self.output.write_raw("\r\x1b[2K")

    def move_to_column(self, column: int) -> None:
        self.output.write_raw("\r")
        self.output.cursor_forward(column)

    def clear_screen(self) -> None:
        self.output.erase_screen()
        self.output.cursor_goto(0, 0)

    def newline(self) -> None:
        self.output.write_raw("\r\n")

    def flush(self) -> None:
        self.output.flush()

    def poll(self, timeout: float) -> bool:
        ready, _, _ = select.select([self._fileno], [], [], timeout)
        return bool(ready)

    def read(self, size: int) -> bytes:
        return os.read(self._fileno, size)

    @contextlib.contextmanager
    def input_mode(self) -> Iterator[None]:
        if termios is None:
            yield
            return
        with _KeyInputMode(self._fileno):
            yield
