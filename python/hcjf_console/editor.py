"""Raw-mode single line editor.

A background thread polls the terminal, decodes key chunks and applies
them to the edit buffer while a caller is blocked in :meth:`LineEditor.read`.
Input that arrives while nobody is reading is drained and dropped.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .history import History
from .keys import CHUNK_SIZE, KeyEvent, KeyKind, decode_key, split_input
from .terminal import Terminal

LOGGER = logging.getLogger("hcjf_console.editor")

SECRET_CHARACTER = "*"


class EditorClosed(EOFError):
    """The editor was stopped while a read was pending."""


@dataclass
class EditBuffer:
    chars: List[str] = field(default_factory=list)
    cursor: int = 0
    secret: bool = False
    listening: bool = False

    @property
    def text(self) -> str:
        return "".join(self.chars)

    def __len__(self) -> int:
        return len(self.chars)

    def insert(self, char: str) -> None:
        self.chars.insert(self.cursor, char)
        self.cursor += 1

    def delete_before_cursor(self) -> bool:
        if self.cursor <= 0:
            return False
        self.cursor -= 1
        del self.chars[self.cursor]
        return True

    def move(self, delta: int) -> bool:
        target = max(0, min(len(self.chars), self.cursor + delta))
        moved = target != self.cursor
        self.cursor = target
        return moved

    def load(self, text: str) -> None:
        self.chars = list(text)
        self.cursor = len(self.chars)

    def reset(self) -> None:
        self.chars = []
        self.cursor = 0


class LineEditor:
    """Line editing with history recall and masked secret entry."""

    def __init__(
        self,
        terminal: Terminal,
        *,
        history: Optional[History] = None,
        poll_interval: float = 0.005,
        wait_interval: float = 0.5,
    ) -> None:
        self.terminal = terminal
        self.history = history if history is not None else History()
        self.buffer = EditBuffer()
        self.poll_interval = poll_interval
        self.wait_interval = wait_interval
        self._cv = threading.Condition(threading.Lock())
        self._prompt = ""
        self._prompt_color: Optional[str] = None
        self._committed: Optional[str] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Input thread
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._input_loop, name="hcjf-console-input", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        with self._cv:
            self._cv.notify_all()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=1.0)
        self._thread = None

    def _input_loop(self) -> None:
        with self.terminal.input_mode():
            while not self._stop.is_set():
                try:
                    if not self.terminal.poll(self.poll_interval):
                        continue
                    data = self.terminal.read(CHUNK_SIZE * 8)
                except OSError as exc:
                    LOGGER.warning("terminal read failed: %s", exc)
                    break
                if not data:
                    LOGGER.debug("terminal input closed")
                    break
                for chunk in split_input(data):
                    self.feed(chunk)
        self._stop.set()
        with self._cv:
            self._cv.notify_all()

    def feed(self, chunk: bytes) -> None:
        self.handle_key(decode_key(chunk))

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------
    @property
    def listening(self) -> bool:
        return self.buffer.listening

    def handle_key(self, event: KeyEvent) -> None:
        with self._cv:
            if not self.buffer.listening:
                return
            buffer = self.buffer
            kind = event.kind
            if kind is KeyKind.PRINTABLE and event.char:
                buffer.insert(event.char)
            elif kind is KeyKind.DELETE:
                if not buffer.delete_before_cursor():
                    return
            elif kind is KeyKind.LEFT:
                buffer.move(-1)
            elif kind is KeyKind.RIGHT:
                buffer.move(1)
            elif kind is KeyKind.UP:
                if buffer.secret or not self.history:
                    return
                buffer.load(self.history.previous() or "")
            elif kind is KeyKind.DOWN:
                if buffer.secret or not self.history:
                    return
                buffer.load(self.history.next() or "")
            elif kind is KeyKind.ENTER:
                self._commit()
                return
            else:
                return
            self._render()

    def _commit(self) -> None:
        text = self.buffer.text
        if not self.buffer.secret:
            self.history.append(text)
        self._committed = text
        self.buffer.listening = False
        with self.terminal.lock:
            self.terminal.newline()
            self.terminal.flush()
        self._cv.notify_all()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _render(self) -> None:
        buffer = self.buffer
        shown = SECRET_CHARACTER * len(buffer) if buffer.secret else buffer.text
        terminal = self.terminal
        with terminal.lock:
            terminal.erase_line()
            if self._prompt_color:
                terminal.write_styled(self._prompt, self._prompt_color)
            else:
                terminal.write(self._prompt)
            terminal.write(shown)
            terminal.move_to_column(len(self._prompt) + buffer.cursor)
            terminal.flush()

    def render(self) -> None:
        with self._cv:
            self._render()

    def clear(self) -> None:
        """Clear the screen and drop the current edit without completing a read."""
        with self._cv:
            with self.terminal.lock:
                self.terminal.clear_screen()
                self.terminal.flush()
            self.buffer.reset()

    # ------------------------------------------------------------------
    # Blocking reads
    # ------------------------------------------------------------------
    def read(self, prompt: str, color: Optional[str] = None, *args: Any) -> str:
        return self._read(prompt, color, args, secret=False)

    def read_secret(self, prompt: str, color: Optional[str] = None, *args: Any) -> str:
        return self._read(prompt, color, args, secret=True)

    def _read(self, prompt: str, color: Optional[str], args: tuple, *, secret: bool) -> str:
        with self._cv:
            if self.buffer.listening:
                raise RuntimeError("a read is already in progress")
            self._prompt = prompt % args if args else prompt
            self._prompt_color = color
            self._committed = None
            self.buffer.reset()
            self.buffer.secret = secret
            self._render()
            self.buffer.listening = True
            try:
                while self._committed is None:
                    if self._stop.is_set():
                        raise EditorClosed("line editor stopped")
                    self._cv.wait(timeout=self.wait_interval)
                result = self._committed
            finally:
                self.buffer.listening = False
                self.buffer.secret = False
                self.buffer.reset()
                self._committed = None
        return result
