"""Terminal abstraction the line editor draws on.

``Terminal`` is the narrow interface :class:`~localecho.controller.LocalEchoController`
needs: a way to subscribe to input and resizes, a write sink, and the current
grid size. ``ProcessTerminal`` implements it on the controlling tty.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

_READ_CHUNK = 4096
_FALLBACK_SIZE = os.terminal_size((80, 24))


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """What the controller requires from a terminal.

    ``on_data`` receives input chunks as they arrive, escape sequences
    included. ``on_resize`` takes no arguments; read ``columns`` and ``rows``
    afterwards.
    """

    def start(
        self,
        on_data: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...


# ---------------------------------------------------------------------------
# ProcessTerminal
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """The process's own tty, switched to raw mode while started.

    Input is watched with the running event loop's ``add_reader`` and
    resizes arrive through a loop signal handler for SIGWINCH, so both
    callbacks always run on the loop thread.
    """

    def __init__(self, input_fd: int | None = None, output_fd: int | None = None) -> None:
        self._input_fd = sys.stdin.fileno() if input_fd is None else input_fd
        self._output_fd = sys.stdout.fileno() if output_fd is None else output_fd
        self._loop: asyncio.AbstractEventLoop | None = None
        self._saved_mode: list | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._on_data: Callable[[str], None] | None = None
        self._on_resize: Callable[[], None] | None = None

    def _size(self) -> os.terminal_size:
        try:
            size = os.get_terminal_size(self._output_fd)
        except OSError:
            return _FALLBACK_SIZE
        # A pty with no window size set reports 0x0
        return os.terminal_size(
            (size.columns or _FALLBACK_SIZE.columns, size.lines or _FALLBACK_SIZE.lines)
        )

    @property
    def columns(self) -> int:
        return self._size().columns

    @property
    def rows(self) -> int:
        return self._size().lines

    def start(
        self,
        on_data: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enter raw mode and begin delivering input. Needs a running loop."""
        loop = asyncio.get_running_loop()
        self._on_data = on_data
        self._on_resize = on_resize

        self._saved_mode = termios.tcgetattr(self._input_fd)
        tty.setraw(self._input_fd)

        loop.add_reader(self._input_fd, self._read_input)
        loop.add_signal_handler(signal.SIGWINCH, self._handle_winch)
        self._loop = loop
        logger.debug("Terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Stop delivering events and put the tty back the way it was."""
        if self._loop is not None:
            if not self._loop.is_closed():
                self._loop.remove_reader(self._input_fd)
                self._loop.remove_signal_handler(signal.SIGWINCH)
            self._loop = None

        if self._saved_mode is not None:
            termios.tcsetattr(self._input_fd, termios.TCSADRAIN, self._saved_mode)
            self._saved_mode = None

        self._on_data = None
        self._on_resize = None
        self._decoder.reset()

    def write(self, data: str) -> None:
        """Write *data* to the tty unbuffered."""
        view = memoryview(data.encode("utf-8"))
        while view:
            try:
                written = os.write(self._output_fd, view)
            except OSError as e:
                logger.debug("Terminal output dropped: %s", e)
                return
            view = view[written:]

    def _read_input(self) -> None:
        try:
            raw = os.read(self._input_fd, _READ_CHUNK)
        except OSError as e:
            logger.debug("Terminal read failed: %s", e)
            return

        # Multibyte characters may be split across reads
        text = self._decoder.decode(raw)
        if text and self._on_data is not None:
            self._on_data(text)

    def _handle_winch(self) -> None:
        if self._on_resize is not None:
            self._on_resize()
