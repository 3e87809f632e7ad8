"""Local echo controller: bash-like line editing on a terminal.

The controller keeps the logical input (``_input``, ``_cursor``) and mirrors
it on a terminal that only understands relative cursor movement. Every
redraw is computed on the *composed* text, i.e. the prompt followed by the
input with each embedded newline followed by the continuation prompt, so the
prompt width is part of the wrap math.

Supported editing:

* Arrow navigation, Home/End, Delete and Backspace
* Alt-arrow word navigation and Alt-Backspace / Ctrl-W word deletion
* Ctrl-U / Ctrl-K kill to start / end of input
* History recall with Up/Down
* Multi-line continuation for incomplete input
* Tab-completion through registered handlers
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Callable, Literal, Sequence

from localecho.autocomplete import (
    AutocompleteCallback,
    AutocompleteHandler,
    collect_autocomplete_candidates,
    get_shared_fragment,
)
from localecho.config import LocalEchoOptions
from localecho.history import HistoryController
from localecho.keybindings import (
    ESC,
    EditorAction,
    is_control_character,
    is_escape_sequence,
    resolve_action,
)
from localecho.terminal import Terminal
from localecho.utils import (
    closest_left_boundary,
    closest_right_boundary,
    count_lines,
    get_last_token,
    has_tailing_whitespace,
    is_incomplete_input,
    offset_to_col_row,
    visible_width,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_CURSOR_UP = "\x1b[A"
_CURSOR_DOWN = "\x1b[B"
_CURSOR_FORWARD = "\x1b[C"
_CURSOR_BACK = "\x1b[D"
_NEXT_LINE = "\x1b[E"
_PREVIOUS_LINE = "\x1b[F"
_ERASE_TO_EOL = "\x1b[K"
_LINE_BREAK = "\r\n"

_LINE_ENDINGS_RE = re.compile(r"[\r\n]+")

ReadState = Literal["idle", "awaiting-line", "awaiting-char"]


class ReadAbortedError(Exception):
    """Set on a pending read future when :meth:`LocalEchoController.abort_read` runs."""

    def __init__(self, reason: str = "aborted") -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class TermSize:
    cols: int
    rows: int


@dataclass
class ActivePrompt:
    prompt: str
    continuation_prompt: str
    future: asyncio.Future[str]


@dataclass
class ActiveCharPrompt:
    prompt: str
    future: asyncio.Future[str]


class LocalEchoController:
    """Displays messages and handles local echo for a :class:`Terminal`.

    Call :meth:`attach` to start receiving terminal input, then await
    :meth:`read` for each line.
    """

    def __init__(
        self,
        terminal: Terminal,
        options: LocalEchoOptions | None = None,
    ) -> None:
        self._terminal = terminal
        self._options = options if options is not None else LocalEchoOptions()

        self.history = HistoryController(self._options.history_size)
        self.max_autocomplete_entries = self._options.max_autocomplete_entries

        self._autocomplete_handlers: list[AutocompleteHandler] = []
        self._input: str = ""
        self._cursor: int = 0
        self._active_prompt: ActivePrompt | None = None
        self._active_char_prompt: ActiveCharPrompt | None = None
        self._term_size = TermSize(cols=0, rows=0)

        self._actions: dict[EditorAction, Callable[[], None]] = {
            "historyPrevious": self._history_previous,
            "historyNext": self._history_next,
            "cursorLeft": lambda: self._handle_cursor_move(-1),
            "cursorRight": lambda: self._handle_cursor_move(1),
            "cursorWordLeft": lambda: self.set_cursor(
                closest_left_boundary(self._input, self._cursor)
            ),
            "cursorWordRight": lambda: self.set_cursor(
                closest_right_boundary(self._input, self._cursor)
            ),
            "cursorLineStart": lambda: self.set_cursor(0),
            "cursorLineEnd": lambda: self.set_cursor(len(self._input)),
            "deleteCharBackward": lambda: self._handle_cursor_erase(backspace=True),
            "deleteCharForward": lambda: self._handle_cursor_erase(backspace=False),
            "deleteWordBackward": self._delete_word_backward,
            "deleteToLineStart": self._delete_to_line_start,
            "deleteToLineEnd": self._delete_to_line_end,
            "submit": self._handle_enter,
            "tab": self._handle_tab,
            "interrupt": self._handle_interrupt,
        }

    # -- lifecycle ----------------------------------------------------------

    def attach(self) -> None:
        """Subscribe to terminal input and resize events."""
        self._terminal.start(self.handle_term_data, self.handle_term_resize)
        self._term_size = TermSize(cols=self._terminal.columns, rows=self._terminal.rows)

    def detach(self) -> None:
        self._terminal.stop()

    # -- properties ---------------------------------------------------------

    @property
    def state(self) -> ReadState:
        if self._active_char_prompt is not None:
            return "awaiting-char"
        if self._active_prompt is not None:
            return "awaiting-line"
        return "idle"

    @property
    def input(self) -> str:
        return self._input

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def term_size(self) -> TermSize:
        return self._term_size

    # -- autocomplete registry ---------------------------------------------

    def add_autocomplete_handler(self, fn: AutocompleteCallback, *args: Any) -> None:
        """Register *fn* to be called as ``fn(index, tokens, *args)`` on Tab."""
        self._autocomplete_handlers.append(AutocompleteHandler(fn=fn, args=args))

    def remove_autocomplete_handler(self, fn: AutocompleteCallback) -> None:
        """Remove the first registration of *fn*; does nothing if absent."""
        for i, handler in enumerate(self._autocomplete_handlers):
            if handler.fn == fn:
                del self._autocomplete_handlers[i]
                return

    # -- reading ------------------------------------------------------------

    def read(
        self,
        prompt: str,
        continuation_prompt: str | None = None,
    ) -> asyncio.Future[str]:
        """Show *prompt* and return a future resolved with the entered line.

        The future fails with :class:`ReadAbortedError` if :meth:`abort_read`
        is called first. Only one line read may be pending at a time.
        """
        if continuation_prompt is None:
            continuation_prompt = self._options.continuation_prompt

        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        future.add_done_callback(self._forget_cancelled_prompt)

        self._terminal.write(prompt)
        self._active_prompt = ActivePrompt(
            prompt=prompt,
            continuation_prompt=continuation_prompt,
            future=future,
        )
        self._input = ""
        self._cursor = 0
        return future

    def read_char(self, prompt: str) -> asyncio.Future[str]:
        """Show *prompt* and return a future resolved with the next input chunk.

        A pending character read is served before any pending line read.
        """
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        future.add_done_callback(self._forget_cancelled_prompt)

        self._terminal.write(prompt)
        self._active_char_prompt = ActiveCharPrompt(prompt=prompt, future=future)
        return future

    def abort_read(self, reason: str = "aborted") -> None:
        """Fail every pending read with ``ReadAbortedError(reason)``."""
        if self._active_prompt is not None or self._active_char_prompt is not None:
            self._terminal.write(_LINE_BREAK)

        if self._active_prompt is not None:
            _reject(self._active_prompt.future, reason)
            self._active_prompt = None

        if self._active_char_prompt is not None:
            _reject(self._active_char_prompt.future, reason)
            self._active_char_prompt = None

        logger.debug("Read aborted: %s", reason)

    def _forget_cancelled_prompt(self, future: asyncio.Future[str]) -> None:
        if not future.cancelled():
            return
        if self._active_prompt is not None and self._active_prompt.future is future:
            self._active_prompt = None
        if self._active_char_prompt is not None and self._active_char_prompt.future is future:
            self._active_char_prompt = None

    # -- printing -----------------------------------------------------------

    def println(self, message: str) -> None:
        """Print *message* followed by a line break."""
        self.print(message + "\n")

    def print(self, message: str) -> None:
        """Print *message*, converting any run of line endings to ``\\r\\n``."""
        normalized = _LINE_ENDINGS_RE.sub("\n", message)
        self._terminal.write(normalized.replace("\n", _LINE_BREAK))

    def print_wide(self, items: Sequence[str], padding: int = 2) -> None:
        """Print *items* in as many columns as fit the terminal width."""
        if not items:
            self.println("")
            return

        item_width = max(visible_width(item) for item in items) + padding
        wide_cols = max(1, self._term_size.cols // item_width)
        wide_rows = math.ceil(len(items) / wide_cols)

        for row in range(wide_rows):
            row_items = items[row * wide_cols : (row + 1) * wide_cols]
            self.println(
                "".join(item + " " * (item_width - visible_width(item)) for item in row_items)
            )

    def fake_execute(self, line: str) -> None:
        """Record *line* in history and echo it as if it had been entered.

        The input being edited is redrawn afterwards, cursor included.
        """
        old_input = self._input
        old_cursor = self._cursor

        self.history.push(line)

        self._clear_input()
        self._cursor = len(line)
        self.set_input(line, clear_input=False)
        self._terminal.write(_LINE_BREAK)

        self._cursor = old_cursor
        self.set_input(old_input, clear_input=False)

    # -- prompt composition -------------------------------------------------

    def _apply_prompts(self, input: str) -> str:
        """Prefix *input* with the prompt and each continuation line with its prompt."""
        if self._active_prompt is None:
            return input
        return self._active_prompt.prompt + input.replace(
            "\n", "\n" + self._active_prompt.continuation_prompt
        )

    def _apply_prompt_offset(self, input: str, offset: int) -> int:
        """Translate *offset* in *input* to an offset in the composed text."""
        return len(self._apply_prompts(input[:offset]))

    # -- redraw -------------------------------------------------------------

    def _clear_input(self) -> None:
        """Erase every row the displayed input occupies.

        Leaves the cursor at column 0 of the first row of the prompt.
        """
        current = self._apply_prompts(self._input)
        cols = self._term_size.cols

        all_rows = count_lines(current, cols)
        pos = offset_to_col_row(
            current, self._apply_prompt_offset(self._input, self._cursor), cols
        )

        # Move to the last row, then clear upwards
        out = _NEXT_LINE * (all_rows - pos.row - 1)
        out += "\r" + _ERASE_TO_EOL
        out += (_PREVIOUS_LINE + _ERASE_TO_EOL) * (all_rows - 1)
        self._terminal.write(out)

    def set_input(self, new_input: str, clear_input: bool = True) -> None:
        """Replace the displayed input with *new_input*.

        The cursor offset is clamped to the new input and the physical cursor
        is moved back onto it.
        """
        if clear_input:
            self._clear_input()

        new_prompt = self._apply_prompts(new_input)
        self.print(new_prompt)

        if self._cursor > len(new_input):
            self._cursor = len(new_input)

        cols = self._term_size.cols
        new_lines = count_lines(new_prompt, cols)
        pos = offset_to_col_row(
            new_prompt, self._apply_prompt_offset(new_input, self._cursor), cols
        )

        self._terminal.write(
            "\r" + _PREVIOUS_LINE * (new_lines - pos.row - 1) + _CURSOR_FORWARD * pos.col
        )
        self._input = new_input

    def set_cursor(self, new_cursor: int) -> None:
        """Move the cursor to offset *new_cursor* without redrawing the input."""
        new_cursor = max(0, min(new_cursor, len(self._input)))

        composed = self._apply_prompts(self._input)
        cols = self._term_size.cols
        prev = offset_to_col_row(
            composed, self._apply_prompt_offset(self._input, self._cursor), cols
        )
        new = offset_to_col_row(
            composed, self._apply_prompt_offset(self._input, new_cursor), cols
        )

        out = ""
        if new.row > prev.row:
            out += _CURSOR_DOWN * (new.row - prev.row)
        else:
            out += _CURSOR_UP * (prev.row - new.row)

        if new.col > prev.col:
            out += _CURSOR_FORWARD * (new.col - prev.col)
        else:
            out += _CURSOR_BACK * (prev.col - new.col)

        if out:
            self._terminal.write(out)
        self._cursor = new_cursor

    def _print_and_restart_prompt(
        self,
        callback: Callable[[], Awaitable[None] | None],
    ) -> None:
        """Leave the input, run *callback*, then redraw the input as it was.

        If *callback* returns an awaitable the redraw waits for it. The redraw
        happens once, and not at all if the awaitable fails.
        """
        cursor = self._cursor

        self.set_cursor(len(self._input))
        self._terminal.write(_LINE_BREAK)

        def resume() -> None:
            if self._active_prompt is None:
                return
            self._cursor = cursor
            self.set_input(self._input, clear_input=False)

        ret = callback()
        if ret is None:
            resume()
            return

        def on_done(task: asyncio.Future[None]) -> None:
            if task.cancelled():
                return
            exc = task.exception()
            if isinstance(exc, ReadAbortedError):
                logger.debug("Prompt restart skipped: %s", exc.reason)
            elif exc is not None:
                logger.error("Error while the prompt was suspended", exc_info=exc)
            else:
                resume()

        asyncio.ensure_future(ret).add_done_callback(on_done)

    # -- editing primitives -------------------------------------------------

    def _handle_cursor_move(self, direction: int) -> None:
        if direction > 0:
            self.set_cursor(self._cursor + min(direction, len(self._input) - self._cursor))
        elif direction < 0:
            self.set_cursor(self._cursor + max(direction, -self._cursor))

    def _handle_cursor_erase(self, backspace: bool) -> None:
        """Delete the character left of (*backspace*) or under the cursor."""
        if backspace:
            if self._cursor <= 0:
                return
            new_input = self._input[: self._cursor - 1] + self._input[self._cursor :]
            self._clear_input()
            self._cursor -= 1
            self.set_input(new_input, clear_input=False)
        else:
            if self._cursor >= len(self._input):
                return
            self.set_input(self._input[: self._cursor] + self._input[self._cursor + 1 :])

    def _handle_cursor_insert(self, data: str) -> None:
        new_input = self._input[: self._cursor] + data + self._input[self._cursor :]
        self._clear_input()
        self._cursor += len(data)
        self.set_input(new_input, clear_input=False)

    def _replace_before_cursor(self, start: int) -> None:
        """Delete ``_input[start:_cursor]`` and leave the cursor at *start*."""
        new_input = self._input[:start] + self._input[self._cursor :]
        self._clear_input()
        self._cursor = start
        self.set_input(new_input, clear_input=False)

    def _delete_word_backward(self) -> None:
        self._replace_before_cursor(closest_left_boundary(self._input, self._cursor))

    def _delete_to_line_start(self) -> None:
        if self._cursor > 0:
            self._replace_before_cursor(0)

    def _delete_to_line_end(self) -> None:
        if self._cursor < len(self._input):
            self.set_input(self._input[: self._cursor])

    # -- actions ------------------------------------------------------------

    def _history_previous(self) -> None:
        value = self.history.get_previous()
        if value:
            self.set_input(value)
            self.set_cursor(len(value))

    def _history_next(self) -> None:
        value = self.history.get_next() or ""
        self.set_input(value)
        self.set_cursor(len(value))

    def _handle_enter(self) -> None:
        if is_incomplete_input(self._input):
            self._handle_cursor_insert("\n")
        else:
            self._handle_read_complete()

    def _handle_read_complete(self) -> None:
        self.history.push(self._input)
        self.set_cursor(len(self._input))

        if self._active_prompt is not None:
            future = self._active_prompt.future
            self._active_prompt = None
            if not future.done():
                future.set_result(self._input)

        self._terminal.write(_LINE_BREAK)

    def _handle_interrupt(self) -> None:
        """Drop the current line and show a fresh prompt; the read stays pending."""
        self.set_cursor(len(self._input))
        prompt = self._active_prompt.prompt if self._active_prompt is not None else ""
        self._terminal.write("^C" + _LINE_BREAK + prompt)
        self._input = ""
        self._cursor = 0
        self.history.rewind()

    def _handle_tab(self) -> None:
        if self._autocomplete_handlers:
            self._handle_autocomplete()
        else:
            self._handle_cursor_insert(" " * self._options.tab_width)

    def _handle_autocomplete(self) -> None:
        fragment = self._input[: self._cursor]
        candidates = sorted(
            collect_autocomplete_candidates(self._autocomplete_handlers, fragment)
        )

        if not candidates:
            if not has_tailing_whitespace(fragment):
                self._handle_cursor_insert(" ")
        elif len(candidates) == 1:
            last_token = get_last_token(fragment)
            self._handle_cursor_insert(candidates[0][len(last_token) :] + " ")
        elif len(candidates) <= self.max_autocomplete_entries:
            last_token = get_last_token(fragment)
            shared = get_shared_fragment(last_token, candidates)
            if shared:
                self._handle_cursor_insert(shared[len(last_token) :])
            self._print_and_restart_prompt(lambda: self.print_wide(candidates))
        else:
            self._print_and_restart_prompt(lambda: self._confirm_print_wide(candidates))

    async def _confirm_print_wide(self, candidates: list[str]) -> None:
        answer = await self.read_char(
            f"Display all {len(candidates)} possibilities? (y or n)"
        )
        if answer in ("y", "Y"):
            self.print_wide(candidates)

    # -- terminal events ----------------------------------------------------

    def handle_term_resize(self) -> None:
        """Redraw the input for the terminal's new size.

        The input is erased using the old size before the cached size is
        replaced, otherwise the rows to clear would be miscounted.
        """
        if self._active_prompt is None:
            self._term_size = TermSize(cols=self._terminal.columns, rows=self._terminal.rows)
            return

        self._clear_input()
        self._term_size = TermSize(cols=self._terminal.columns, rows=self._terminal.rows)
        logger.debug("Terminal resized to %dx%d", self._term_size.cols, self._term_size.rows)
        self.set_input(self._input, clear_input=False)

    def handle_term_data(self, data: str) -> None:
        """Handle one chunk of raw terminal input."""
        if self.state == "idle":
            return

        # A pending character read is served first
        if self._active_char_prompt is not None:
            future = self._active_char_prompt.future
            self._active_char_prompt = None
            if not future.done():
                future.set_result(data)
            self._terminal.write(_LINE_BREAK)
            return

        # Pasted text, and short chunks carrying control keys, are replayed
        # one character at a time
        if not data.startswith(ESC) and (
            len(data) > 3 or any(is_control_character(ch) for ch in data)
        ):
            for ch in _LINE_ENDINGS_RE.sub("\r", data):
                self._handle_data(ch)
        else:
            self._handle_data(data)

    def _handle_data(self, data: str) -> None:
        if self._active_prompt is None:
            return

        action = resolve_action(data)
        if action is not None:
            self._actions[action]()
        elif is_escape_sequence(data) or is_control_character(data):
            logger.debug("Ignoring unbound input %r", data)
        else:
            self._handle_cursor_insert(data)


def _reject(future: asyncio.Future[str], reason: str) -> None:
    if not future.done():
        future.set_exception(ReadAbortedError(reason))
