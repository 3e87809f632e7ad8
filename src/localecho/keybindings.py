"""Raw terminal input to editor action mapping."""

from __future__ import annotations

from typing import Literal

ESC = "\x1b"

EditorAction = Literal[
    # History
    "historyPrevious",
    "historyNext",
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteToLineStart",
    "deleteToLineEnd",
    # Line control
    "submit",
    "tab",
    "interrupt",
]

# Sequences that follow ESC
ESCAPE_SEQUENCES: dict[str, EditorAction] = {
    "[A": "historyPrevious",
    "[B": "historyNext",
    "[D": "cursorLeft",
    "[C": "cursorRight",
    "[H": "cursorLineStart",
    "OH": "cursorLineStart",
    "[1~": "cursorLineStart",
    "[F": "cursorLineEnd",
    "OF": "cursorLineEnd",
    "[4~": "cursorLineEnd",
    "[3~": "deleteCharForward",
    "b": "cursorWordLeft",
    "[1;3D": "cursorWordLeft",
    "[1;5D": "cursorWordLeft",
    "f": "cursorWordRight",
    "[1;3C": "cursorWordRight",
    "[1;5C": "cursorWordRight",
    "\x7f": "deleteWordBackward",
}

CONTROL_CHARACTERS: dict[str, EditorAction] = {
    "\r": "submit",
    "\x7f": "deleteCharBackward",
    "\x08": "deleteCharBackward",
    "\t": "tab",
    "\x03": "interrupt",
    "\x01": "cursorLineStart",  # ctrl+a
    "\x05": "cursorLineEnd",  # ctrl+e
    "\x17": "deleteWordBackward",  # ctrl+w
    "\x15": "deleteToLineStart",  # ctrl+u
    "\x0b": "deleteToLineEnd",  # ctrl+k
}


def is_escape_sequence(data: str) -> bool:
    return data.startswith(ESC)


def is_control_character(data: str) -> bool:
    if not data:
        return False
    code = ord(data[0])
    return code < 32 or code == 0x7F


def resolve_action(data: str) -> EditorAction | None:
    """Return the editor action bound to *data*, or ``None`` if unbound.

    Printable input is never bound; callers insert it as text.
    """
    if is_escape_sequence(data):
        return ESCAPE_SEQUENCES.get(data[1:])
    if is_control_character(data):
        return CONTROL_CHARACTERS.get(data)
    return None
