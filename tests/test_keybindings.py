"""Tests for localecho.keybindings -- raw input to editor actions."""

from __future__ import annotations

import pytest

from localecho.keybindings import (
    CONTROL_CHARACTERS,
    ESCAPE_SEQUENCES,
    is_control_character,
    is_escape_sequence,
    resolve_action,
)


class TestResolveAction:
    @pytest.mark.parametrize(
        ("data", "action"),
        [
            ("\x1b[A", "historyPrevious"),
            ("\x1b[B", "historyNext"),
            ("\x1b[D", "cursorLeft"),
            ("\x1b[C", "cursorRight"),
            ("\x1b[H", "cursorLineStart"),
            ("\x1b[F", "cursorLineEnd"),
            ("\x1b[3~", "deleteCharForward"),
            ("\x1bb", "cursorWordLeft"),
            ("\x1bf", "cursorWordRight"),
            ("\x1b\x7f", "deleteWordBackward"),
        ],
    )
    def test_escape_sequences(self, data: str, action: str) -> None:
        assert resolve_action(data) == action

    @pytest.mark.parametrize(
        ("data", "action"),
        [
            ("\r", "submit"),
            ("\x7f", "deleteCharBackward"),
            ("\t", "tab"),
            ("\x03", "interrupt"),
            ("\x01", "cursorLineStart"),
            ("\x05", "cursorLineEnd"),
            ("\x17", "deleteWordBackward"),
            ("\x15", "deleteToLineStart"),
            ("\x0b", "deleteToLineEnd"),
        ],
    )
    def test_control_characters(self, data: str, action: str) -> None:
        assert resolve_action(data) == action

    def test_xterm_modifier_arrows(self) -> None:
        assert resolve_action("\x1b[1;3D") == "cursorWordLeft"
        assert resolve_action("\x1b[1;5C") == "cursorWordRight"

    def test_unknown_escape_sequence(self) -> None:
        assert resolve_action("\x1b[15~") is None
        assert resolve_action("\x1b") is None

    def test_unbound_control_character(self) -> None:
        assert resolve_action("\x07") is None

    def test_printable_input_is_never_bound(self) -> None:
        assert resolve_action("a") is None
        assert resolve_action("b") is None
        assert resolve_action("abc") is None

    def test_tables_only_hold_known_actions(self) -> None:
        actions = set(ESCAPE_SEQUENCES.values()) | set(CONTROL_CHARACTERS.values())
        assert "submit" in actions
        assert all(isinstance(a, str) for a in actions)


class TestClassification:
    def test_escape(self) -> None:
        assert is_escape_sequence("\x1b[A") is True
        assert is_escape_sequence("a") is False

    def test_control(self) -> None:
        assert is_control_character("\r") is True
        assert is_control_character("\x7f") is True
        assert is_control_character(" ") is False
        assert is_control_character("") is False
