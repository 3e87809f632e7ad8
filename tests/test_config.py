"""Tests for localecho.config.LocalEchoOptions."""

from __future__ import annotations

import pytest

from localecho.config import LocalEchoOptions


class TestDefaults:
    def test_defaults(self) -> None:
        options = LocalEchoOptions()
        assert options.history_size == 10
        assert options.max_autocomplete_entries == 100
        assert options.continuation_prompt == "> "
        assert options.tab_width == 4


class TestValidation:
    def test_history_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="history_size"):
            LocalEchoOptions(history_size=0)

    def test_max_autocomplete_entries_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="max_autocomplete_entries"):
            LocalEchoOptions(max_autocomplete_entries=-1)

    def test_tab_width_may_be_zero(self) -> None:
        assert LocalEchoOptions(tab_width=0).tab_width == 0

    def test_tab_width_must_not_be_negative(self) -> None:
        with pytest.raises(ValueError, match="tab_width"):
            LocalEchoOptions(tab_width=-2)


class TestFromEnv:
    def test_empty_environment_gives_defaults(self) -> None:
        assert LocalEchoOptions.from_env({}) == LocalEchoOptions()

    def test_reads_prefixed_variables(self) -> None:
        options = LocalEchoOptions.from_env(
            {
                "LOCALECHO_HISTORY_SIZE": "50",
                "LOCALECHO_MAX_AUTOCOMPLETE_ENTRIES": "20",
                "LOCALECHO_CONTINUATION_PROMPT": "... ",
                "LOCALECHO_TAB_WIDTH": "2",
                "UNRELATED": "x",
            }
        )
        assert options == LocalEchoOptions(
            history_size=50,
            max_autocomplete_entries=20,
            continuation_prompt="... ",
            tab_width=2,
        )

    def test_non_integer_value(self) -> None:
        with pytest.raises(ValueError, match="LOCALECHO_HISTORY_SIZE"):
            LocalEchoOptions.from_env({"LOCALECHO_HISTORY_SIZE": "many"})

    def test_invalid_value_is_validated(self) -> None:
        with pytest.raises(ValueError):
            LocalEchoOptions.from_env({"LOCALECHO_HISTORY_SIZE": "0"})

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOCALECHO_HISTORY_SIZE", "7")
        assert LocalEchoOptions.from_env().history_size == 7
