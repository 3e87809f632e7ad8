"""Tests for localecho.autocomplete -- candidate collection and shared prefixes."""

from __future__ import annotations

import logging

import pytest

from localecho.autocomplete import (
    AutocompleteHandler,
    collect_autocomplete_candidates,
    get_shared_fragment,
)


class Recorder:
    """Candidate callback that remembers how it was called."""

    def __init__(self, candidates: list[str]) -> None:
        self.candidates = candidates
        self.calls: list[tuple] = []

    def __call__(self, index: int, tokens: list[str], *args: object) -> list[str]:
        self.calls.append((index, tokens, args))
        return self.candidates


def _failing(index: int, tokens: list[str]) -> list[str]:
    raise RuntimeError("boom")


# ---------------------------------------------------------------------------
# collect_autocomplete_candidates
# ---------------------------------------------------------------------------


class TestCollectAutocompleteCandidates:
    def test_filters_by_current_token_preserving_order(self) -> None:
        handler = Recorder(["status", "stash", "show"])
        result = collect_autocomplete_candidates([AutocompleteHandler(handler)], "git st")
        assert result == ["status", "stash"]

    def test_handler_receives_index_and_tokens(self) -> None:
        handler = Recorder([])
        collect_autocomplete_candidates([AutocompleteHandler(handler)], "git st")
        assert handler.calls == [(1, ["git", "st"], ())]

    def test_bound_args_are_passed(self) -> None:
        handler = Recorder([])
        collect_autocomplete_candidates(
            [AutocompleteHandler(handler, ("ctx", 42))], "git"
        )
        assert handler.calls == [(0, ["git"], ("ctx", 42))]

    def test_blank_input_completes_first_token(self) -> None:
        handler = Recorder(["ls", "cd"])
        result = collect_autocomplete_candidates([AutocompleteHandler(handler)], "  ")
        assert result == ["ls", "cd"]
        assert handler.calls[0][0] == 0

    def test_trailing_whitespace_completes_new_token(self) -> None:
        handler = Recorder(["add", "commit"])
        result = collect_autocomplete_candidates([AutocompleteHandler(handler)], "git ")
        assert result == ["add", "commit"]
        assert handler.calls[0][:2] == (1, ["git"])

    def test_results_concatenate_in_registration_order(self) -> None:
        first = Recorder(["b1", "a1"])
        second = Recorder(["a2", "b2"])
        result = collect_autocomplete_candidates(
            [AutocompleteHandler(first), AutocompleteHandler(second)], ""
        )
        assert result == ["b1", "a1", "a2", "b2"]

    def test_duplicates_are_kept(self) -> None:
        result = collect_autocomplete_candidates(
            [AutocompleteHandler(Recorder(["ls"])), AutocompleteHandler(Recorder(["ls"]))],
            "l",
        )
        assert result == ["ls", "ls"]

    def test_failing_handler_is_isolated_and_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        good = Recorder(["status"])
        with caplog.at_level(logging.ERROR, logger="localecho.autocomplete"):
            result = collect_autocomplete_candidates(
                [AutocompleteHandler(_failing), AutocompleteHandler(good)], "git s"
            )
        assert result == ["status"]
        assert any("failed" in r.getMessage() for r in caplog.records)

    def test_handler_may_return_any_iterable(self) -> None:
        def gen(index: int, tokens: list[str]):
            yield from ("one", "two")

        result = collect_autocomplete_candidates([AutocompleteHandler(gen)], "t")
        assert result == ["two"]


# ---------------------------------------------------------------------------
# get_shared_fragment
# ---------------------------------------------------------------------------


class TestGetSharedFragment:
    def test_common_prefix_from_empty_fragment(self) -> None:
        assert get_shared_fragment("", ["list", "load", "ls"]) == "l"

    def test_nothing_shared_returns_none(self) -> None:
        assert get_shared_fragment("", ["cat", "dog"]) is None

    def test_extends_existing_fragment(self) -> None:
        assert get_shared_fragment("st", ["stash", "status"]) == "sta"

    def test_extends_up_to_shortest_candidate(self) -> None:
        assert get_shared_fragment("", ["abc", "abcd"]) == "abc"

    def test_fragment_as_long_as_first_candidate_is_unchanged(self) -> None:
        assert get_shared_fragment("ls", ["ls", "lsof"]) == "ls"

    def test_fragment_not_shared_by_all_returns_none(self) -> None:
        assert get_shared_fragment("x", ["abc", "xyz"]) is None

    def test_single_candidate_is_fully_shared(self) -> None:
        assert get_shared_fragment("h", ["help"]) == "help"

    def test_long_candidates_do_not_recurse(self) -> None:
        candidates = ["a" * 5000 + "x", "a" * 5000 + "y"]
        assert get_shared_fragment("", candidates) == "a" * 5000

    def test_no_candidates_is_an_error(self) -> None:
        with pytest.raises(ValueError):
            get_shared_fragment("", [])
