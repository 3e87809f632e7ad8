"""Tab-completion candidates collected from registered handlers.

A handler is any callable ``fn(index, tokens, *args)`` returning an iterable
of completion strings, where *tokens* is the shell-tokenized input before the
cursor and *index* is the position of the token being completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from localecho.utils import has_tailing_whitespace, tokenize

logger = logging.getLogger(__name__)

AutocompleteCallback = Callable[..., Iterable[str]]


@dataclass
class AutocompleteHandler:
    """A registered candidate callback plus the extra arguments bound to it."""

    fn: AutocompleteCallback
    args: tuple[Any, ...] = field(default_factory=tuple)


def collect_autocomplete_candidates(
    handlers: Sequence[AutocompleteHandler],
    input: str,
) -> list[str]:
    """Gather candidates from all *handlers* that extend the current token.

    Results keep handler registration order and are not de-duplicated. A
    handler that raises is logged and contributes nothing.
    """
    tokens = tokenize(input)
    index = len(tokens) - 1
    expr = tokens[index] if tokens else ""

    if input.strip() == "":
        index = 0
        expr = ""
    elif has_tailing_whitespace(input):
        index += 1
        expr = ""

    candidates: list[str] = []
    for handler in handlers:
        try:
            candidates.extend(handler.fn(index, list(tokens), *handler.args))
        except Exception:
            logger.exception("Autocomplete handler %r failed", handler.fn)

    return [c for c in candidates if c.startswith(expr)]


def get_shared_fragment(fragment: str, candidates: Sequence[str]) -> str | None:
    """Extend *fragment* with the prefix shared by every candidate.

    *fragment* must already be a prefix of every candidate; ``None`` is
    returned as soon as one is found that does not start with it. ``None`` is
    also returned when the candidates share nothing beyond *fragment*. When
    *fragment* is at least as long as the first candidate it is returned
    unchanged.
    """
    if not candidates:
        raise ValueError("get_shared_fragment() requires at least one candidate")

    start = fragment
    first = candidates[0]

    while len(fragment) < len(first):
        extended = fragment + first[len(fragment)]
        for candidate in candidates:
            if not candidate.startswith(fragment):
                return None
            if not candidate.startswith(extended):
                return fragment if fragment != start else None
        fragment = extended

    return fragment
