"""Input utilities: word boundaries, wrap-aware offsets, shell tokenizing.

Every function here is pure. The offset/row/column helpers are what the
controller uses to translate a logical offset into the composed prompt string
into a physical position on a soft-wrapped terminal.
"""

from __future__ import annotations

import re
import shlex
import unicodedata
from dataclasses import dataclass

import grapheme
import wcwidth as _wcwidth

_WORD_RE = re.compile(r"\w+", re.ASCII)
_OPERATOR_SPLIT_RE = re.compile(r"(\|\||\||&&)")
_TAILING_WHITESPACE_RE = re.compile(r"[^\\][ \t\n]\Z")


@dataclass(frozen=True)
class ColRow:
    """Physical position on the wrapped display."""

    row: int
    col: int


# ---------------------------------------------------------------------------
# Word boundaries
# ---------------------------------------------------------------------------


def word_boundaries(input: str, left_side: bool = True) -> list[int]:
    """Return the start (or end) offset of every ``[A-Za-z0-9_]+`` run."""
    return [m.start() if left_side else m.end() for m in _WORD_RE.finditer(input)]


def closest_left_boundary(input: str, offset: int) -> int:
    """Find the closest word start strictly before *offset* (0 if none)."""
    found = [x for x in word_boundaries(input, True) if x < offset]
    return found[-1] if found else 0


def closest_right_boundary(input: str, offset: int) -> int:
    """Find the closest word end strictly after *offset* (``len(input)`` if none)."""
    for x in word_boundaries(input, False):
        if x > offset:
            return x
    return len(input)


# ---------------------------------------------------------------------------
# Offset <-> row/column
# ---------------------------------------------------------------------------


def offset_to_col_row(input: str, offset: int, max_cols: int) -> ColRow:
    """Convert *offset* in *input* to a row/column on a *max_cols* wide display.

    A newline starts a new row. Any other character advances the column and
    wraps to the next row once the column exceeds *max_cols*.
    """
    row = 0
    col = 0

    for ch in input[:offset]:
        if ch == "\n":
            col = 0
            row += 1
        else:
            col += 1
            if col > max_cols:
                col = 0
                row += 1

    return ColRow(row=row, col=col)


def count_lines(input: str, max_cols: int) -> int:
    """Count the physical rows *input* occupies."""
    return offset_to_col_row(input, len(input), max_cols).row + 1


# ---------------------------------------------------------------------------
# Shell-ish input inspection
# ---------------------------------------------------------------------------


def is_incomplete_input(input: str) -> bool:
    """Check whether *input* needs a continuation line before it can run.

    Unbalanced quotes, a trailing ``|``, ``||`` or ``&&`` and an unescaped
    trailing backslash all make the input incomplete.
    """
    if input.strip() == "":
        return False

    if input.count("'") % 2 != 0:
        return True

    if input.count('"') % 2 != 0:
        return True

    if _OPERATOR_SPLIT_RE.split(input)[-1].strip() == "":
        return True

    return input.endswith("\\") and not input.endswith("\\\\")


def has_tailing_whitespace(input: str) -> bool:
    """Check whether *input* ends with unescaped whitespace.

    Only the end of the last line counts; an empty last line means a new
    token is starting.
    """
    return _TAILING_WHITESPACE_RE.search(input) is not None


def tokenize(input: str) -> list[str]:
    """Split *input* into shell words.

    Quotes are honoured and removed. Control operators come out as their own
    tokens. An unterminated quote does not raise: whatever was collected for
    the open token is returned as the last token.
    """
    lexer = shlex.shlex(input, posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    tokens: list[str] = []

    while True:
        try:
            token = lexer.get_token()
        except ValueError:
            # No closing quotation / no escaped character
            if lexer.token:
                tokens.append(lexer.token)
            break
        if token is None:
            break
        tokens.append(token)

    return tokens


def get_last_token(input: str) -> str:
    """Return the token the cursor is completing, or ``""`` at a fresh boundary."""
    if input.strip() == "" or has_tailing_whitespace(input):
        return ""

    tokens = tokenize(input)
    return tokens[-1] if tokens else ""


# ---------------------------------------------------------------------------
# Display width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Terminal cell width of one grapheme cluster."""
    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tones, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    if unicodedata.category(g[0]).startswith("M"):
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Return how many terminal cells *text* occupies."""
    if text.isascii() and text.isprintable():
        return len(text)
    return sum(_grapheme_width(g) for g in grapheme.graphemes(text))
