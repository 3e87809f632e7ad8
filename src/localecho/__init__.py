"""localecho: bash-like local echo and line editing for terminals."""

# Autocomplete support
from localecho.autocomplete import (
    AutocompleteCallback,
    AutocompleteHandler,
    collect_autocomplete_candidates,
    get_shared_fragment,
)

# Options
from localecho.config import LocalEchoOptions

# Line editing controller
from localecho.controller import (
    LocalEchoController,
    ReadAbortedError,
    ReadState,
    TermSize,
)

# History
from localecho.history import HistoryController

# Keybindings
from localecho.keybindings import EditorAction, resolve_action

# Terminal interface and implementations
from localecho.terminal import ProcessTerminal, Terminal

# Input utilities
from localecho.utils import (
    ColRow,
    closest_left_boundary,
    closest_right_boundary,
    count_lines,
    get_last_token,
    has_tailing_whitespace,
    is_incomplete_input,
    offset_to_col_row,
    tokenize,
    visible_width,
    word_boundaries,
)

__all__ = [
    # Autocomplete
    "AutocompleteCallback",
    "AutocompleteHandler",
    "collect_autocomplete_candidates",
    "get_shared_fragment",
    # Options
    "LocalEchoOptions",
    # Controller
    "LocalEchoController",
    "ReadAbortedError",
    "ReadState",
    "TermSize",
    # History
    "HistoryController",
    # Keybindings
    "EditorAction",
    "resolve_action",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Utilities
    "ColRow",
    "closest_left_boundary",
    "closest_right_boundary",
    "count_lines",
    "get_last_token",
    "has_tailing_whitespace",
    "is_incomplete_input",
    "offset_to_col_row",
    "tokenize",
    "visible_width",
    "word_boundaries",
]
