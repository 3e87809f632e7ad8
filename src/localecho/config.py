"""Controller options."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PREFIX = "LOCALECHO_"


@dataclass
class LocalEchoOptions:
    """Tunables for :class:`~localecho.controller.LocalEchoController`."""

    history_size: int = 10
    max_autocomplete_entries: int = 100
    continuation_prompt: str = "> "
    # Spaces inserted for Tab when no autocomplete handler is registered
    tab_width: int = 4

    def __post_init__(self) -> None:
        if self.history_size <= 0:
            raise ValueError(f"history_size must be positive, got {self.history_size}")
        if self.max_autocomplete_entries <= 0:
            raise ValueError(
                "max_autocomplete_entries must be positive, "
                f"got {self.max_autocomplete_entries}"
            )
        if self.tab_width < 0:
            raise ValueError(f"tab_width must not be negative, got {self.tab_width}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LocalEchoOptions:
        """Build options from ``LOCALECHO_*`` environment variables.

        Unset variables keep their defaults. Values that are not integers
        where one is expected raise :class:`ValueError`.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        for name in ("history_size", "max_autocomplete_entries", "tab_width"):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None:
                try:
                    kwargs[name] = int(raw)
                except ValueError:
                    raise ValueError(
                        f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}"
                    ) from None

        prompt = env.get(ENV_PREFIX + "CONTINUATION_PROMPT")
        if prompt is not None:
            kwargs["continuation_prompt"] = prompt

        return cls(**kwargs)  # type: ignore[arg-type]
