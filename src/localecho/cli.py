"""Interactive demo shell for the local echo controller."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from typing import Sequence

from localecho.config import LocalEchoOptions
from localecho.controller import LocalEchoController, ReadAbortedError
from localecho.terminal import ProcessTerminal

logger = logging.getLogger(__name__)

COMMANDS = ("clear", "echo", "exit", "help", "history")


def build_parser(defaults: LocalEchoOptions) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localecho",
        description="Bash-like line editing demo shell",
    )
    parser.add_argument("--history-size", type=int, default=defaults.history_size, help="Number of history entries to keep")
    parser.add_argument(
        "--max-autocomplete-entries",
        type=int,
        default=defaults.max_autocomplete_entries,
        help="Candidates listed before asking for confirmation",
    )
    parser.add_argument("--continuation-prompt", default=defaults.continuation_prompt, help="Prompt for continuation lines")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--log-file", default=None, help="Write logs here (stderr shares the raw terminal)")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser(LocalEchoOptions.from_env()).parse_args(argv)


def complete_command(index: int, tokens: list[str]) -> list[str]:
    """Complete built-in command names in the first position."""
    if index == 0:
        return list(COMMANDS)
    return []


def run_command(controller: LocalEchoController, line: str) -> bool:
    """Run one entered line. Returns ``False`` when the shell should exit."""
    command, _, rest = line.strip().partition(" ")

    if command == "exit":
        return False
    if command == "help":
        controller.print_wide(list(COMMANDS))
    elif command == "history":
        for i, entry in enumerate(controller.history.entries, start=1):
            controller.println(f"{i:>4}  {entry}")
    elif command == "echo":
        controller.println(rest)
    elif command == "clear":
        controller.print("\x1b[2J\x1b[H")
    elif command:
        controller.println(f"{command}: command not found")
    return True


async def repl(options: LocalEchoOptions) -> None:
    terminal = ProcessTerminal()
    controller = LocalEchoController(terminal, options)
    controller.add_autocomplete_handler(complete_command)
    controller.attach()

    try:
        while True:
            try:
                line = await controller.read("$ ")
            except ReadAbortedError as e:
                logger.info("Read aborted: %s", e.reason)
                break
            if not run_command(controller, line):
                break
    finally:
        controller.detach()


def main(argv: Sequence[str] | None = None) -> None:
    try:
        defaults = LocalEchoOptions.from_env()
    except ValueError as e:
        build_parser(LocalEchoOptions()).error(str(e))

    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    try:
        options = replace(
            defaults,
            history_size=args.history_size,
            max_autocomplete_entries=args.max_autocomplete_entries,
            continuation_prompt=args.continuation_prompt,
        )
    except ValueError as e:
        parser.error(str(e))

    if args.log_file:
        logging.basicConfig(
            level=getattr(logging, args.log_level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            filename=args.log_file,
        )
    else:
        # Log records on stderr would corrupt the raw-mode display
        logging.getLogger().addHandler(logging.NullHandler())

    asyncio.run(repl(options))


if __name__ == "__main__":
    main()
