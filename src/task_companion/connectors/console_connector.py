# src/task_companion/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def to_command_line(user_input: str) -> str:
    """Plain text means "parse this"; slash commands pass through."""
    if user_input.startswith("/"):
        return user_input
    return f"/parse {user_input}"


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts(
        "[CONSOLE] Describe what you need to do, e.g. 'call mom tomorrow at 2pm'. "
        "Use /help for commands. Use /exit to quit.\n"
    )

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (LLM / STT calls)
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(state, to_command_line(user_input), emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            _print_ts(response)
