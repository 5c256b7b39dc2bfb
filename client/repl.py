"""REPL with prompt_toolkit feeding typed commands into the client session."""

import os
import sys
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from client.completer import LiftSyncCompleter
from client.constants import (
    HELP_TEXT,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from client.session import ClientSession


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def repl_loop(session: ClientSession, sync_directory: Path) -> None:
    """
    Read commands until the user exits.

    Sync commands are not executed here; they are submitted to the
    session's command loop exactly as typed.

    Args:
        session: Running client session
        sync_directory: Local folder, used for file name completion
    """
    prompt_session: PromptSession = PromptSession(
        completer=LiftSyncCompleter(sync_directory),
        history=InMemoryHistory(),
        style=STYLE,
    )

    show_welcome()

    while True:
        try:
            user_input = await prompt_session.prompt_async([("class:prompt", PROMPT_TEXT)])
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break

        command = user_input.strip()
        if not command:
            continue

        if command == "exit":
            print("Goodbye!")
            break

        if command == "help":
            print(HELP_TEXT)
            continue

        if command == "clear":
            clear_screen()
            show_welcome()
            continue

        session.submit_command(command)
