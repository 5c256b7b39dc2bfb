"""User interface collaborator: status lines and server listings."""

from typing import Protocol, Sequence

from common.protocol import FileDescriptor
from client.utils import format_inventory


class UserInterface(Protocol):
    """What the client core needs from a front-end."""

    def notify(self, message: str) -> None:
        ...

    def show_inventory(self, entries: Sequence[FileDescriptor]) -> None:
        ...


class TerminalUI:
    """Prints to stdout; under prompt_toolkit's patch_stdout lines appear above the prompt."""

    def notify(self, message: str) -> None:
        print(message, flush=True)

    def show_inventory(self, entries: Sequence[FileDescriptor]) -> None:
        print(format_inventory(entries), flush=True)
