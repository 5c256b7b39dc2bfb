"""Custom completer for the LiftSync prompt with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from client.constants import COMMANDS, FILE_COMMANDS
from client.utils import format_file_size


class LiftSyncCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - File name completion from the sync directory for store/delete/get
    """

    def __init__(self, sync_directory: Path):
        self.sync_directory = Path(sync_directory)

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For the single argument of a file command, completes local file names.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command not in FILE_COMMANDS:
            return

        argument_count = len(tokens) - 1 + (1 if is_typing_new_token else 0)
        if argument_count > 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_local_files(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_local_files(self, partial: str) -> Iterable[Completion]:
        """Complete names of regular files in the sync directory."""
        if not self.sync_directory.is_dir():
            return

        try:
            files = sorted(
                (item.name, item.stat().st_size)
                for item in self.sync_directory.iterdir()
                if item.is_file()
            )
        except OSError:
            return

        for name, size in files:
            if name.startswith(partial):
                yield Completion(
                    name,
                    start_position=-len(partial),
                    display_meta=format_file_size(size),
                )
