"""Command parser for typed client commands."""

import shlex

from client.models import (
    CommandRequest,
    DeleteCommand,
    GetCommand,
    ListCommand,
    StoreCommand,
    SyncCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse a raw command string into a command object.

    The first token selects the command and is case-insensitive.

    Args:
        input_line: Raw text typed by the user or synthesized by the timer

    Returns:
        CommandRequest object (one of Sync/List/Delete/Store/Get)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0].upper()

    if command_name == "SYNC":
        return SyncCommand()
    elif command_name == "LIST":
        return ListCommand()
    elif command_name == "DELETE":
        return DeleteCommand(filename=_single_filename("delete", tokens[1:]))
    elif command_name == "STORE":
        return StoreCommand(filename=_single_filename("store", tokens[1:]))
    elif command_name == "GET":
        return GetCommand(filename=_single_filename("get", tokens[1:]))
    else:
        raise ParseError(f"Unknown command: {tokens[0]}")


def _single_filename(command: str, args: list[str]) -> str:
    """Extract the one file name argument of delete/store/get."""
    if len(args) != 1:
        raise ParseError(f"{command} requires exactly 1 argument: <filename>")
    return args[0]
