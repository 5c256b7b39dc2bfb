"""Tests for the interactive prompt loop."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from client.repl import repl_loop
from client.session import ClientSession


def scripted_prompt(*answers):
    """Patch the prompt so it returns the given lines, then raises EOF."""
    prompt_session = Mock()
    prompt_session.prompt_async = AsyncMock(side_effect=list(answers) + [EOFError()])
    return patch("client.repl.PromptSession", return_value=prompt_session)


@pytest.mark.asyncio
async def test_commands_are_submitted_to_session(tmp_path, capsys):
    session = Mock(spec=ClientSession)

    with scripted_prompt("list", "  store a.txt  ", "", "exit", "sync"):
        await repl_loop(session, tmp_path)

    assert [c.args[0] for c in session.submit_command.call_args_list] == ["list", "store a.txt"]
    assert "Goodbye!" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_help_is_handled_locally(tmp_path, capsys):
    session = Mock(spec=ClientSession)

    with scripted_prompt("help"):
        await repl_loop(session, tmp_path)

    session.submit_command.assert_not_called()
    assert "store <filename>" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_interrupt_keeps_prompting(tmp_path):
    session = Mock(spec=ClientSession)

    with scripted_prompt(KeyboardInterrupt(), "sync"):
        await repl_loop(session, tmp_path)

    session.submit_command.assert_called_once_with("sync")
