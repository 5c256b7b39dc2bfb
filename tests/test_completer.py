"""Tests for LiftSyncCompleter."""

import pytest

from prompt_toolkit.document import Document

from client.completer import LiftSyncCompleter
from client.constants import COMMANDS


@pytest.fixture
def sync_dir(tmp_path):
    """
    Create a sync directory with a few local files.

    Returns:
        Path to the directory
    """
    directory = tmp_path / "LiftSync"
    directory.mkdir()
    (directory / "notes.txt").write_text("content")
    (directory / "numbers.csv").write_text("content")
    (directory / "photo.png").write_text("content")
    (directory / "subdir").mkdir()
    return directory


@pytest.fixture
def completer(sync_dir):
    return LiftSyncCompleter(sync_dir)


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    """Tests for command name completion."""

    def test_empty_input_shows_all_commands(self, completer):
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        completions = get_completions_list(completer, "s")
        assert completions == ["sync", "store"]

    def test_command_completion_case_insensitive(self, completer):
        assert get_completions_list(completer, "DEL") == ["delete"]


class TestFileCompletion:
    """Tests for local file names after store/delete/get."""

    @pytest.mark.parametrize("command", ["store", "delete", "get", "STORE"])
    def test_file_commands_list_local_files(self, completer, command):
        completions = get_completions_list(completer, f"{command} ")
        assert completions == ["notes.txt", "numbers.csv", "photo.png"]

    def test_partial_name_filters(self, completer):
        assert get_completions_list(completer, "store n") == ["notes.txt", "numbers.csv"]

    def test_file_size_is_shown_as_meta(self, completer):
        doc = Document("get notes", len("get notes"))
        completions = list(completer.get_completions(doc, None))
        assert [c.display_meta_text for c in completions] == ["7 B"]

    def test_directories_are_not_offered(self, completer):
        assert "subdir" not in get_completions_list(completer, "store ")

    def test_only_one_argument_is_completed(self, completer):
        assert get_completions_list(completer, "store notes.txt ") == []

    def test_other_commands_get_no_file_completion(self, completer):
        assert get_completions_list(completer, "list ") == []
        assert get_completions_list(completer, "sync ") == []

    def test_missing_directory_yields_nothing(self, tmp_path):
        completer = LiftSyncCompleter(tmp_path / "absent")
        assert get_completions_list(completer, "store ") == []
