"""Shared pytest fixtures for all tests."""

from datetime import datetime, timedelta, timezone

import pytest

from client.config import Config
from common.file_store import FileStore
from common.protocol import FileDescriptor


class RecordingUI:
    """UI collaborator that remembers everything it was shown."""

    def __init__(self):
        self.messages = []
        self.inventories = []

    def notify(self, message):
        self.messages.append(message)

    def show_inventory(self, entries):
        self.inventories.append(list(entries))


@pytest.fixture
def base_time():
    """A fixed, microsecond-aligned reference time."""
    return datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture
def later(base_time):
    return base_time + timedelta(hours=1)


@pytest.fixture
def earlier(base_time):
    return base_time - timedelta(hours=1)


@pytest.fixture
def store(tmp_path):
    """
    Create an empty file store.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        FileStore rooted in a fresh directory
    """
    file_store = FileStore(tmp_path / 'store')
    file_store.ensure_root()
    return file_store


@pytest.fixture
def client_store(tmp_path):
    """Second, independent store playing the client's folder."""
    file_store = FileStore(tmp_path / 'client')
    file_store.ensure_root()
    return file_store


@pytest.fixture
def put_file():
    """
    Write a file into a store with a chosen modification time.

    Returns:
        Callable (store, name, content, modified_at) -> FileDescriptor
    """
    def _put(file_store, name, content, modified_at):
        descriptor = FileDescriptor(
            name=name,
            size=len(content),
            modified_at=modified_at,
            content=content,
        )
        file_store.write(descriptor)
        return descriptor
    return _put


@pytest.fixture
def ui():
    return RecordingUI()


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .liftsync directory
    """
    config_dir = tmp_path / '.liftsync'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')
