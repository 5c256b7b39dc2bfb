"""Configuration management for the LiftSync client."""

import json
import os
import shutil
import socket
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_CLIENT_DIRECTORY, SERVER_PORT, SYNC_INTERVAL_SECONDS
from common.logging_config import get_logger

logger = get_logger(__name__)


class Config:
    """Manages client configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "server_host": os.environ.get("LIFTSYNC_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("LIFTSYNC_SERVER_PORT", str(SERVER_PORT))),
        "sync_directory": DEFAULT_CLIENT_DIRECTORY,
        "sync_interval_seconds": SYNC_INTERVAL_SECONDS,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.liftsync/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Read the config file, writing one with defaults on first run.

        Unknown keys are kept; missing keys fall back to DEFAULT_CONFIG.
        A file that is not a JSON object is moved aside to ``.json.bak``.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.liftsync' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        merged = dict(self.DEFAULT_CONFIG)
        if not self.config_path.exists():
            self._write(merged)
            return merged

        try:
            stored = json.loads(self.config_path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            self._backup_unreadable(e)
            return merged
        if not isinstance(stored, dict):
            self._backup_unreadable(f"expected an object, got {type(stored).__name__}")
            return merged

        merged.update(stored)
        return merged

    def _backup_unreadable(self, reason) -> None:
        logger.warning(f"Config file {self.config_path} unreadable ({reason}), using defaults")
        try:
            shutil.copy(self.config_path, self.config_path.with_suffix('.json.bak'))
        except OSError as e:
            logger.warning(f"Could not back up config file: {e}")

    def _write(self, data: dict) -> None:
        try:
            self.config_path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            logger.warning(f"Could not write config file {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file."""
        self._write(self.data)

    def get_server_address(self) -> tuple[str, int]:
        """
        Get sync server address.

        Returns:
            (host, port) tuple
        """
        return self.data.get('server_host', 'localhost'), int(self.data.get('server_port', SERVER_PORT))

    def set_server_host(self, host: str) -> None:
        """Override the server host for this run (not saved)."""
        self.data['server_host'] = host

    def get_sync_directory(self) -> Path:
        """
        Get local directory kept in sync with the server.

        Returns:
            Directory path, relative paths resolved against the working directory
        """
        return Path(self.data.get('sync_directory', DEFAULT_CLIENT_DIRECTORY))

    def get_sync_interval(self) -> float:
        """
        Get the periodic sync interval.

        Returns:
            Interval in seconds
        """
        return float(self.data.get('sync_interval_seconds', SYNC_INTERVAL_SECONDS))

    def get_peer_id(self) -> str:
        """
        Get the identity this client advertises to the server.

        Returns:
            Configured peer_id, or the host name when unset
        """
        peer_id: Optional[str] = self.data.get('peer_id')
        return peer_id or socket.gethostname()
