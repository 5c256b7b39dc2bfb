"""Project-wide constants (default port, directories, protocol limits)."""

SERVER_PORT: int = 12100
SYNC_INTERVAL_SECONDS: int = 60

DEFAULT_CLIENT_DIRECTORY: str = "LiftSync"
DEFAULT_SERVER_DIRECTORY: str = "LiftSyncBackup"

MAX_MESSAGE_BYTES: int = 64 * 1024 * 1024  # one envelope per line, base64 content included

# Largest file whose STORE line stays under MAX_MESSAGE_BYTES once base64 encoded
ENVELOPE_HEADROOM_BYTES: int = 64 * 1024
MAX_CONTENT_BYTES: int = (MAX_MESSAGE_BYTES - ENVELOPE_HEADROOM_BYTES) // 4 * 3
