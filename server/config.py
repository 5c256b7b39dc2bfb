"""Configuration settings for the sync server."""

import os
from common.constants import DEFAULT_SERVER_DIRECTORY, SERVER_PORT as DEFAULT_SERVER_PORT


SERVER_HOST = os.environ.get("LIFTSYNC_SERVER_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("LIFTSYNC_SERVER_PORT", str(DEFAULT_SERVER_PORT)))

STORE_DIRECTORY = os.environ.get("LIFTSYNC_SERVER_ROOT", DEFAULT_SERVER_DIRECTORY)
