"""Entry point for the sync server.
Creates the backup directory, binds the listening port and serves clients.
"""

import asyncio
import signal
import sys
from pathlib import Path

from common.file_store import FileStore
from common.logging_config import setup_logging
from server.config import SERVER_HOST, SERVER_PORT, STORE_DIRECTORY
from server.sync_server import SyncServer

logger = setup_logging('server')


async def serve(server: SyncServer) -> None:
    """
    Run the sync server until a shutdown signal arrives.

    Args:
        server: Configured SyncServer
    """
    await server.start()

    stop_event = asyncio.Event()
    if sys.platform != 'win32':
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

    serve_task = asyncio.create_task(server.serve_forever())
    try:
        await stop_event.wait()
        logger.info("Received shutdown signal, stopping...")
    finally:
        serve_task.cancel()
        try:
            await serve_task
        except asyncio.CancelledError:
            pass
        await server.stop()


def main() -> None:
    """Bootstrap the sync server."""
    logger.info("Initializing sync server...")

    store = FileStore(Path(STORE_DIRECTORY))
    try:
        store.ensure_root()
    except OSError as e:
        logger.critical(f"Cannot create store directory {STORE_DIRECTORY}: {e}")
        sys.exit(1)

    server = SyncServer(store, SERVER_HOST, SERVER_PORT)

    try:
        asyncio.run(serve(server))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except OSError as e:
        logger.critical(f"Cannot listen on {SERVER_HOST}:{SERVER_PORT}: {e}")
        sys.exit(1)
    logger.info("Sync server shutdown complete")


if __name__ == "__main__":
    main()
