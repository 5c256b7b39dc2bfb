"""Client entry point."""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional

from prompt_toolkit.patch_stdout import patch_stdout

from common.channel import MessageChannel
from common.file_store import FileStore
from common.logging_config import get_logger, setup_logging
from client.config import Config
from client.repl import repl_loop
from client.session import ClientSession
from client.ui import TerminalUI

GREETING = (
    "Hello LiftSync client. Type 'list' to see the files stored on the server, "
    "'store' or 'get' followed by a file name to upload or download it, "
    "and 'delete' followed by a file name to delete it on the server."
)


async def run_client(config: Config) -> int:
    """
    Connect to the server and run the session alongside the prompt.

    Returns:
        Process exit status
    """
    logger = get_logger('client')

    store = FileStore(config.get_sync_directory())
    try:
        store.ensure_root()
    except OSError as e:
        logger.critical(f"Cannot create sync directory {store.root}: {e}")
        return 1

    host, port = config.get_server_address()
    try:
        channel = await MessageChannel.connect(host, port)
    except OSError as e:
        logger.critical(f"Cannot connect to {host}:{port}: {e}")
        return 1
    logger.info(f"Connected to {host}:{port} [sync_directory={store.root}]")

    ui = TerminalUI()
    session = ClientSession(store, ui, config.get_peer_id(), config.get_sync_interval())

    with patch_stdout():
        ui.notify(GREETING)
        session_task = asyncio.create_task(session.run(channel))
        repl_task = asyncio.create_task(repl_loop(session, store.root))
        done, pending = await asyncio.wait(
            {session_task, repl_task}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    if session_task in done:
        session_task.result()
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the client."""
    parser = argparse.ArgumentParser(prog="liftsync", description="Keep a folder in sync with a LiftSync server.")
    parser.add_argument("host", nargs="?", help="Server host (overrides the config file)")
    parser.add_argument("--config", type=Path, default=Path.home() / '.liftsync' / 'config.json')
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    log_level = 'DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'INFO')
    logger = setup_logging('client', log_level=log_level)
    if args.debug:
        logger.info("Debug logging enabled")

    config = Config(args.config)
    if args.host:
        config.set_server_host(args.host)

    logger.info("Client starting...")
    try:
        status = asyncio.run(run_client(config))
    except KeyboardInterrupt:
        status = 0
    except Exception as e:
        logger.error(f"Client error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Client exiting")
    sys.exit(status)


if __name__ == "__main__":
    main()
