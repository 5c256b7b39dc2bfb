import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class PeerLoggerAdapter(logging.LoggerAdapter):
    """Prefix every record with the identity of the peer being served."""

    def process(self, msg, kwargs):
        return f"[{self.extra['peer']}] {msg}", kwargs


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Handlers are installed on the component logger and on the shared
    package loggers (``common``, ``server``, ``client``) so module loggers
    obtained with ``get_logger(__name__)`` end up on the same stream.

    Args:
        component_name: Name of the component (e.g., 'server', 'client')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    for name in dict.fromkeys((component_name, 'common', 'server', 'client')):
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if not logger.handlers:
            logger.addHandler(handler)
        logger.propagate = False

    return logging.getLogger(component_name)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def peer_logger(logger: logging.Logger, peer: str) -> PeerLoggerAdapter:
    """
    Wrap a logger so its lines carry the peer identity.

    Args:
        logger: Logger to wrap
        peer: Peer identity or remote address

    Returns:
        Adapter that prefixes messages with ``[peer]``
    """
    return PeerLoggerAdapter(logger, {'peer': peer})
