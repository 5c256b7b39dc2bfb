"""Custom exception classes shared by client and server."""

from typing import List


class LiftSyncException(Exception):
    """
    Base exception class for all LiftSync errors.
    """
    pass


class StoreError(LiftSyncException):
    """
    Raised when a file store operation fails. Always recoverable.
    """
    pass


class FileMissingError(StoreError):
    """
    Raised when a named file does not exist in the store.
    """

    def __init__(self, name: str):
        super().__init__(f"File not found: {name}")
        self.name = name


class InvalidFileNameError(StoreError):
    """
    Raised when a file name would escape the store root.
    """
    pass


class StoreListError(StoreError):
    """
    Raised when the store root cannot be fully enumerated.

    The descriptors that could be read are kept in ``partial``.
    """

    def __init__(self, message: str, partial: List = None):
        super().__init__(message)
        self.partial = list(partial or [])


class ChannelClosedError(LiftSyncException):
    """
    Raised when the peer disconnects or sends something that cannot be decoded.
    """
    pass


class FileTooLargeError(StoreError):
    """
    Raised when a file is too large to be sent in one envelope.
    """

    def __init__(self, name: str, size: int, limit: int):
        super().__init__(f"{name} is {size} bytes, over the {limit} byte transfer limit")
        self.name = name
        self.size = size
        self.limit = limit


class MessageTooLargeError(LiftSyncException):
    """
    Raised when an encoded envelope exceeds the line limit. Nothing is written
    and the connection stays usable.
    """
    pass
