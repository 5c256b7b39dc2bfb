"""Directory-backed file store: the single point of mutual exclusion for disk I/O."""

import enum
import os
import stat
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from common.exceptions import (
    FileMissingError,
    FileTooLargeError,
    InvalidFileNameError,
    StoreListError,
)
from common.logging_config import get_logger
from common.protocol import FileDescriptor
from common.utils import datetime_from_ns, datetime_to_ns, to_utc

logger = get_logger(__name__)


class Comparison(enum.Enum):
    """How the store's copy of a file relates to a reference timestamp."""
    NEWER = "newer"
    OLDER = "older"
    EQUAL = "equal"


class FileStore:
    """
    Named byte blobs with modification-time metadata under one root directory.

    Every operation holds one store-wide lock for its whole duration, so a
    reader never observes a file that another connection is half-way
    through writing. Concurrent clients touching different files still
    serialize here.
    """

    def __init__(self, root: Path):
        """
        Initialize store over a directory.

        Args:
            root: Directory holding the files (created if missing)
        """
        self.root = Path(root)
        self._lock = threading.Lock()

    def ensure_root(self) -> None:
        """Create the root directory if it does not exist."""
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, name: str) -> Path:
        """
        Resolve a file name inside the root.

        Raises:
            InvalidFileNameError: If the name is empty or contains path components
        """
        if not name or name in ('.', '..') or '/' in name or '\\' in name or '\x00' in name:
            raise InvalidFileNameError(f"Invalid file name: {name!r}")
        return self.root / name

    def validate_name(self, name: str) -> None:
        """
        Check that a name can be stored under the root.

        Raises:
            InvalidFileNameError: If the name is empty or contains path components
        """
        self._path_for(name)

    def list(self) -> List[FileDescriptor]:
        """
        Enumerate regular files in the root (no content).

        Returns:
            Descriptors sorted by name

        Raises:
            StoreListError: If the root or an entry cannot be read; the
                descriptors gathered so far are attached as ``partial``
        """
        with self._lock:
            files: List[FileDescriptor] = []
            try:
                entries = sorted(os.scandir(self.root), key=lambda e: e.name)
            except OSError as e:
                raise StoreListError(f"Cannot read store root {self.root}: {e}") from e

            failed = []
            for entry in entries:
                try:
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    st = entry.stat(follow_symlinks=False)
                except OSError as e:
                    logger.warning(f"Skipping unreadable entry {entry.name}: {e}")
                    failed.append(entry.name)
                    continue
                files.append(FileDescriptor(
                    name=entry.name,
                    size=st.st_size,
                    modified_at=datetime_from_ns(st.st_mtime_ns),
                ))

            if failed:
                raise StoreListError(
                    f"Could not stat {len(failed)} entr(y/ies): {', '.join(failed)}",
                    partial=files,
                )
            return files

    def _regular_stat(self, path: Path, name: str) -> os.stat_result:
        """
        Stat a path without following symlinks.

        Raises:
            FileMissingError: If nothing is there or it is not a regular file
        """
        try:
            st = path.lstat()
        except FileNotFoundError as e:
            raise FileMissingError(name) from e
        if not stat.S_ISREG(st.st_mode):
            raise FileMissingError(name)
        return st

    def read(self, name: str, max_size: Optional[int] = None) -> FileDescriptor:
        """
        Read a file with its content.

        Symlinks and directories are not files of the store, matching list().

        Args:
            name: File name
            max_size: Refuse files larger than this many bytes

        Raises:
            FileMissingError: If no regular file has this name
            FileTooLargeError: If the file is larger than max_size
            OSError: On any other read failure
        """
        path = self._path_for(name)
        with self._lock:
            st = self._regular_stat(path, name)
            if max_size is not None and st.st_size > max_size:
                raise FileTooLargeError(name, st.st_size, max_size)
            try:
                content = path.read_bytes()
            except FileNotFoundError as e:
                raise FileMissingError(name) from e
            if max_size is not None and len(content) > max_size:
                raise FileTooLargeError(name, len(content), max_size)
            return FileDescriptor(
                name=name,
                size=len(content),
                modified_at=datetime_from_ns(st.st_mtime_ns),
                content=content,
            )

    def write(self, descriptor: FileDescriptor) -> None:
        """
        Create or overwrite a file, then force its modification time.

        The stored mtime is the descriptor's timestamp, not the time of the
        write, so both sides keep the originating side's notion of when the
        content was produced.

        Raises:
            InvalidFileNameError: If the name would escape the root or
                names a symlink
            OSError: If the write fails
        """
        path = self._path_for(descriptor.name)
        content = descriptor.content or b""
        with self._lock:
            if path.is_symlink():
                raise InvalidFileNameError(f"Refusing to write through symlink: {descriptor.name!r}")
            path.write_bytes(content)
            if descriptor.modified_at is not None:
                ns = datetime_to_ns(descriptor.modified_at)
                os.utime(path, ns=(ns, ns))
        logger.debug(f"Wrote {descriptor.name} ({len(content)} bytes)")

    def remove(self, name: str) -> None:
        """
        Delete a file.

        Raises:
            FileMissingError: If no regular file has this name
        """
        path = self._path_for(name)
        with self._lock:
            self._regular_stat(path, name)
            try:
                path.unlink()
            except FileNotFoundError as e:
                raise FileMissingError(name) from e
        logger.debug(f"Removed {name}")

    def exists(self, name: str) -> bool:
        """Check whether a regular file (not a symlink) with this name exists."""
        path = self._path_for(name)
        with self._lock:
            try:
                self._regular_stat(path, name)
            except FileMissingError:
                return False
            return True

    def compare(self, name: str, reference: datetime) -> Comparison:
        """
        Compare the store's modification time for a file with a reference.

        Args:
            name: File name
            reference: Timestamp advertised by the peer

        Returns:
            NEWER if the store's copy is strictly newer, OLDER if strictly
            older, EQUAL otherwise

        Raises:
            FileMissingError: If no regular file has this name
        """
        path = self._path_for(name)
        with self._lock:
            st = self._regular_stat(path, name)
        return compare_timestamps(datetime_from_ns(st.st_mtime_ns), reference)


def compare_timestamps(local: datetime, reference: datetime) -> Comparison:
    """Order a local modification time against a peer's advertised one."""
    local = to_utc(local)
    reference = to_utc(reference)
    if local > reference:
        return Comparison.NEWER
    if local < reference:
        return Comparison.OLDER
    return Comparison.EQUAL
