"""Formatting helpers for client output."""

from email.utils import format_datetime
from typing import Iterable, Optional
from datetime import datetime

from common.protocol import FileDescriptor
from common.utils import to_utc


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_timestamp(value: Optional[datetime]) -> str:
    """Render a timestamp in RFC 1123 form, or 'unknown'."""
    if value is None:
        return "unknown"
    return format_datetime(to_utc(value), usegmt=True)


def format_inventory(entries: Iterable[FileDescriptor]) -> str:
    """
    Render a server listing, one block per file.

    Args:
        entries: Inventory descriptors (no content)

    Returns:
        Multi-line text, or a short notice for an empty listing
    """
    blocks = [
        f"========= {entry.name} =========\n"
        f"size: {format_file_size(entry.size)}\n"
        f"last changed: {format_timestamp(entry.modified_at)}"
        for entry in entries
    ]
    if not blocks:
        return "No files stored on the server."
    return "\n\n".join(blocks)
