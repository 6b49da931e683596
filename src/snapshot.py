"""
Durable audit snapshots of project metadata, written before any mutation.
"""

import json
import logging
import os

from errors import SnapshotWriteError
from models import MetadataStore

logger = logging.getLogger(__name__)


def snapshot_filename(project_name: str, timestamp: int) -> str:
    """Return the snapshot file name for a project at a unix timestamp."""
    return f"{project_name}-{timestamp}.json"


def write_snapshot(store: MetadataStore, path: str) -> str:
    """
    Write the full metadata store to path as a single-line JSON object.

    The file is flushed and fsynced before returning. An existing file is
    never overwritten.

    Args:
        store: Metadata store to persist
        path: Destination file path

    Returns:
        The path written

    Raises:
        SnapshotWriteError: If the file cannot be created, written or flushed
    """
    payload = json.dumps(store.to_dict(), separators=(",", ":"))
    try:
        f = open(path, "x", encoding="utf-8")
    except OSError as e:
        raise SnapshotWriteError(f"cannot create metadata snapshot {path}: {e}") from e

    try:
        with f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        # A partial file must not pass for an audit copy.
        try:
            os.remove(path)
        except OSError as cleanup_error:
            logger.error(f"cannot remove partial snapshot {path}: {cleanup_error}")
        raise SnapshotWriteError(f"cannot write metadata snapshot {path}: {e}") from e

    logger.info(f"wrote current metadata to {path}")
    return path
