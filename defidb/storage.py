"""
JSON file storage for the database snapshots.
"""

import json
import logging
import os
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


def load_json(path: Path, default: Any = None) -> Any:
    """
    Load a JSON file.

    Args:
        path: File to read
        default: Returned when the file does not exist

    Returns:
        Parsed content, or ``default`` for a missing file
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"{path} does not exist yet, starting empty")
        return default
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_json(path: Path, data: Any) -> None:
    """
    Write JSON atomically.

    The content goes to a temporary file in the same directory which then
    replaces ``path``, so a failed write never leaves a truncated file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    logger.debug(f"Wrote {path}")


def archive_previous(path: Path, archive_dir: Path, today: Optional[date] = None) -> Optional[Path]:
    """
    Move the current snapshot into the dated archive.

    The file is renamed to ``<archive_dir>/<yesterday>.json``; it is a move,
    not a copy. The archive directory is created when missing.

    Args:
        path: Current snapshot file
        archive_dir: Directory holding one file per day
        today: Reference date, defaults to the current date

    Returns:
        Archive path, or None when there was no current snapshot
    """
    path = Path(path)
    archive_dir = Path(archive_dir)
    if not path.exists():
        logger.warning(f"No current snapshot at {path}, nothing to archive")
        return None

    snapshot_date = (today or date.today()) - timedelta(days=1)
    archive_dir.mkdir(parents=True, exist_ok=True)
    target = archive_dir / f"{snapshot_date.isoformat()}.json"
    os.replace(path, target)
    logger.info(f"Archived {path} -> {target}")
    return target
