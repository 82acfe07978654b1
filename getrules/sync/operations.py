"""Filesystem operations used by the tree synchronizer."""

import logging
import shutil
import tempfile
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import FilesystemError

logger = logging.getLogger(__name__)


def displace_file(
    path: Path,
    temp_dir: Optional[Path] = None,
    clock: Callable[[], float] = time.time,
) -> Path:
    """Move an existing file out of the way into the temp directory.

    The file is renamed to ``<temp_dir>/<name>.<epoch millis>``. If another
    file already took that name within the same millisecond, the number is
    incremented until a free name is found. Displaced files are not
    tracked or cleaned up.

    Args:
        path: File to move
        temp_dir: Target directory (defaults to the system temp directory)
        clock: Time source returning seconds since the epoch

    Returns:
        New location of the file

    Raises:
        FilesystemError: If the file cannot be moved
    """
    target_dir = temp_dir or Path(tempfile.gettempdir())
    millis = int(clock() * 1000)
    target = target_dir / f"{path.name}.{millis}"
    while target.exists():
        millis += 1
        target = target_dir / f"{path.name}.{millis}"

    try:
        # shutil.move copies when temp is on another filesystem
        shutil.move(str(path), str(target))
    except OSError as e:
        raise FilesystemError(f"Failed to move {path} to {target}: {e}") from e

    logger.debug(f"Displaced {path} -> {target}")
    return target


def write_stream(chunks: Iterable[bytes], path: Path) -> int:
    """Write a stream of chunks to a file.

    A partially written file is removed if writing fails. Errors raised by
    the chunk iterator itself propagate unchanged after the cleanup.

    Args:
        chunks: Body of the file, chunk by chunk
        path: Destination file

    Returns:
        Number of bytes written

    Raises:
        FilesystemError: If the file cannot be written
    """
    written = 0
    try:
        with open(path, "wb") as f:
            for chunk in chunks:
                f.write(chunk)
                written += len(chunk)
    except OSError as e:
        _remove_partial(path)
        raise FilesystemError(f"Failed to write {path}: {e}") from e
    except Exception:
        _remove_partial(path)
        raise
    return written


def _remove_partial(path: Path) -> None:
    try:
        if path.is_file():
            path.unlink()
    except OSError as e:
        logger.warning(f"Failed to remove partial file {path}: {e}")
