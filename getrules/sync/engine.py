"""Tree synchronizer that mirrors a remote directory tree locally."""

import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import FilesystemError, PayloadShapeError, TransportError
from ..models import RemoteEntry
from ..output import OutputFormatter
from .operations import displace_file, write_stream
from .provider import ContentProvider
from .stats import SyncStats

logger = logging.getLogger(__name__)


class TreeSynchronizer:
    """Mirrors a remote tree onto a local directory, depth-first.

    Entries are processed one at a time in the order the provider returns
    them, and every subdirectory is finished before its next sibling starts.
    Existing local files are never overwritten in place: they are moved to
    the temp directory first and then downloaded again, so running twice
    displaces and re-downloads every file.
    """

    def __init__(
        self,
        provider: ContentProvider,
        output: Optional[OutputFormatter] = None,
        include_suffixes: Optional[Iterable[str]] = None,
        temp_dir: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
        on_item: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the synchronizer.

        Args:
            provider: Source of listings and file contents
            output: Output formatter for progress messages
            include_suffixes: Only download files ending with one of these
                suffixes (all files when None)
            temp_dir: Where displaced files go (system temp dir when None)
            clock: Time source used to name displaced files
            on_item: Called with the remote path of every entry visited
        """
        self.provider = provider
        self.output = output or OutputFormatter()
        self.include_suffixes = (
            tuple(include_suffixes) if include_suffixes is not None else None
        )
        self.temp_dir = temp_dir
        self.clock = clock
        self.on_item = on_item

    def sync(self, root_ref: str, destination: Path) -> SyncStats:
        """Mirror the remote directory ``root_ref`` into ``destination``.

        Args:
            root_ref: Listing reference of the remote root directory
            destination: Local directory to mirror into (created if missing)

        Returns:
            Counters for this run

        Raises:
            FilesystemError: If the destination cannot be created
            TransportError: If the root directory cannot be listed
        """
        stats = SyncStats()

        if self._ensure_directory(destination):
            self.output.info(f"Created directory: {destination}")
        else:
            self.output.info(f"Directory {destination} already exists.")

        entries = self.provider.list_directory(root_ref)
        self._sync_entries(entries, destination, "", stats)

        logger.debug(
            f"Sync finished: {stats.downloaded} downloaded, "
            f"{stats.displaced} displaced, {stats.errors} errors"
        )
        return stats

    def _ensure_directory(self, path: Path) -> bool:
        """Create ``path`` with its parents; return True if it was created."""
        if path.is_dir():
            return False
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Failed to create directory {path}: {e}") from e
        return True

    def _sync_directory(
        self, ref: str, local_dir: Path, remote_path: str, stats: SyncStats
    ) -> None:
        """List a subdirectory and process its entries.

        A listing failure only abandons this subtree.
        """
        try:
            entries = self.provider.list_directory(ref)
        except TransportError as e:
            self.output.error(f"Error processing directory {remote_path}: {e}")
            stats.record_failure(remote_path, str(e))
            return

        self._sync_entries(entries, local_dir, remote_path, stats)

    def _sync_entries(
        self,
        entries: list[RemoteEntry],
        local_dir: Path,
        base_path: str,
        stats: SyncStats,
    ) -> None:
        for entry in entries:
            item_path = f"{base_path}/{entry.name}" if base_path else entry.name
            if self.on_item:
                self.on_item(item_path)

            if not _is_safe_name(entry.name):
                error = PayloadShapeError(f"Refusing unsafe entry name '{entry.name}'")
                self.output.error(f"Skipping {item_path}: {error}")
                stats.record_failure(item_path, str(error))
                continue

            local_path = local_dir / entry.name
            if entry.is_directory:
                self._sync_subdirectory(entry, local_path, item_path, stats)
            elif entry.is_file:
                self._sync_file(entry, local_path, item_path, stats)
            else:
                logger.debug(f"Skipping {item_path}: unsupported entry type")
                stats.skipped += 1

    def _sync_subdirectory(
        self,
        entry: RemoteEntry,
        local_path: Path,
        item_path: str,
        stats: SyncStats,
    ) -> None:
        try:
            if self._ensure_directory(local_path):
                self.output.info(f"  - Created directory: {item_path}")
        except FilesystemError as e:
            self.output.error(str(e))
            stats.record_failure(item_path, str(e))
            return

        if not entry.child_listing_ref:
            message = "Directory entry has no listing URL"
            self.output.error(f"Error processing directory {item_path}: {message}")
            stats.record_failure(item_path, message)
            return

        self._sync_directory(entry.child_listing_ref, local_path, item_path, stats)

    def _sync_file(
        self,
        entry: RemoteEntry,
        local_path: Path,
        item_path: str,
        stats: SyncStats,
    ) -> None:
        if self.include_suffixes is not None and not entry.name.endswith(
            self.include_suffixes
        ):
            logger.debug(f"Skipping {item_path}: suffix not included")
            stats.skipped += 1
            return

        if not entry.content_ref:
            logger.debug(f"Skipping {item_path}: no download URL")
            stats.skipped += 1
            return

        if local_path.is_dir():
            message = f"A directory is in the way at {local_path}"
            self.output.error(f"Failed to download {item_path}: {message}")
            stats.record_failure(item_path, message)
            return

        if local_path.exists() or local_path.is_symlink():
            try:
                moved_to = displace_file(local_path, self.temp_dir, self.clock)
            except FilesystemError as e:
                # the old file is still in place; downloading would overwrite it
                self.output.error(f"Failed to download {item_path}: {e}")
                stats.record_failure(item_path, str(e))
                return
            stats.displaced += 1
            self.output.info(f"  - {item_path} existed, moved to temp: {moved_to}")

        self.output.info(f"  - Downloading {item_path}...")
        try:
            with self.provider.open_content(entry.content_ref) as chunks:
                write_stream(chunks, local_path)
        except (TransportError, FilesystemError) as e:
            self.output.error(f"    Failed to download {item_path}: {e}")
            stats.record_failure(item_path, str(e))
            return

        stats.downloaded += 1


def _is_safe_name(name: str) -> bool:
    if not name or name in (".", ".."):
        return False
    return "/" not in name and "\\" not in name
