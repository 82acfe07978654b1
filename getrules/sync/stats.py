"""Counters collected during one synchronization run."""

from dataclasses import dataclass, field


@dataclass
class SyncFailure:
    """An item that could not be synchronized."""

    path: str
    """Remote path relative to the synchronized root"""

    message: str


@dataclass
class SyncStats:
    """Outcome of a single call to ``TreeSynchronizer.sync``.

    A file that was displaced may still fail its download, so ``displaced``
    can exceed ``downloaded``.
    """

    downloaded: int = 0
    displaced: int = 0
    errors: int = 0
    skipped: int = 0
    failures: list[SyncFailure] = field(default_factory=list)

    def record_failure(self, path: str, message: str) -> None:
        self.errors += 1
        self.failures.append(SyncFailure(path=path, message=message))

    def to_dict(self) -> dict:
        """Convert stats to a dictionary for JSON output."""
        return {
            "downloaded": self.downloaded,
            "displaced": self.displaced,
            "errors": self.errors,
            "skipped": self.skipped,
            "failures": [
                {"path": f.path, "message": f.message} for f in self.failures
            ],
        }
