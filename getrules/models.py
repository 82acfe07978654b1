"""Data models for remote repository contents."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .exceptions import PayloadShapeError


@dataclass(frozen=True)
class RepoCoordinate:
    """A GitHub repository identified as ``owner/repo``."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


class EntryKind(Enum):
    """Kind of an entry returned by a directory listing."""

    DIRECTORY = "dir"
    FILE = "file"
    OTHER = "other"

    @classmethod
    def from_api(cls, value: str) -> "EntryKind":
        for kind in (cls.DIRECTORY, cls.FILE):
            if kind.value == value:
                return kind
        # symlinks, submodules
        return cls.OTHER


@dataclass
class RemoteEntry:
    """One item of a remote directory listing."""

    name: str
    """Item name, used as the local path segment"""

    kind: EntryKind
    """Directory, file or something else"""

    child_listing_ref: Optional[str] = None
    """Listing endpoint for the directory's children (directories only)"""

    content_ref: Optional[str] = None
    """Download location of the file content (files only)"""

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @classmethod
    def from_dict(cls, data: Any) -> "RemoteEntry":
        """Create a RemoteEntry from one item of a contents API listing.

        Args:
            data: Decoded JSON object with at least ``name`` and ``type``

        Returns:
            RemoteEntry instance

        Raises:
            PayloadShapeError: If the item is not an object, lacks
                ``name``/``type`` or has a non-string ``url``/``download_url``
        """
        if not isinstance(data, dict):
            raise PayloadShapeError(
                f"Expected listing item to be an object, got {type(data).__name__}"
            )
        name = data.get("name")
        entry_type = data.get("type")
        if not isinstance(name, str) or not name:
            raise PayloadShapeError("Listing item is missing 'name'")
        if not isinstance(entry_type, str):
            raise PayloadShapeError(f"Listing item '{name}' is missing 'type'")

        for key in ("url", "download_url"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise PayloadShapeError(
                    f"Listing item '{name}' has a non-string '{key}'"
                )

        kind = EntryKind.from_api(entry_type)
        return cls(
            name=name,
            kind=kind,
            child_listing_ref=data.get("url") if kind is EntryKind.DIRECTORY else None,
            content_ref=data.get("download_url") if kind is EntryKind.FILE else None,
        )
