"""Interface between the tree synchronizer and a remote content source."""

from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import Protocol

from ..models import RemoteEntry


class ContentProvider(Protocol):
    """Source of directory listings and file contents.

    ``list_directory`` raises ``TransportError`` (or its subclass
    ``PayloadShapeError``) when a listing cannot be obtained.
    ``open_content`` yields the file body as an iterator of chunks and
    raises ``TransportError`` when the content cannot be fetched.
    """

    def list_directory(self, ref: str) -> list[RemoteEntry]: ...

    def open_content(self, ref: str) -> AbstractContextManager[Iterator[bytes]]: ...
