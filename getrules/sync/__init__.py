"""Tree synchronization for getrules - mirror a remote tree locally."""

from .engine import TreeSynchronizer
from .operations import displace_file, write_stream
from .provider import ContentProvider
from .stats import SyncFailure, SyncStats

__all__ = [
    "TreeSynchronizer",
    "ContentProvider",
    "SyncStats",
    "SyncFailure",
    "displace_file",
    "write_stream",
]
