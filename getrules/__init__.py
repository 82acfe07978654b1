"""GetRules - mirror rule files from a GitHub repository into a local directory."""

from .api import GitHubContentsClient
from .exceptions import (
    ConfigError,
    FilesystemError,
    GetRulesError,
    PayloadShapeError,
    TransportError,
)
from .models import EntryKind, RemoteEntry, RepoCoordinate
from .sync import SyncStats, TreeSynchronizer

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "GitHubContentsClient",
    "TreeSynchronizer",
    "SyncStats",
    "EntryKind",
    "RemoteEntry",
    "RepoCoordinate",
    "GetRulesError",
    "ConfigError",
    "TransportError",
    "PayloadShapeError",
    "FilesystemError",
]
