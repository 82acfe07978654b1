"""Configuration management for getrules."""

import logging
import os
import re
from pathlib import Path
from typing import Optional

from .exceptions import ConfigError
from .models import RepoCoordinate

logger = logging.getLogger(__name__)

DEFAULT_REPO = "johnlindquist/get-rules"
DEFAULT_RULES_PATH = ".cursor/rules"
DEFAULT_API_URL = "https://api.github.com"
USER_AGENT_TEMPLATE = "getrules/{version} (github.com/johnlindquist/get-rules)"
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_SUFFIXES: tuple[str, ...] = (".mdc",)

REPO_PATTERN = re.compile(r"^[^/]+/[^/]+$")


def parse_repo_coordinate(value: Optional[str]) -> Optional[RepoCoordinate]:
    """Parse an ``owner/repo`` string.

    Args:
        value: Text supplied by the user

    Returns:
        RepoCoordinate if the text is two non-empty slash-free segments
        joined by a single slash, None otherwise
    """
    if value is None:
        return None
    value = value.strip()
    if not REPO_PATTERN.match(value):
        return None
    owner, repo = value.split("/")
    return RepoCoordinate(owner=owner, repo=repo)


class Config:
    """Configuration manager for getrules.

    Values are looked up in the environment first, then in the config file
    (``~/.config/getrules/config``), then fall back to built-in defaults.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or (
            Path.home() / ".config" / "getrules" / "config"
        )
        self._file_values: Optional[dict[str, str]] = None

    def _load_file(self) -> dict[str, str]:
        """Read ``KEY=VALUE`` lines from the config file, once."""
        if self._file_values is not None:
            return self._file_values

        values: dict[str, str] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if not line or line.startswith("#") or "=" not in line:
                            continue
                        key, value = line.split("=", 1)
                        values[key.strip()] = value.strip().strip('"').strip("'")
            except OSError as e:
                logger.warning(f"Failed to read config file {self.config_path}: {e}")
        self._file_values = values
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a setting in the environment, then the config file.

        A variable present in the environment wins even when it is empty.
        """
        if key in os.environ:
            return os.environ[key]
        return self._load_file().get(key, default)

    @property
    def default_repo(self) -> str:
        return self.get("GETRULES_REPO") or DEFAULT_REPO

    @property
    def rules_path(self) -> str:
        return self.get("GETRULES_PATH") or DEFAULT_RULES_PATH

    @property
    def api_url(self) -> str:
        return (self.get("GETRULES_API_URL") or DEFAULT_API_URL).rstrip("/")

    @property
    def user_agent(self) -> str:
        from . import __version__

        return self.get("GETRULES_USER_AGENT") or USER_AGENT_TEMPLATE.format(
            version=__version__
        )

    @property
    def timeout(self) -> float:
        raw = self.get("GETRULES_TIMEOUT")
        if not raw:
            return DEFAULT_TIMEOUT
        try:
            return float(raw)
        except ValueError as e:
            raise ConfigError(f"GETRULES_TIMEOUT must be a number, got '{raw}'") from e

    @property
    def suffixes(self) -> tuple[str, ...]:
        raw = self.get("GETRULES_SUFFIXES")
        if raw is None:
            return DEFAULT_SUFFIXES
        return tuple(s.strip() for s in raw.split(",") if s.strip())

    def resolve_repo(self, value: Optional[str]) -> tuple[RepoCoordinate, bool]:
        """Resolve the repository to pull from.

        Args:
            value: Optional ``owner/repo`` supplied by the user

        Returns:
            Tuple of (coordinate, used_fallback). ``used_fallback`` is True
            when ``value`` was given but did not match ``owner/repo``.

        Raises:
            ConfigError: If the configured default is itself malformed
        """
        coordinate = parse_repo_coordinate(value)
        if coordinate is not None:
            return coordinate, False

        default = parse_repo_coordinate(self.default_repo)
        if default is None:
            raise ConfigError(
                f"Default repository '{self.default_repo}' is not in owner/repo form"
            )
        return default, value is not None


config = Config()
