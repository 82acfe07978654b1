"""Shared fixtures for getrules tests."""

from contextlib import contextmanager
from pathlib import Path

import pytest

from getrules.models import EntryKind, RemoteEntry
from getrules.output import OutputFormatter

ENV_VARS = (
    "GETRULES_REPO",
    "GETRULES_PATH",
    "GETRULES_API_URL",
    "GETRULES_USER_AGENT",
    "GETRULES_TIMEOUT",
    "GETRULES_SUFFIXES",
)


class FailingDir:
    """Directory whose listing raises ``error``."""

    def __init__(self, error: Exception):
        self.error = error


class FakeProvider:
    """In-memory content provider built from a nested dict.

    Keys are entry names; dict values are directories, bytes values are
    files and FailingDir values are directories that cannot be listed. A
    file value may also be an exception (raised when the file is opened)
    or a list of chunks in which an exception is raised when the stream
    reaches it.
    """

    def __init__(self, tree: dict):
        self.listings: dict = {}
        self.contents: dict = {}
        self.calls: list[tuple[str, str]] = []
        self.root_ref = self._register("", tree)

    def _register(self, path: str, node) -> str:
        ref = f"list:{path or '/'}"
        if isinstance(node, FailingDir):
            self.listings[ref] = node.error
            return ref

        entries = []
        for name, child in node.items():
            child_path = f"{path}/{name}" if path else name
            if isinstance(child, (dict, FailingDir)):
                entries.append(
                    RemoteEntry(
                        name=name,
                        kind=EntryKind.DIRECTORY,
                        child_listing_ref=self._register(child_path, child),
                    )
                )
            else:
                content_ref = f"content:{child_path}"
                self.contents[content_ref] = child
                entries.append(
                    RemoteEntry(name=name, kind=EntryKind.FILE, content_ref=content_ref)
                )
        self.listings[ref] = entries
        return ref

    def list_directory(self, ref: str) -> list[RemoteEntry]:
        self.calls.append(("list", ref))
        result = self.listings[ref]
        if isinstance(result, Exception):
            raise result
        return list(result)

    @contextmanager
    def open_content(self, ref: str):
        self.calls.append(("fetch", ref))
        result = self.contents[ref]
        if isinstance(result, Exception):
            raise result
        if isinstance(result, bytes):
            chunks = [result[i : i + 4] for i in range(0, len(result), 4)]
        else:
            chunks = result
        yield self._iterate(chunks)

    @staticmethod
    def _iterate(chunks):
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk


@pytest.fixture
def quiet_output():
    """Output formatter that prints nothing."""
    return OutputFormatter(quiet=True)


@pytest.fixture
def displaced_dir(tmp_path: Path) -> Path:
    """Directory receiving displaced files instead of the system temp dir."""
    path = tmp_path / "displaced"
    path.mkdir()
    return path


@pytest.fixture
def clean_env(monkeypatch):
    """Remove getrules environment overrides."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_provider():
    """Factory building a FakeProvider from a nested dict."""
    return FakeProvider


@pytest.fixture
def failing_dir():
    """Factory for directories whose listing fails."""
    return FailingDir
