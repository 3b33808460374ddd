# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Shared test utilities: an in-memory remote store and a fake HTTP session.

Usage: pytest gallerysync/tests
"""

import os
from typing import Any, Optional

import pytest
import requests

from .. import (
    FolderEntry,
    GalleryAuth,
    Identity,
    LocalFile,
    PutResult,
    RemoteReadError,
    RemoteStore,
    RemoteWriteError,
    RepoInfo,
    TreeEntry,
)

# Configuration (can be overridden via environment variables)
ENDPOINT = os.getenv("GALLERY_TEST_ENDPOINT", "https://api.test/")
USERNAME = os.getenv("GALLERY_TEST_USERNAME", "octocat")
TOKEN = os.getenv("GALLERY_TEST_TOKEN", "ghp_test")
REPO = "github-media-gallery"


def tree_entry(path: str, kind: str = "blob") -> TreeEntry:
    return TreeEntry(path=path, kind=kind)


def folder_entry(path: str, size: int = 10, kind: str = "file") -> FolderEntry:
    name = path.rsplit("/", 1)[-1]
    return FolderEntry(
        name=name,
        path=path,
        download_url=f"https://download.test/{path}",
        html_url=f"https://html.test/{path}",
        size=size,
        kind=kind,
    )


def local_file(name: str, size: int = 4) -> LocalFile:
    return LocalFile(name=name, size=size, data=b"x" * min(size, 16))


class FakeStore(RemoteStore):
    """
    In-memory RemoteStore.

    tree / folders values may be an exception instance, which is raised
    when the listing is requested.
    """

    def __init__(
        self,
        tree: Any = (),
        folders: Optional[dict] = None,
        fail_put_at: Optional[int] = None,
        login: str = USERNAME,
    ):
        self.tree = tree
        self.folders = folders or {}
        self.fail_put_at = fail_put_at
        self.login = login
        self.calls: list[tuple] = []
        self.puts: list[tuple[str, str, str]] = []
        self.closed = False

    def get_identity(self) -> Identity:
        self.calls.append(("get_identity",))
        return Identity(login=self.login, display_name=self.login.title())

    def repository_exists(self, owner: str, name: str) -> bool:
        self.calls.append(("repository_exists", owner, name))
        return True

    def create_repository(self, name: str, description: str) -> RepoInfo:
        self.calls.append(("create_repository", name))
        return RepoInfo(owner=self.login, name=name)

    def get_tree(self, owner, repo, branch, recursive=True) -> list[TreeEntry]:
        self.calls.append(("get_tree", owner, repo, branch))
        if isinstance(self.tree, Exception):
            raise self.tree
        return list(self.tree)

    def list_folder(self, owner, repo, path) -> list[FolderEntry]:
        self.calls.append(("list_folder", path))
        entries = self.folders.get(path, [])
        if isinstance(entries, Exception):
            raise entries
        return list(entries)

    def put_file(self, owner, repo, path, content_b64, message) -> PutResult:
        self.calls.append(("put_file", path))
        if self.fail_put_at is not None and len(self.puts) + 1 == self.fail_put_at:
            raise RemoteWriteError("Invalid request.", 422)
        self.puts.append((path, content_b64, message))
        return PutResult(path=path)

    def close(self):
        self.closed = True

    def called(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


def read_error(message: str = "Not Found", status: int = 404) -> RemoteReadError:
    return RemoteReadError(message, status)


# --- Fake HTTP ---


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    """
    Stands in for requests.Session.

    routes maps (METHOD, path) to (status, body) or to an exception instance.
    Paths are relative to ENDPOINT.
    """

    def __init__(self, routes: Optional[dict] = None):
        self.routes = routes or {}
        self.requests: list[dict] = []
        self.closed = False

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = url[len(ENDPOINT.rstrip("/")) + 1 :]
        self.requests.append(
            {
                "method": method,
                "path": path,
                "params": params,
                "json": json,
                "headers": headers,
                "timeout": timeout,
            }
        )
        route = self.routes.get((method, path))
        if route is None:
            return FakeResponse(404, {"message": "Not Found"})
        if isinstance(route, Exception):
            raise route
        status, body = route
        return FakeResponse(status, body)

    def close(self):
        self.closed = True


def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection refused")


@pytest.fixture
def auth() -> GalleryAuth:
    return GalleryAuth.with_endpoint(ENDPOINT, username=USERNAME, token=TOKEN)
