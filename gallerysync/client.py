# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Remote store client and gallery session."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union
from urllib.parse import quote

import requests

from .catalog import (
    RAW_CONTENT_BASE,
    WEB_BASE,
    CatalogResult,
    CatalogView,
    MediaRecord,
    fetch_catalog,
)
from .errors import (
    CatalogUnavailable,
    InvalidCredential,
    RemoteReadError,
    RemoteStoreError,
    RemoteWriteError,
)
from .paths import Clock, MediaType
from .upload import LocalFile, UploadOutput, UploadProgress, upload_files

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.github.com/"
REPO_NAME = "github-media-gallery"
REPO_DESCRIPTION = "Repository for storing media from GitHub Media Gallery"
DEFAULT_BRANCH = "main"
ACCEPT_HEADER = "application/vnd.github.v3+json"

# raised when a 2xx body does not have the documented shape
_SHAPE_ERRORS = (KeyError, TypeError, AttributeError)


# --- Data Classes ---


@dataclass
class GalleryAuth:
    """Credentials for the remote store."""

    username: str = ""
    token: str = ""
    endpoint: Optional[str] = None
    io_timeout_secs: int = 30
    # set by login when the repository is created
    default_branch: Optional[str] = None

    @classmethod
    def with_endpoint(
        cls, endpoint: str, username: str = "", token: str = "", io_timeout_secs: int = 30
    ) -> GalleryAuth:
        if endpoint and not endpoint.endswith("/"):
            endpoint += "/"
        return cls(
            username=username,
            token=token,
            endpoint=endpoint,
            io_timeout_secs=io_timeout_secs,
        )

    @classmethod
    def from_env(cls) -> GalleryAuth:
        """Build credentials from GALLERY_USERNAME, GALLERY_TOKEN,
        GALLERY_ENDPOINT and GALLERY_TIMEOUT."""
        return cls.with_endpoint(
            os.getenv("GALLERY_ENDPOINT", DEFAULT_ENDPOINT),
            username=os.getenv("GALLERY_USERNAME", ""),
            token=os.getenv("GALLERY_TOKEN", ""),
            io_timeout_secs=int(os.getenv("GALLERY_TIMEOUT", "30")),
        )


@dataclass
class GalleryConfig:
    """Where the gallery lives inside the user's account."""

    repo_name: str = REPO_NAME
    repo_description: str = REPO_DESCRIPTION
    branch: Optional[str] = None  # None: the repository default, else "main"
    raw_base: str = RAW_CONTENT_BASE
    web_base: str = WEB_BASE


@dataclass
class Identity:
    login: str
    display_name: str
    avatar_url: str = ""


@dataclass
class RepoInfo:
    owner: str
    name: str
    default_branch: str = DEFAULT_BRANCH
    html_url: str = ""


@dataclass
class TreeEntry:
    path: str
    kind: str  # "blob" or "tree"


@dataclass
class FolderEntry:
    name: str
    path: str
    download_url: str
    html_url: str
    size: int
    kind: str  # "file" or "dir"


@dataclass
class PutResult:
    path: str
    sha: str = ""


# --- Remote Store Interface ---


class RemoteStore(ABC):
    """Operations the sync engine needs from the content-hosting service."""

    @abstractmethod
    def get_identity(self) -> Identity: ...
    @abstractmethod
    def repository_exists(self, owner: str, name: str) -> bool: ...
    @abstractmethod
    def create_repository(self, name: str, description: str) -> RepoInfo: ...
    @abstractmethod
    def get_tree(
        self, owner: str, repo: str, branch: str, recursive: bool = True
    ) -> list[TreeEntry]: ...
    @abstractmethod
    def list_folder(self, owner: str, repo: str, path: str) -> list[FolderEntry]: ...
    @abstractmethod
    def put_file(
        self, owner: str, repo: str, path: str, content_b64: str, message: str
    ) -> PutResult: ...

    def close(self):
        pass


# --- HTTP Client ---


def _api_message(resp: Any, default: str) -> str:
    """Pull the ``message`` field out of an API error response."""
    try:
        data = resp.json()
    except ValueError:
        return default
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return default


class HttpRemoteStore(RemoteStore):
    """GitHub REST v3 implementation of RemoteStore."""

    def __init__(self, auth: GalleryAuth, session: Optional[requests.Session] = None):
        self.token = auth.token
        self.endpoint = auth.endpoint or DEFAULT_ENDPOINT
        self.io_timeout = auth.io_timeout_secs
        self._session = session
        self._owns_session = session is None

    def close(self):
        if self._owns_session and self._session:
            self._session.close()
            self._session = None

    def _request(
        self,
        method: str,
        path: str,
        *,
        error: type[RemoteStoreError] = RemoteReadError,
        params: Optional[dict] = None,
        payload: Any = None,
    ) -> Any:
        if self._session is None:
            self._session = requests.Session()

        headers = {"Accept": ACCEPT_HEADER}
        if self.token:
            headers["Authorization"] = f"token {self.token}"

        url = f"{self.endpoint.rstrip('/')}/{path.lstrip('/')}"
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=headers,
                timeout=self.io_timeout,
            )
        except requests.RequestException as e:
            raise error(f"{method} {path} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise error(
                _api_message(resp, f"{method} {path} failed"), resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise error(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _repo_path(owner: str, repo: str, *rest: str) -> str:
        tail = "/".join(quote(part, safe="/") for part in rest)
        return f"repos/{quote(owner)}/{quote(repo)}/{tail}".rstrip("/")

    # Protocol methods
    def get_identity(self) -> Identity:
        try:
            data = self._request("GET", "user")
        except RemoteReadError as e:
            if e.status is None:
                raise
            raise InvalidCredential(
                "Token is invalid or lacks the required permissions"
            ) from e
        try:
            return Identity(
                login=data["login"],
                display_name=data.get("name") or data["login"],
                avatar_url=data.get("avatar_url") or "",
            )
        except _SHAPE_ERRORS as e:
            raise RemoteReadError("Unexpected user response") from e

    def repository_exists(self, owner: str, name: str) -> bool:
        try:
            self._request("GET", self._repo_path(owner, name))
        except RemoteReadError as e:
            logger.debug("Repository %s/%s not reachable: %s", owner, name, e)
            return False
        return True

    def create_repository(self, name: str, description: str) -> RepoInfo:
        data = self._request(
            "POST",
            "user/repos",
            error=RemoteWriteError,
            payload={
                "name": name,
                "description": description,
                "auto_init": True,
                "private": False,
            },
        )
        return RepoInfo(
            owner=data.get("owner", {}).get("login", ""),
            name=data.get("name", name),
            default_branch=data.get("default_branch") or DEFAULT_BRANCH,
            html_url=data.get("html_url", ""),
        )

    def get_tree(
        self, owner: str, repo: str, branch: str, recursive: bool = True
    ) -> list[TreeEntry]:
        data = self._request(
            "GET",
            self._repo_path(owner, repo, "git/trees", branch),
            params={"recursive": "1"} if recursive else None,
        )
        if not isinstance(data, dict) or not isinstance(data.get("tree"), list):
            raise RemoteReadError(f"Unexpected tree response for {owner}/{repo}")
        if data.get("truncated"):
            logger.warning("Tree listing for %s/%s is truncated", owner, repo)
        try:
            return [
                TreeEntry(path=t["path"], kind=t.get("type", "")) for t in data["tree"]
            ]
        except _SHAPE_ERRORS as e:
            raise RemoteReadError(f"Unexpected tree entry for {owner}/{repo}") from e

    def list_folder(self, owner: str, repo: str, path: str) -> list[FolderEntry]:
        data = self._request("GET", self._repo_path(owner, repo, "contents", path))
        if not isinstance(data, list):
            raise RemoteReadError(f"{path} is not a directory")
        try:
            return [
                FolderEntry(
                    name=item["name"],
                    path=item["path"],
                    download_url=item.get("download_url") or "",
                    html_url=item.get("html_url") or "",
                    size=item.get("size") or 0,
                    kind=item.get("type", ""),
                )
                for item in data
            ]
        except _SHAPE_ERRORS as e:
            raise RemoteReadError(f"Unexpected listing entry in {path}") from e

    def put_file(
        self, owner: str, repo: str, path: str, content_b64: str, message: str
    ) -> PutResult:
        data = self._request(
            "PUT",
            self._repo_path(owner, repo, "contents", path),
            error=RemoteWriteError,
            payload={"message": message, "content": content_b64},
        )
        content = (data or {}).get("content") or {}
        return PutResult(path=content.get("path", path), sha=content.get("sha", ""))


# --- Gallery Client ---


def _verify_identity(store: RemoteStore, username: str) -> Identity:
    identity = store.get_identity()
    if identity.login.lower() != username.lower():
        raise InvalidCredential("Username does not match the token")
    return identity


class GalleryClient:
    """
    A logged-in gallery session.

    Usage:
        auth = GalleryClient.login("octocat", token)
        with GalleryClient(auth) as gallery:
            gallery.upload([LocalFile.from_path("cat.png")], "image")
            result = gallery.refresh()
            videos = gallery.filter("video")
    """

    def __init__(
        self,
        auth: GalleryAuth,
        config: Optional[GalleryConfig] = None,
        store: Optional[RemoteStore] = None,
        session: Optional[requests.Session] = None,
    ):
        self.auth = auth
        self.config = config or GalleryConfig()
        self.store = store or HttpRemoteStore(auth, session)
        self.view = CatalogView()
        self._identity: Optional[Identity] = None
        self._clock = Clock()

    def __enter__(self) -> GalleryClient:
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.view.clear()
        self.store.close()

    logout = close

    @property
    def owner(self) -> str:
        return self.auth.username

    @property
    def branch(self) -> str:
        return self.config.branch or self.auth.default_branch or DEFAULT_BRANCH

    @property
    def identity(self) -> Identity:
        if self._identity is None:
            self._identity = self.store.get_identity()
        return self._identity

    @classmethod
    def login(
        cls,
        username: str,
        token: str,
        endpoint: Optional[str] = None,
        config: Optional[GalleryConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> GalleryAuth:
        """Verify the token and make sure the gallery repository exists."""
        return cls._open(username, token, endpoint, config, session, always_create=False)

    @classmethod
    def register(
        cls,
        username: str,
        token: str,
        endpoint: Optional[str] = None,
        config: Optional[GalleryConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> GalleryAuth:
        """Verify the token and create the gallery repository."""
        return cls._open(username, token, endpoint, config, session, always_create=True)

    @classmethod
    def _open(
        cls,
        username: str,
        token: str,
        endpoint: Optional[str],
        config: Optional[GalleryConfig],
        session: Optional[requests.Session],
        always_create: bool,
    ) -> GalleryAuth:
        config = config or GalleryConfig()
        auth = GalleryAuth.with_endpoint(
            endpoint or DEFAULT_ENDPOINT, username=username, token=token
        )
        store = HttpRemoteStore(auth, session)
        try:
            identity = _verify_identity(store, username)
            auth.username = identity.login
            if always_create or not store.repository_exists(
                identity.login, config.repo_name
            ):
                logger.info("Creating repository %s/%s", identity.login, config.repo_name)
                info = store.create_repository(config.repo_name, config.repo_description)
                auth.default_branch = info.default_branch
            return auth
        finally:
            store.close()

    def upload(
        self,
        files: Sequence[LocalFile],
        media_type: Union[MediaType, str],
        progress: Optional[Callable[[UploadProgress], None]] = None,
    ) -> UploadOutput:
        return upload_files(
            self.store,
            self.owner,
            self.config.repo_name,
            files,
            media_type,
            progress=progress,
            clock=self._clock,
        )

    def refresh(self) -> CatalogResult:
        """Fetch the remote catalog and make it the current view."""
        try:
            result = fetch_catalog(
                self.store,
                self.owner,
                self.config.repo_name,
                self.branch,
                raw_base=self.config.raw_base,
                web_base=self.config.web_base,
            )
        except CatalogUnavailable:
            self.view.clear()
            raise
        self.view.set_catalog(result.records)
        return result

    def filter(self, active: Union[MediaType, str] = "all") -> list[MediaRecord]:
        return self.view.filter(active)
