# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Catalog retrieval: rebuilds the list of remote media.

Two listing strategies are tried in order:

1. Tree scan - one recursive listing of the branch. Fast, but the response
   carries no file sizes.
2. Per-folder listing - one request per media folder. Used only when the
   tree request itself fails. A failing folder is skipped and the others
   still count.

Both are normalized into MediaRecord and sorted newest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Union

from .errors import CatalogUnavailable, MalformedPath, RemoteReadError
from .paths import (
    MEDIA_FOLDERS,
    MediaType,
    coerce_type,
    decode_path,
    display_name,
    folder_to_type,
    parse_timestamp,
)

if TYPE_CHECKING:
    from .client import FolderEntry, RemoteStore

logger = logging.getLogger(__name__)

FILTER_ALL = "all"

RAW_CONTENT_BASE = "https://raw.githubusercontent.com/"
WEB_BASE = "https://github.com/"


# --- Data Classes ---


@dataclass(frozen=True)
class MediaRecord:
    """A single media file in the remote catalog."""

    name: str
    path: str
    download_url: str
    html_url: str
    type: MediaType
    size: int = 0  # 0 when unknown
    created_at: int = 0  # epoch millis

    @property
    def display_name(self) -> str:
        return display_name(self.name)

    @property
    def created(self) -> datetime:
        return datetime.fromtimestamp(self.created_at / 1000, tz=timezone.utc)


class CatalogSource(Enum):
    """Which listing strategy produced a catalog."""

    TREE = "tree"
    FALLBACK = "fallback"
    PARTIAL_FALLBACK = "partial_fallback"


@dataclass
class CatalogResult:
    records: list[MediaRecord]
    source: CatalogSource
    failed_folders: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return self.source != CatalogSource.TREE


# --- Retrieval ---


def _join_url(base: str, *parts: str) -> str:
    return base.rstrip("/") + "/" + "/".join(p.strip("/") for p in parts)


def _scan_tree(
    store: RemoteStore,
    owner: str,
    repo: str,
    branch: str,
    raw_base: str,
    web_base: str,
) -> tuple[list[MediaRecord], list[str]]:
    records, skipped = [], []
    prefixes = tuple(f"{folder}/" for folder in MEDIA_FOLDERS)

    for entry in store.get_tree(owner, repo, branch, recursive=True):
        if entry.kind != "blob" or not entry.path.startswith(prefixes):
            continue
        try:
            decoded = decode_path(entry.path)
        except MalformedPath as e:
            logger.warning("Skipping %s", e)
            skipped.append(entry.path)
            continue
        records.append(
            MediaRecord(
                name=entry.path.split("/", 1)[1],
                path=entry.path,
                download_url=_join_url(raw_base, owner, repo, branch, entry.path),
                html_url=_join_url(web_base, owner, repo, "blob", branch, entry.path),
                type=decoded.type,
                size=0,
                created_at=decoded.created_at,
            )
        )
    return records, skipped


def _record_from_listing(folder: str, entry: FolderEntry) -> MediaRecord:
    return MediaRecord(
        name=entry.name,
        path=entry.path,
        download_url=entry.download_url,
        html_url=entry.html_url,
        type=folder_to_type(folder),
        size=entry.size,
        created_at=parse_timestamp(entry.name),
    )


def _list_folders(
    store: RemoteStore, owner: str, repo: str
) -> tuple[list[MediaRecord], list[str], list[str]]:
    records, failed, skipped = [], [], []

    for folder in MEDIA_FOLDERS:
        folder_records, folder_skipped = [], []
        try:
            for entry in store.list_folder(owner, repo, folder):
                if entry.kind != "file":
                    continue
                try:
                    folder_records.append(_record_from_listing(folder, entry))
                except MalformedPath as e:
                    logger.warning("Skipping %s", e)
                    folder_skipped.append(entry.path)
        except Exception as e:
            logger.warning("Could not list %s: %s", folder, e)
            failed.append(folder)
            continue
        records.extend(folder_records)
        skipped.extend(folder_skipped)
    return records, failed, skipped


def sort_records(records: Iterable[MediaRecord]) -> list[MediaRecord]:
    """Newest first; equal timestamps keep their input order."""
    return sorted(records, key=lambda r: r.created_at, reverse=True)


def fetch_catalog(
    store: RemoteStore,
    owner: str,
    repo: str,
    branch: str = "main",
    *,
    raw_base: str = RAW_CONTENT_BASE,
    web_base: str = WEB_BASE,
) -> CatalogResult:
    """
    Build the current catalog of remote media.

    Raises CatalogUnavailable when neither strategy produced anything usable.
    An empty catalog from a working strategy is returned normally.
    """
    try:
        records, skipped = _scan_tree(store, owner, repo, branch, raw_base, web_base)
    except RemoteReadError as e:
        logger.warning("Tree scan of %s/%s failed, listing folders: %s", owner, repo, e)
    else:
        logger.info("Catalog of %s/%s: %d records from tree", owner, repo, len(records))
        return CatalogResult(sort_records(records), CatalogSource.TREE, skipped=skipped)

    try:
        records, failed, skipped = _list_folders(store, owner, repo)
    except Exception as e:
        raise CatalogUnavailable(f"Could not list media in {owner}/{repo}: {e}") from e

    if len(failed) == len(MEDIA_FOLDERS):
        raise CatalogUnavailable(
            f"Could not list media in {owner}/{repo}", failed_folders=failed
        )

    source = CatalogSource.PARTIAL_FALLBACK if failed else CatalogSource.FALLBACK
    logger.info(
        "Catalog of %s/%s: %d records from %s", owner, repo, len(records), source.value
    )
    return CatalogResult(sort_records(records), source, failed, skipped)


# --- View State ---


class CatalogView:
    """The last fetched catalog plus type filtering. Never does I/O."""

    def __init__(self, records: Iterable[MediaRecord] = ()):
        self._records: tuple[MediaRecord, ...] = tuple(records)

    @property
    def records(self) -> list[MediaRecord]:
        return list(self._records)

    def set_catalog(self, records: Iterable[MediaRecord]):
        self._records = tuple(records)

    def clear(self):
        self._records = ()

    def filter(self, active: Union[MediaType, str] = FILTER_ALL) -> list[MediaRecord]:
        if active == FILTER_ALL:
            return list(self._records)
        media_type = coerce_type(active)
        return [r for r in self._records if r.type == media_type]

    def counts(self) -> dict[str, int]:
        """Number of records per filter key, including "all"."""
        out = {FILTER_ALL: len(self._records)}
        for t in MediaType:
            out[t.value] = sum(1 for r in self._records if r.type == t)
        return out

    def __len__(self) -> int:
        return len(self._records)


def format_file_size(size: int) -> str:
    """Human readable size: 0 Bytes, 512 Bytes, 1.5 KB, 2 MB..."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    value = float(size)
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    number = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{number} {units[i]}"

