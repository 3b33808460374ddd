# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Batch upload of local files into the gallery repository.

Files are written one at a time through the content API. The batch is
validated up front and stops at the first failed write.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Union

from .errors import FileTooLarge, RemoteWriteError, UploadAborted
from .paths import Clock, MediaType, coerce_type, encode_path

if TYPE_CHECKING:
    from .client import RemoteStore

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 25 * 1024 * 1024  # 25 MiB


# --- Data Classes ---


@dataclass
class LocalFile:
    """A file selected for upload, either on disk or already in memory."""

    name: str
    size: int
    path: Optional[Path] = None
    data: Optional[bytes] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], name: Optional[str] = None) -> LocalFile:
        path = Path(path)
        return cls(name=name or path.name, size=path.stat().st_size, path=path)

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> LocalFile:
        return cls(name=name, size=len(data), data=data)

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"{self.name} has neither a path nor data")
        return self.path.read_bytes()


class UploadStage(Enum):
    FILE = "file"
    COMPLETE = "complete"


@dataclass
class UploadProgress:
    """Progress event. FILE is sent before each transfer, COMPLETE once at the end."""

    stage: UploadStage
    index: int
    total: int
    filename: str = ""

    @property
    def percent(self) -> float:
        if self.stage == UploadStage.COMPLETE or not self.total:
            return 100.0
        return 100.0 * (self.index - 1) / self.total


@dataclass
class UploadOutput:
    """Result of a finished batch."""

    paths: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.paths)


# --- Pipeline ---


def commit_message(filename: str) -> str:
    return f"Add {filename} to media gallery"


def check_sizes(files: Sequence[LocalFile], limit: int = MAX_UPLOAD_BYTES):
    """Reject the batch if any file is over the size limit or has no content source."""
    for f in files:
        if f.data is None and f.path is None:
            raise ValueError(f"{f.name} has neither a path nor data")
        if f.size > limit:
            raise FileTooLarge(f.name, f.size, limit)


def upload_files(
    store: RemoteStore,
    owner: str,
    repo: str,
    files: Sequence[LocalFile],
    media_type: Union[MediaType, str],
    progress: Optional[Callable[[UploadProgress], None]] = None,
    clock: Optional[Clock] = None,
) -> UploadOutput:
    """
    Upload files into the folder for media_type, in order.

    Raises FileTooLarge before any write if a file is over the limit, and
    UploadAborted on the first write that fails. Files written before the
    failure stay in the repository.
    """
    media_type = coerce_type(media_type)
    files = list(files)
    check_sizes(files)

    clock = clock or Clock()
    total = len(files)
    out = UploadOutput()
    if not files:
        return out

    for idx, f in enumerate(files, 1):
        if progress:
            progress(UploadProgress(UploadStage.FILE, idx, total, f.name))
        logger.info("Uploading %d/%d: %s", idx, total, f.name)

        dest = encode_path(media_type, f.name, clock.now_ms())
        try:
            content = base64.b64encode(f.read_bytes()).decode("ascii")
            result = store.put_file(owner, repo, dest, content, commit_message(f.name))
        except (RemoteWriteError, OSError) as e:
            message = e.message if isinstance(e, RemoteWriteError) else str(e)
            logger.warning("Upload stopped at %s: %s", f.name, message)
            raise UploadAborted(f.name, message, out.paths) from e
        out.paths.append(result.path)

    if progress:
        progress(UploadProgress(UploadStage.COMPLETE, total, total))
    logger.info("Uploaded %d file(s) to %s/%s", total, owner, repo)
    return out
