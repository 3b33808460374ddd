# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Storage path convention shared by the uploader and the catalog reader.

Every media file lives at ``{folder}/{epoch_millis}_{original_name}``, where
``folder`` is one of ``images``, ``videos`` or ``audio``. The type and the
creation time of a media item are recovered from the path alone.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .errors import MalformedPath


class MediaType(Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


# audio is stored under "audio/", not "audios/"
_TYPE_TO_FOLDER = {
    MediaType.IMAGE: "images",
    MediaType.VIDEO: "videos",
    MediaType.AUDIO: "audio",
}
_FOLDER_TO_TYPE = {folder: t for t, folder in _TYPE_TO_FOLDER.items()}

MEDIA_FOLDERS = tuple(_TYPE_TO_FOLDER.values())


@dataclass(frozen=True)
class DecodedPath:
    """Fields recovered from a storage path."""

    type: MediaType
    created_at: int
    display_name: str


def coerce_type(value: Union[MediaType, str]) -> MediaType:
    """Accept a MediaType or its string value ("image", "video", "audio")."""
    if isinstance(value, MediaType):
        return value
    try:
        return MediaType(value)
    except ValueError:
        raise ValueError(f"Unknown media type: {value!r}") from None


def type_to_folder(media_type: Union[MediaType, str]) -> str:
    return _TYPE_TO_FOLDER[coerce_type(media_type)]


def folder_to_type(folder: str) -> MediaType:
    """Map a top-level folder name to its media type.

    Raises MalformedPath for anything outside the three known folders.
    """
    try:
        return _FOLDER_TO_TYPE[folder]
    except KeyError:
        raise MalformedPath(folder, f"unknown media folder {folder!r}") from None


def parse_timestamp(filename: str) -> int:
    """Parse the epoch-millis prefix of a stored filename.

    The prefix is the first ``_``-delimited token and must be a non-negative
    integer.
    """
    head, sep, _ = filename.partition("_")
    if not sep:
        raise MalformedPath(filename, "missing timestamp separator")
    if not head.isdecimal():
        raise MalformedPath(filename, f"timestamp {head!r} is not an integer")
    return int(head)


def encode_path(media_type: Union[MediaType, str], filename: str, now: int) -> str:
    """Build the storage path for a file uploaded at ``now`` (epoch millis)."""
    if not filename:
        raise ValueError("filename must not be empty")
    return f"{type_to_folder(media_type)}/{int(now)}_{filename}"


def decode_path(path: str) -> DecodedPath:
    """Recover type, creation time and display name from a storage path."""
    parts = path.split("/")
    if len(parts) != 2 or not parts[1]:
        raise MalformedPath(path, "expected '{folder}/{timestamp}_{name}'")
    folder, filename = parts
    if folder not in _FOLDER_TO_TYPE:
        raise MalformedPath(path, f"unknown media folder {folder!r}")
    try:
        created_at = parse_timestamp(filename)
    except MalformedPath as e:
        raise MalformedPath(path, e.reason) from None
    name = filename.split("_", 1)[1]
    if not name:
        raise MalformedPath(path, "missing original filename")
    return DecodedPath(
        type=_FOLDER_TO_TYPE[folder], created_at=created_at, display_name=name
    )


def display_name(filename: str) -> str:
    """Strip the ``{timestamp}_`` prefix from a stored filename, if present."""
    _, sep, rest = filename.partition("_")
    return rest if sep else filename


class Clock:
    """Millisecond clock that never goes backwards within one process."""

    def __init__(self, source: Optional[Callable[[], float]] = None):
        self._source = source or time.time
        self._last = 0

    def now_ms(self) -> int:
        now = int(self._source() * 1000)
        self._last = max(self._last, now)
        return self._last
