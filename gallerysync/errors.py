# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Exceptions raised by the gallery sync engine."""

from __future__ import annotations

from typing import Optional, Sequence


class GalleryError(Exception):
    pass


class InvalidCredential(GalleryError):
    pass


class RemoteStoreError(GalleryError):
    def __init__(self, message: str, status: Optional[int] = None):
        self.message, self.status = message, status
        super().__init__(f"{message} (HTTP {status})" if status else message)


class RemoteReadError(RemoteStoreError):
    pass


class RemoteWriteError(RemoteStoreError):
    pass


class MalformedPath(GalleryError):
    def __init__(self, path: str, reason: str):
        self.path, self.reason = path, reason
        super().__init__(f"Malformed media path {path!r}: {reason}")


class FileTooLarge(GalleryError):
    def __init__(self, filename: str, size: int, limit: int):
        self.filename, self.size, self.limit = filename, size, limit
        super().__init__(
            f"File {filename} is too large ({size} bytes, limit {limit} bytes)"
        )


class CatalogUnavailable(GalleryError):
    def __init__(self, message: str, failed_folders: Sequence[str] = ()):
        self.failed_folders = list(failed_folders)
        super().__init__(message)


class UploadAborted(GalleryError):
    def __init__(self, filename: str, message: str, uploaded: Sequence[str] = ()):
        self.filename, self.message = filename, message
        self.uploaded = list(uploaded)
        super().__init__(f"Upload of {filename} failed: {message}")
