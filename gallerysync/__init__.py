# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Gallery Sync - keep images, videos and audio in a GitHub repository.

Usage:
    from gallerysync import GalleryClient, LocalFile

    # Login (creates the gallery repository on first use)
    auth = GalleryClient.login("octocat", token)
    gallery = GalleryClient(auth)

    # Upload a batch
    gallery.upload([LocalFile.from_path("cat.png")], "image", progress=print)

    # Browse
    result = gallery.refresh()
    if result.used_fallback:
        print("tree listing unavailable, folders missing:", result.failed_folders)
    for record in gallery.filter("image"):
        print(record.display_name, record.download_url)

    gallery.logout()
"""

from .catalog import (
    FILTER_ALL,
    CatalogResult,
    CatalogSource,
    CatalogView,
    MediaRecord,
    fetch_catalog,
    format_file_size,
    sort_records,
)
from .client import (
    # Auth & Config
    DEFAULT_ENDPOINT,
    REPO_NAME,
    GalleryAuth,
    GalleryConfig,
    # Remote store
    FolderEntry,
    HttpRemoteStore,
    Identity,
    PutResult,
    RemoteStore,
    RepoInfo,
    TreeEntry,
    # Session
    GalleryClient,
)
from .errors import (
    CatalogUnavailable,
    FileTooLarge,
    GalleryError,
    InvalidCredential,
    MalformedPath,
    RemoteReadError,
    RemoteStoreError,
    RemoteWriteError,
    UploadAborted,
)
from .paths import (
    MEDIA_FOLDERS,
    Clock,
    DecodedPath,
    MediaType,
    decode_path,
    encode_path,
    folder_to_type,
    parse_timestamp,
    type_to_folder,
)
from .upload import (
    MAX_UPLOAD_BYTES,
    LocalFile,
    UploadOutput,
    UploadProgress,
    UploadStage,
    upload_files,
)

__all__ = [
    "DEFAULT_ENDPOINT",
    "REPO_NAME",
    "GalleryAuth",
    "GalleryConfig",
    "FolderEntry",
    "HttpRemoteStore",
    "Identity",
    "PutResult",
    "RemoteStore",
    "RepoInfo",
    "TreeEntry",
    "GalleryClient",
    "FILTER_ALL",
    "CatalogResult",
    "CatalogSource",
    "CatalogView",
    "MediaRecord",
    "fetch_catalog",
    "format_file_size",
    "sort_records",
    "MEDIA_FOLDERS",
    "Clock",
    "DecodedPath",
    "MediaType",
    "decode_path",
    "encode_path",
    "folder_to_type",
    "parse_timestamp",
    "type_to_folder",
    "MAX_UPLOAD_BYTES",
    "LocalFile",
    "UploadOutput",
    "UploadProgress",
    "UploadStage",
    "upload_files",
    "GalleryError",
    "InvalidCredential",
    "RemoteStoreError",
    "RemoteReadError",
    "RemoteWriteError",
    "MalformedPath",
    "FileTooLarge",
    "CatalogUnavailable",
    "UploadAborted",
]

__version__ = "1.0.0"
