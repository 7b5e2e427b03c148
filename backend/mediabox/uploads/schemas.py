"""Data models for media uploads.

This module defines the types that flow through an upload:
- MediaCategory: Enum for categorizing files (image, audio, video)
- UploadPolicy: Immutable size/type policy built from configuration
- IncomingFile / ClassifiedFile: One uploaded part before and after classification
- StoredFileRecord: Result of storing a file (or deferring its persistence)
- UploadedFile / UploadResponse / UploadInfo: JSON response bodies

Wire models use camelCase keys (``originalName``, ``fileType``...) while the
Python attributes stay snake_case.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MediaCategory(str, Enum):
    """Supported media categories.

    Declaration order is the classification order: when an extension is
    listed for more than one category, the first one wins.
    """
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"

    @property
    def directory(self) -> str:
        """Subdirectory (and URL segment) holding files of this category."""
        return _CATEGORY_DIRECTORIES[self]


_CATEGORY_DIRECTORIES = {
    MediaCategory.IMAGE: "images",
    MediaCategory.AUDIO: "audio",
    MediaCategory.VIDEO: "video",
}


class StorageBackend(str, Enum):
    """Where stored files end up.

    DISK writes files below the upload directory. BUFFER never touches the
    filesystem and returns the raw bytes to the caller instead.
    """
    DISK = "disk"
    BUFFER = "buffer"


@dataclass(frozen=True)
class UploadPolicy:
    """Size and type policy applied to every upload.

    Attributes:
        max_file_size: Largest accepted file, in bytes (inclusive).
        allowed_types: Lowercase extensions (no dot) allowed per category.
            Stored as a read-only mapping; it takes no part in hashing.
        upload_dir: Base directory for stored files.
        max_files: Largest number of files accepted in one batch.
    """
    max_file_size: int
    allowed_types: Mapping[MediaCategory, Tuple[str, ...]] = field(hash=False)
    upload_dir: Path
    max_files: int = 10

    def __post_init__(self):
        frozen_types = {category: tuple(exts) for category, exts in self.allowed_types.items()}
        object.__setattr__(self, "allowed_types", MappingProxyType(frozen_types))

    def extensions_for(self, category: MediaCategory) -> Tuple[str, ...]:
        return self.allowed_types.get(category, ())


@dataclass(frozen=True)
class IncomingFile:
    """One uploaded part as decoded from the multipart body.

    Exactly one of ``content`` (bytes held in memory) or ``staged_path``
    (bytes already written to a temporary file) is expected to be set.
    """
    original_name: str
    mime_type: str
    size_bytes: int
    content: Optional[bytes] = None
    staged_path: Optional[Path] = None

    def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.staged_path is not None:
            return Path(self.staged_path).read_bytes()
        return b""


@dataclass(frozen=True)
class ClassifiedFile:
    """An IncomingFile that passed validation, with its media category."""
    file: IncomingFile
    category: MediaCategory

    @property
    def original_name(self) -> str:
        return self.file.original_name

    @property
    def size_bytes(self) -> int:
        return self.file.size_bytes

    @property
    def mime_type(self) -> str:
        return self.file.mime_type


@dataclass
class StoredFileRecord:
    """Outcome of storing one file.

    ``path`` is None and ``persisted`` is False when the storage backend
    skipped writing; the raw bytes are then kept in ``buffer`` so another
    component can finish persisting them.
    """
    original_name: str
    filename: str
    file_type: MediaCategory
    size: int
    mimetype: str
    url: str
    path: Optional[Path] = None
    persisted: bool = True
    note: Optional[str] = None
    buffer: Optional[bytes] = field(default=None, repr=False)


@dataclass(frozen=True)
class FileInfo:
    """Filesystem stats for a stored file."""
    size: int
    created: datetime
    modified: datetime


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadedFile(_CamelModel):
    """A stored file as returned to the client."""
    original_name: str = Field(..., description="Original filename")
    filename: str = Field(..., description="Unique filename used for storage")
    file_type: MediaCategory = Field(..., description="Media category")
    size: int = Field(..., description="File size in bytes")
    mimetype: str = Field(..., description="Declared MIME type")
    path: Optional[str] = Field(None, description="Absolute path on disk, null when not persisted")
    url: str = Field(..., description="Absolute public URL")
    persisted: bool = Field(True, description="Whether the file was written to disk")
    note: Optional[str] = Field(None, description="Why persistence was skipped")
    size_formatted: str = Field(..., description="Human-readable size")


class UploadResponse(_CamelModel):
    """Response body of POST /api/upload/single."""
    success: bool = True
    message: str
    data: UploadedFile


class MultipleUploadResponse(_CamelModel):
    """Response body of POST /api/upload/multiple."""
    success: bool = True
    message: str
    data: List[UploadedFile]


class UploadInfo(_CamelModel):
    """Current upload policy, as exposed by GET /api/upload/info."""
    max_file_size: int
    max_file_size_formatted: str
    allowed_image_types: List[str]
    allowed_audio_types: List[str]
    allowed_video_types: List[str]


class UploadInfoResponse(_CamelModel):
    success: bool = True
    data: UploadInfo
