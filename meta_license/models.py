from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .config import DefaultMetadata

UNKNOWN_MIME_TYPE = "application/octet-stream"


class DateFormat(str, Enum):
    YMD = "yyyy-m-d"
    MYD = "m-yyyy-d"
    DMY = "d-m-yyyy"
    LOCALE = "locale"

    @classmethod
    def coerce(cls, value: object) -> "DateFormat":
        if isinstance(value, DateFormat):
            return value
        if isinstance(value, str):
            cleaned = value.strip().lower()
            for member in cls:
                if member.value == cleaned:
                    return member
        return cls.LOCALE


@dataclass(frozen=True, slots=True)
class FileInput:
    """A file handed in for packaging.

    The extension of ``name`` selects the embedder and the MIME type passed
    to it; ``declared_mime_type`` is what the caller reported and is only
    logged when the two disagree.
    """

    name: str
    content: bytes
    declared_mime_type: str = UNKNOWN_MIME_TYPE

    @classmethod
    def from_path(cls, path: Path) -> "FileInput":
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content=path.read_bytes(),
            declared_mime_type=guessed or UNKNOWN_MIME_TYPE,
        )


@dataclass(slots=True)
class MetadataProfile:
    title: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    institution: str = ""
    website: str = ""
    contact: str = ""
    source: str = ""
    date_format: DateFormat = DateFormat.YMD
    license_template: str = ""

    def __post_init__(self) -> None:
        self.date_format = DateFormat.coerce(self.date_format)
        self.authors = [a.strip() for a in self.authors if a and a.strip()]

    def copy(self) -> "MetadataProfile":
        return replace(self, authors=list(self.authors))

    def joined_authors(self) -> str:
        return ", ".join(self.authors)


@dataclass(frozen=True, slots=True)
class PackagedDownload:
    processed_bytes: bytes
    license_text: str
    archive_name: str
    archive_bytes: bytes
    embedded: bool = False


@dataclass(slots=True)
class PackageOutcome:
    file_name: str
    download: Optional[PackagedDownload] = None
    error: Optional["PackagingError"] = None

    @property
    def ok(self) -> bool:
        return self.download is not None


class MetaLicenseError(Exception):
    """Base class for errors raised by the packaging pipeline."""


class EmbedError(MetaLicenseError):
    """Raised when metadata cannot be written into a file's native format."""


class PackagingError(MetaLicenseError):
    """Raised when the download archive itself cannot be assembled."""


@dataclass(frozen=True, slots=True)
class TagValues:
    """Resolved title/artist/album values written into a file's native tags."""

    title: str
    artist: str
    album: str

    @classmethod
    def from_profile(cls, metadata: MetadataProfile, defaults: "DefaultMetadata") -> "TagValues":
        return cls(
            title=(metadata.title or "").strip() or defaults.title,
            artist=metadata.joined_authors() or ", ".join(defaults.authors),
            album=metadata.source.strip() or defaults.source,
        )
