from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .models import UNKNOWN_MIME_TYPE


class EmbedKind(str, Enum):
    NONE = "none"
    AUDIO = "audio"
    DOCUMENT = "document"


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    mime_type: str
    embed_kind: EmbedKind = EmbedKind.NONE

    @property
    def embeddable(self) -> bool:
        return self.embed_kind is not EmbedKind.NONE


PASS_THROUGH = TypeDescriptor(UNKNOWN_MIME_TYPE, EmbedKind.NONE)

SUPPORTED_TYPES: Mapping[str, TypeDescriptor] = MappingProxyType(
    {
        "wav": TypeDescriptor("audio/wav", EmbedKind.AUDIO),
        "mp3": TypeDescriptor("audio/mpeg", EmbedKind.AUDIO),
        "ogg": TypeDescriptor("audio/ogg", EmbedKind.AUDIO),
        "flac": TypeDescriptor("audio/flac", EmbedKind.AUDIO),
        "mp4": TypeDescriptor("video/mp4"),
        "webm": TypeDescriptor("video/webm"),
        "jpg": TypeDescriptor("image/jpeg"),
        "jpeg": TypeDescriptor("image/jpeg"),
        "png": TypeDescriptor("image/png"),
        "gif": TypeDescriptor("image/gif"),
        "webp": TypeDescriptor("image/webp"),
        "pdf": TypeDescriptor("application/pdf", EmbedKind.DOCUMENT),
    }
)


def extension_of(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def resolve(filename: str) -> TypeDescriptor:
    """Map a file name to its MIME type and embed capability.

    Unknown or missing extensions resolve to a pass-through descriptor.
    """
    return SUPPORTED_TYPES.get(extension_of(filename), PASS_THROUGH)


def supported_extensions() -> list[str]:
    return list(SUPPORTED_TYPES)
