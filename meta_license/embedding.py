from __future__ import annotations

from typing import Dict, Protocol

from .config import DEFAULT_METADATA, DefaultMetadata
from .documents import PdfPropertyWriter
from .models import MetadataProfile
from .tagging import AudioTagWriter
from .type_resolver import EmbedKind


class Embedder(Protocol):
    def embed(self, data: bytes, mime_type: str, metadata: MetadataProfile) -> bytes: ...


class NoEmbed:
    """Pass-through for types whose native metadata is not rewritten."""

    def embed(self, data: bytes, mime_type: str, metadata: MetadataProfile) -> bytes:
        return data


def build_embedders(defaults: DefaultMetadata = DEFAULT_METADATA) -> Dict[EmbedKind, Embedder]:
    return {
        EmbedKind.NONE: NoEmbed(),
        EmbedKind.AUDIO: AudioTagWriter(defaults),
        EmbedKind.DOCUMENT: PdfPropertyWriter(defaults),
    }
