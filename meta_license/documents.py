"""PDF document-property writer backed by pikepdf."""

from __future__ import annotations

import io
import logging
from typing import Dict, Optional

import pikepdf  # type: ignore[import-untyped]

from .config import DEFAULT_METADATA, DefaultMetadata
from .models import EmbedError, MetadataProfile, TagValues

logger = logging.getLogger(__name__)

DOCINFO_KEYS = {
    "title": pikepdf.Name.Title,
    "author": pikepdf.Name.Author,
    "subject": pikepdf.Name.Subject,
}


class PdfPropertyWriter:
    def __init__(self, defaults: DefaultMetadata = DEFAULT_METADATA) -> None:
        self.defaults = defaults

    def embed(self, data: bytes, mime_type: str, metadata: MetadataProfile) -> bytes:
        values = TagValues.from_profile(metadata, self.defaults)
        properties = {
            "title": values.title,
            "author": values.artist,
            "subject": values.album,
        }
        try:
            with pikepdf.open(io.BytesIO(data)) as pdf:
                for key, value in properties.items():
                    name = DOCINFO_KEYS[key]
                    if value:
                        pdf.docinfo[name] = value
                    elif name in pdf.docinfo:
                        del pdf.docinfo[name]
                buffer = io.BytesIO()
                pdf.save(buffer)
        except pikepdf.PasswordError as exc:
            raise EmbedError("pdf_encrypted") from exc
        except (pikepdf.PdfError, RuntimeError, ValueError) as exc:
            # QpdfRuntimeError derives from RuntimeError.
            raise EmbedError(f"Could not write PDF properties: {exc}") from exc
        return buffer.getvalue()

    def read_properties(self, data: bytes) -> Optional[Dict[str, Optional[str]]]:
        try:
            with pikepdf.open(io.BytesIO(data)) as pdf:
                docinfo = pdf.docinfo
                return {
                    key: str(docinfo[name]) if name in docinfo else None
                    for key, name in DOCINFO_KEYS.items()
                }
        except (pikepdf.PdfError, RuntimeError) as exc:  # pragma: no cover - depends on input bytes
            logger.debug("Failed to read PDF properties: %s", exc)
            return None
