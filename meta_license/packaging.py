from __future__ import annotations

import asyncio
import io
import logging
import zipfile
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import DEFAULT_METADATA, DefaultMetadata
from .embedding import Embedder, build_embedders
from .license import render_license
from .models import (
    EmbedError,
    FileInput,
    MetadataProfile,
    PackagedDownload,
    PackageOutcome,
    PackagingError,
    UNKNOWN_MIME_TYPE,
)
from .type_resolver import EmbedKind, resolve

logger = logging.getLogger(__name__)

LICENSE_SUFFIX = ".license.txt"
ARCHIVE_SUFFIX = ".zip"


class PackagingAssembler:
    """Builds a zip holding a metadata-tagged file and its license text.

    Each call works on its own copy of the profile and keeps no state
    between files, so calls may run concurrently.
    """

    def __init__(
        self,
        defaults: DefaultMetadata = DEFAULT_METADATA,
        *,
        clock: Callable[[], datetime] = datetime.now,
        compression: int = zipfile.ZIP_DEFLATED,
        embedders: Optional[Dict[EmbedKind, Embedder]] = None,
    ) -> None:
        self.defaults = defaults
        self.clock = clock
        self.compression = compression
        self.embedders = embedders if embedders is not None else build_embedders(defaults)

    def package(self, file_input: FileInput, profile: MetadataProfile) -> PackagedDownload:
        metadata = profile.copy()
        processed, embedded = self.process_file(file_input, metadata)
        license_text = render_license(file_input.name, metadata, self.clock(), self.defaults)
        archive = self._build_archive(
            [
                (file_input.name, processed),
                (file_input.name + LICENSE_SUFFIX, license_text.encode("utf-8")),
            ]
        )
        return PackagedDownload(
            processed_bytes=processed,
            license_text=license_text,
            archive_name=file_input.name + ARCHIVE_SUFFIX,
            archive_bytes=archive,
            embedded=embedded,
        )

    def process_file(self, file_input: FileInput, metadata: MetadataProfile) -> Tuple[bytes, bool]:
        # The extension decides the embedder; the declared type is only reported.
        descriptor = resolve(file_input.name)
        if file_input.declared_mime_type not in (UNKNOWN_MIME_TYPE, descriptor.mime_type):
            logger.debug(
                "%s declared as %s, handled as %s",
                file_input.name,
                file_input.declared_mime_type,
                descriptor.mime_type,
            )
        if not descriptor.embeddable:
            logger.debug("No metadata embedding for %s (%s)", file_input.name, descriptor.mime_type)
            return file_input.content, False
        embedder = self.embedders.get(descriptor.embed_kind)
        if embedder is None:
            logger.debug("No %s embedder configured for %s", descriptor.embed_kind.value, file_input.name)
            return file_input.content, False
        try:
            processed = embedder.embed(file_input.content, descriptor.mime_type, metadata.copy())
        except EmbedError as exc:
            logger.warning("Metadata not embedded in %s, using original file: %s", file_input.name, exc)
            return file_input.content, False
        except Exception as exc:
            logger.warning(
                "Unexpected %s embedding into %s, using original file: %s",
                type(exc).__name__,
                file_input.name,
                exc,
            )
            return file_input.content, False
        return processed, True

    def _build_archive(self, entries: List[Tuple[str, bytes]]) -> bytes:
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=self.compression) as archive:
                for name, payload in entries:
                    archive.writestr(name, payload)
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            raise PackagingError(f"Could not build archive for {entries[0][0]}: {exc}") from exc
        return buffer.getvalue()

    async def package_many(
        self,
        files: Iterable[FileInput],
        profile: MetadataProfile,
        concurrency: int = 4,
    ) -> List[PackageOutcome]:
        snapshot = profile.copy()
        semaphore = asyncio.Semaphore(max(1, concurrency))
        loop = asyncio.get_running_loop()

        async def run_one(file_input: FileInput) -> PackageOutcome:
            async with semaphore:
                try:
                    download = await loop.run_in_executor(None, self.package, file_input, snapshot)
                except PackagingError as exc:
                    logger.error("Packaging failed for %s: %s", file_input.name, exc)
                    return PackageOutcome(file_input.name, error=exc)
            return PackageOutcome(file_input.name, download=download)

        return list(await asyncio.gather(*(run_one(f) for f in files)))
