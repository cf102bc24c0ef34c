from __future__ import annotations

import io
import logging
from typing import Callable, Dict, Optional

import mutagen
from mutagen import FileType, MutagenError
from mutagen.flac import FLAC
from mutagen.id3 import ID3, TALB, TIT2, TPE1
from mutagen.mp3 import MP3
from mutagen.oggflac import OggFLAC
from mutagen.oggopus import OggOpus
from mutagen.oggspeex import OggSpeex
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from .config import DEFAULT_METADATA, DefaultMetadata
from .models import EmbedError, MetadataProfile, TagValues

logger = logging.getLogger(__name__)

MUTAGEN_ERRORS = (MutagenError, OSError, ValueError, EOFError)

OGG_TYPES = [OggVorbis, OggOpus, OggFLAC, OggSpeex]


class AudioTagWriter:
    """Rewrites title/artist/album tags inside in-memory audio containers.

    Only the tag block changes; audio frames are copied through untouched
    by mutagen's in-place save.
    """

    def __init__(self, defaults: DefaultMetadata = DEFAULT_METADATA) -> None:
        self.defaults = defaults

    def embed(self, data: bytes, mime_type: str, metadata: MetadataProfile) -> bytes:
        handlers: Dict[str, Callable[[io.BytesIO], FileType]] = {
            "audio/mpeg": MP3,
            "audio/wav": WAVE,
            "audio/flac": FLAC,
            "audio/ogg": self._open_ogg,
        }
        opener = handlers.get(mime_type)
        if opener is None:
            raise EmbedError(f"No audio tag handler for {mime_type}")
        values = TagValues.from_profile(metadata, self.defaults)
        buffer = io.BytesIO(data)
        try:
            audio = opener(buffer)
            if audio.tags is None:
                audio.add_tags()
            if isinstance(audio.tags, ID3):
                self._apply_id3(audio.tags, values)
            else:
                self._apply_vorbis(audio, values)
            # FLAC.save reads the header from the current position.
            buffer.seek(0)
            audio.save(buffer)
        except MUTAGEN_ERRORS as exc:
            raise EmbedError(f"Could not write {mime_type} tags: {exc}") from exc
        return buffer.getvalue()

    def read_tags(self, data: bytes, mime_type: str) -> Optional[Dict[str, Optional[str]]]:
        try:
            if mime_type in {"audio/mpeg", "audio/wav"}:
                opener = MP3 if mime_type == "audio/mpeg" else WAVE
                audio = opener(io.BytesIO(data))
                if audio.tags is None:
                    return None
                return {
                    "title": self._id3_text(audio.tags, "TIT2"),
                    "artist": self._id3_text(audio.tags, "TPE1"),
                    "album": self._id3_text(audio.tags, "TALB"),
                }
            if mime_type == "audio/flac":
                audio = FLAC(io.BytesIO(data))
            elif mime_type == "audio/ogg":
                audio = self._open_ogg(io.BytesIO(data))
            else:
                return None
            return {
                "title": audio.get("TITLE", [None])[0],
                "artist": audio.get("ARTIST", [None])[0],
                "album": audio.get("ALBUM", [None])[0],
            }
        except MUTAGEN_ERRORS + (EmbedError,) as exc:  # pragma: no cover - depends on input bytes
            logger.debug("Failed to read %s tags: %s", mime_type, exc)
            return None

    @staticmethod
    def _open_ogg(buffer: io.BytesIO) -> FileType:
        audio = mutagen.File(buffer, options=OGG_TYPES)
        if audio is None:
            raise EmbedError("Unrecognized Ogg stream")
        return audio

    def _apply_id3(self, tags: ID3, values: TagValues) -> None:
        self._set_frame(tags, TIT2, values.title)
        self._set_frame(tags, TPE1, values.artist)
        self._set_frame(tags, TALB, values.album)

    @staticmethod
    def _apply_vorbis(audio: FileType, values: TagValues) -> None:
        mapping = {
            "TITLE": values.title,
            "ARTIST": values.artist,
            "ALBUM": values.album,
        }
        for key, value in mapping.items():
            if value:
                audio[key] = value
            elif key in audio.tags:
                del audio.tags[key]

    @staticmethod
    def _set_frame(tags: ID3, frame_cls, value: str) -> None:
        if value:
            tags.setall(frame_cls.__name__, [frame_cls(encoding=3, text=value)])
        else:
            tags.delall(frame_cls.__name__)

    @staticmethod
    def _id3_text(tags: ID3, frame_id: str) -> Optional[str]:
        frame = tags.getall(frame_id)
        if not frame:
            return None
        return frame[0].text[0] if frame[0].text else None
