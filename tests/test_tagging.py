import io
import unittest

from mutagen.flac import FLAC
from mutagen.mp3 import MP3
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from media_samples import FLAC_AUDIO, make_flac, make_mp3_frames, make_ogg_vorbis, make_wav

from meta_license.config import DefaultMetadata
from meta_license.models import EmbedError, MetadataProfile, TagValues
from meta_license.tagging import AudioTagWriter

class TestTagValues(unittest.TestCase):
    def test_profile_values_win(self) -> None:
        meta = MetadataProfile(title="Song", authors=["A", "B"], source="Archive")
        values = TagValues.from_profile(meta, DefaultMetadata())
        self.assertEqual(values, TagValues("Song", "A, B", "Archive"))

    def test_defaults_fill_empty_fields(self) -> None:
        defaults = DefaultMetadata(authors=["House Author"], source="House Site")
        values = TagValues.from_profile(MetadataProfile(), defaults)
        self.assertEqual(values.title, "Default Title")
        self.assertEqual(values.artist, "House Author")
        self.assertEqual(values.album, "House Site")

    def test_artist_is_empty_without_any_authors(self) -> None:
        values = TagValues.from_profile(MetadataProfile(), DefaultMetadata())
        self.assertEqual(values.artist, "")


class TestAudioTagWriter(unittest.TestCase):
    def setUp(self) -> None:
        self.writer = AudioTagWriter()
        self.meta = MetadataProfile(title="Nocturne", authors=["Ada Lovelace"], source="Acme Archive")

    def test_mp3_round_trip_preserves_frames(self) -> None:
        frames = make_mp3_frames()
        tagged = self.writer.embed(frames, "audio/mpeg", self.meta)

        self.assertTrue(tagged.startswith(b"ID3"))
        self.assertTrue(tagged.endswith(frames))
        self.assertIsNotNone(MP3(io.BytesIO(tagged)).info)
        self.assertEqual(
            self.writer.read_tags(tagged, "audio/mpeg"),
            {"title": "Nocturne", "artist": "Ada Lovelace", "album": "Acme Archive"},
        )

    def test_mp3_retag_replaces_existing_values(self) -> None:
        first = self.writer.embed(make_mp3_frames(), "audio/mpeg", self.meta)
        second = self.writer.embed(first, "audio/mpeg", MetadataProfile(title="Other", authors=["Grace Hopper"]))
        tags = self.writer.read_tags(second, "audio/mpeg")
        self.assertEqual(tags["title"], "Other")
        self.assertEqual(tags["artist"], "Grace Hopper")
        self.assertEqual(tags["album"], "Your Website Name")

    def test_wav_round_trip_keeps_sample_data(self) -> None:
        original = make_wav()
        samples = WAVE(io.BytesIO(original)).info.length
        tagged = self.writer.embed(original, "audio/wav", self.meta)

        self.assertEqual(WAVE(io.BytesIO(tagged)).info.length, samples)
        self.assertEqual(self.writer.read_tags(tagged, "audio/wav")["artist"], "Ada Lovelace")

    def test_flac_round_trip_keeps_stream_info_and_frames(self) -> None:
        original = make_flac()
        tagged = self.writer.embed(original, "audio/flac", self.meta)

        self.assertTrue(tagged.startswith(b"fLaC"))
        self.assertTrue(tagged.endswith(FLAC_AUDIO))
        info = FLAC(io.BytesIO(tagged)).info
        self.assertEqual(info.sample_rate, 44100)
        self.assertEqual(info.total_samples, 4410)
        self.assertEqual(
            self.writer.read_tags(tagged, "audio/flac"),
            {"title": "Nocturne", "artist": "Ada Lovelace", "album": "Acme Archive"},
        )

    def test_ogg_vorbis_round_trip(self) -> None:
        tagged = self.writer.embed(make_ogg_vorbis(), "audio/ogg", self.meta)

        audio = OggVorbis(io.BytesIO(tagged))
        self.assertEqual(audio.info.sample_rate, 8000)
        self.assertEqual(audio["ARTIST"], ["Ada Lovelace"])
        self.assertEqual(self.writer.read_tags(tagged, "audio/ogg")["title"], "Nocturne")

    def test_empty_artist_clears_previous_id3_frame(self) -> None:
        first = self.writer.embed(make_mp3_frames(), "audio/mpeg", MetadataProfile(authors=["Old Author"]))
        second = self.writer.embed(first, "audio/mpeg", MetadataProfile(title="Renamed"))
        tags = self.writer.read_tags(second, "audio/mpeg")
        self.assertEqual(tags["title"], "Renamed")
        self.assertIsNone(tags["artist"])

    def test_empty_artist_clears_previous_vorbis_comment(self) -> None:
        first = self.writer.embed(make_flac(), "audio/flac", MetadataProfile(authors=["Old Author"]))
        second = self.writer.embed(first, "audio/flac", MetadataProfile())
        self.assertIsNone(self.writer.read_tags(second, "audio/flac")["artist"])
        self.assertTrue(second.endswith(FLAC_AUDIO))

    def test_invalid_bytes_raise_embed_error(self) -> None:
        for mime in ("audio/mpeg", "audio/wav", "audio/flac", "audio/ogg"):
            with self.subTest(mime=mime):
                with self.assertRaises(EmbedError):
                    self.writer.embed(b"definitely not audio", mime, self.meta)

    def test_unknown_mime_type_raises_embed_error(self) -> None:
        with self.assertRaises(EmbedError):
            self.writer.embed(make_mp3_frames(), "audio/x-unknown", self.meta)

    def test_read_tags_of_untagged_mp3_is_none(self) -> None:
        self.assertIsNone(self.writer.read_tags(make_mp3_frames(), "audio/mpeg"))


if __name__ == "__main__":
    unittest.main()
