import contextlib
import io
import logging
import os
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest import mock

from media_samples import make_mp3_frames

from meta_license import cli
from meta_license.tagging import AudioTagWriter


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self.root_handlers = list(logging.getLogger().handlers)
        self.root_level = logging.getLogger().level

    def tearDown(self) -> None:
        root = logging.getLogger()
        root.handlers[:] = self.root_handlers
        root.setLevel(self.root_level)

    def run_cli(self, *argv: str) -> str:
        out = io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(io.StringIO()):
            cli.main(list(argv))
        return out.getvalue()

    def test_placeholders_lists_vocabulary(self) -> None:
        output = self.run_cli("placeholders")
        self.assertEqual(
            output.split(),
            ["{filename}", "{downloadDate}", "{year}", "{institution}", "{website}", "{contact}", "{authorsList}"],
        )

    def test_types_lists_embed_capability(self) -> None:
        lines = self.run_cli("types").splitlines()
        self.assertIn("mp3", lines[1])
        self.assertTrue(any(line.startswith("pdf") and line.endswith("document") for line in lines))

    def test_render_prints_license(self) -> None:
        output = self.run_cli(
            "render",
            "song.flac",
            "--authors",
            "Ada Lovelace, Charles Babbage",
            "--institution",
            "Acme Labs",
        )
        self.assertIn("File: song.flac", output)
        self.assertIn("Authors:\nAda Lovelace, Charles Babbage", output)
        self.assertIn("Acme Labs", output)

    def test_package_writes_archives(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            track = tmp / "track.mp3"
            track.write_bytes(make_mp3_frames())
            photo = tmp / "photo.heic"
            photo.write_bytes(b"heic")
            out_dir = tmp / "out"

            output = self.run_cli(
                "--log-level",
                "ERROR",
                "package",
                str(track),
                str(photo),
                "--out-dir",
                str(out_dir),
                "--authors",
                "Ada Lovelace",
            )

            self.assertIn("(tagged)", output)
            self.assertIn("(unchanged)", output)
            with zipfile.ZipFile(out_dir / "track.mp3.zip") as archive:
                tags = AudioTagWriter().read_tags(archive.read("track.mp3"), "audio/mpeg")
                license_text = archive.read("track.mp3.license.txt").decode("utf-8")
            self.assertEqual(tags["artist"], "Ada Lovelace")
            self.assertIn("Authors:\nAda Lovelace", license_text)
            with zipfile.ZipFile(out_dir / "photo.heic.zip") as archive:
                self.assertEqual(archive.read("photo.heic"), b"heic")

    def test_package_missing_file_is_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("package", "/does/not/exist.mp3")
        self.assertEqual(ctx.exception.code, 2)

    def test_date_format_help_explains_month_year_day(self) -> None:
        out = io.StringIO()
        # Wide enough that argparse does not wrap at the hyphens.
        with mock.patch.dict(os.environ, {"COLUMNS": "400"}), contextlib.redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                cli.build_parser().parse_args(["render", "--help"])
        self.assertEqual(ctx.exception.code, 0)
        help_text = " ".join(out.getvalue().split())
        self.assertIn("m-yyyy-d -> 3-2024-5 (month-year-day)", help_text)


if __name__ == "__main__":
    unittest.main()
