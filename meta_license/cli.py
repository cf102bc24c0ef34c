from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import placeholders as ph
from .config import Settings, find_config
from .fs_utils import write_download
from .license import render_license
from .models import FileInput, PackagingError
from .packaging import PackagingAssembler
from .profile_store import MetadataProfileStore
from .type_resolver import SUPPORTED_TYPES

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

DATE_FORMAT_HELP = (
    "Format used for {downloadDate}; for 2024-03-05: yyyy-m-d -> 2024-3-5, "
    "m-yyyy-d -> 3-2024-5 (month-year-day), d-m-yyyy -> 5-3-2024, locale -> platform date"
)

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        self.roots = [str(root) for root in roots if root]

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(level_name: str, roots: list[Path]) -> WarningBufferHandler:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(warn_buffer)
    return warn_buffer


def _add_profile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", default=None, help="Title written into embedded metadata")
    parser.add_argument("--authors", default=None, help="Comma separated author names")
    parser.add_argument("--institution", default=None)
    parser.add_argument("--website", default=None)
    parser.add_argument("--contact", default=None)
    parser.add_argument("--source", default=None, help="Album/subject value")
    parser.add_argument(
        "--date-format",
        default=None,
        choices=["yyyy-m-d", "m-yyyy-d", "d-m-yyyy", "locale"],
        help=DATE_FORMAT_HELP,
    )
    parser.add_argument("--template", type=Path, default=None, help="License template file (text or HTML)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meta-license",
        description="Embed metadata into files and bundle them with a license text",
    )
    parser.add_argument("--config", type=Path, help="Path to meta-license.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    package_parser = subparsers.add_parser("package", help="Write <file>.zip archives with license texts")
    package_parser.add_argument("files", nargs="+", type=Path)
    package_parser.add_argument("--out-dir", type=Path, default=None, help="Directory for written archives")
    _add_profile_arguments(package_parser)

    render_parser = subparsers.add_parser("render", help="Print the license text for a file name")
    render_parser.add_argument("filename")
    _add_profile_arguments(render_parser)

    subparsers.add_parser("placeholders", help="List template placeholders")
    subparsers.add_parser("types", help="List supported extensions and their embed capability")
    return parser


def build_store(settings: Settings, args: argparse.Namespace) -> MetadataProfileStore:
    store = MetadataProfileStore.from_settings(settings)
    changes: dict[str, object] = {}
    for name in ("title", "institution", "website", "contact", "source", "date_format"):
        value = getattr(args, name, None)
        if value is not None:
            changes[name] = value
    template_path: Optional[Path] = getattr(args, "template", None)
    if template_path is not None:
        changes["license_template"] = template_path.read_text(encoding="utf-8")
    store.update(**changes)
    authors = getattr(args, "authors", None)
    if authors is not None:
        store.set_authors_text(authors)
    return store


def run_package(settings: Settings, store: MetadataProfileStore, files: list[Path], out_dir: Path) -> int:
    assembler = PackagingAssembler(settings.defaults, compression=settings.packaging.zip_compression)
    inputs = [FileInput.from_path(path) for path in files]
    outcomes = asyncio.run(
        assembler.package_many(inputs, store.snapshot(), concurrency=settings.packaging.worker_concurrency)
    )
    failures = 0
    for outcome in outcomes:
        if outcome.download is None:
            failures += 1
            continue
        try:
            target = write_download(outcome.download, out_dir)
        except PackagingError as exc:
            logger.error("%s", exc)
            failures += 1
            continue
        state = "tagged" if outcome.download.embedded else "unchanged"
        print(f"{target} ({state})")
    return 1 if failures else 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    config_path = find_config(args.config)
    settings = Settings.load(config_path) if config_path else Settings()
    out_dir = getattr(args, "out_dir", None) or settings.packaging.output_dir
    warn_buffer = configure_logging(args.log_level, [Path.cwd(), out_dir])
    if config_path:
        logger.debug("Using config %s", config_path)

    exit_code = 0
    try:
        match args.command:
            case "package":
                missing = [str(path) for path in args.files if not path.is_file()]
                if missing:
                    parser.error(f"File(s) not found: {', '.join(missing)}")
                exit_code = run_package(settings, build_store(settings, args), args.files, out_dir)
            case "render":
                store = build_store(settings, args)
                print(render_license(args.filename, store.snapshot(), datetime.now(), settings.defaults))
            case "placeholders":
                for name in ph.PLACEHOLDERS:
                    print(ph.token(name))
            case "types":
                for ext, descriptor in SUPPORTED_TYPES.items():
                    print(f"{ext:<5} {descriptor.mime_type:<16} {descriptor.embed_kind.value}")
            case _:
                parser.error("Unknown command")
    finally:
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
