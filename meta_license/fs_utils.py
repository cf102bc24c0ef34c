from __future__ import annotations

import logging
from pathlib import Path

from .models import PackagedDownload, PackagingError

logger = logging.getLogger(__name__)

ELLIPSIS = "…"
MAX_BASENAME_BYTES = 255


def fit_destination_path(path: Path) -> Path:
    """Return a non-existing path for ``path`` whose basename fits the filesystem limit."""
    suffix = "".join(path.suffixes[-2:]) if len(path.suffixes) > 1 else path.suffix
    stem = path.name[: len(path.name) - len(suffix)] if suffix else path.name
    stem = stem or "file"
    candidate = _fit(path.parent, stem, "", suffix)
    counter = 1
    while candidate.exists():
        candidate = _fit(path.parent, stem, f"_{counter}", suffix)
        counter += 1
    return candidate


def _fit(parent: Path, stem: str, extra: str, suffix: str) -> Path:
    name = f"{stem}{extra}{suffix}"
    if len(name.encode("utf-8")) <= MAX_BASENAME_BYTES:
        return parent / name
    allowed = (
        MAX_BASENAME_BYTES
        - len(suffix.encode("utf-8"))
        - len(ELLIPSIS.encode("utf-8"))
        - len(extra.encode("utf-8"))
    )
    allowed = max(0, allowed)
    truncated = stem.encode("utf-8")[:allowed].decode("utf-8", errors="ignore") or "file"
    return parent / f"{truncated}{extra}{ELLIPSIS}{suffix}"


def write_download(download: PackagedDownload, out_dir: Path) -> Path:
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        target = fit_destination_path(out_dir / download.archive_name)
        target.write_bytes(download.archive_bytes)
    except OSError as exc:
        raise PackagingError(f"Could not write {download.archive_name}: {exc}") from exc
    logger.info("Wrote %s", target)
    return target
