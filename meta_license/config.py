from __future__ import annotations

import zipfile
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import DateFormat

DEFAULT_LICENSE_TEMPLATE = """License Agreement

File: {filename}
Download Date: {downloadDate}

© {year} {institution}

Authors:
{authorsList}

License:

This file is licensed under the {institution} Copyright License. Downloading the file constitutes agreement to the following terms:

* Personal Use Only: You may download and use this file for personal, non-commercial purposes.
* No Redistribution or Modification: You may not share, distribute, or modify this file without explicit written permission from {institution}.
* Copyright Protection: This file is protected by copyright law. Unauthorized use or reproduction is prohibited.

For More Information:

* Website: {website}
* Contact: {contact}
"""


class DefaultMetadata(BaseModel):
    """Fallback values used whenever a profile field is left empty."""

    model_config = ConfigDict(frozen=True)

    title: str = "Default Title"
    authors: List[str] = Field(default_factory=list)
    source: str = "Your Website Name"
    institution: str = "Your Institution Name"
    website: str = "Your Website URL"
    contact: str = "Your Contact Info"
    license_template: str = DEFAULT_LICENSE_TEMPLATE

    @field_validator("authors", mode="before")
    @classmethod
    def _clean_authors(cls, values: Optional[List[str]]) -> List[str]:
        return [str(v).strip() for v in values or [] if str(v).strip()]


DEFAULT_METADATA = DefaultMetadata()


class ProfileSettings(BaseModel):
    title: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    date_format: DateFormat = DateFormat.YMD
    license_template: Optional[str] = None
    license_template_path: Optional[Path] = None

    @field_validator("date_format", mode="before")
    @classmethod
    def _coerce_date_format(cls, value: object) -> DateFormat:
        return DateFormat.coerce(value)

    @field_validator("license_template_path", mode="before")
    @classmethod
    def _expand_template(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser().resolve()

    def load_template(self) -> Optional[str]:
        if self.license_template_path is not None:
            return self.license_template_path.read_text(encoding="utf-8")
        return self.license_template


class PackagingSettings(BaseModel):
    output_dir: Path = Path("./dist")
    worker_concurrency: int = Field(default=4, ge=1)
    compression: Literal["deflated", "stored"] = "deflated"

    @field_validator("output_dir", mode="before")
    @classmethod
    def _expand_output(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()

    @property
    def zip_compression(self) -> int:
        if self.compression == "stored":
            return zipfile.ZIP_STORED
        return zipfile.ZIP_DEFLATED


class Settings(BaseModel):
    defaults: DefaultMetadata = DefaultMetadata()
    profile: ProfileSettings = ProfileSettings()
    packaging: PackagingSettings = PackagingSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
        profile = raw.get("profile") or {}
        template_path = profile.get("license_template_path")
        if template_path and not Path(template_path).expanduser().is_absolute():
            profile["license_template_path"] = path.parent / template_path
        return cls.model_validate(raw)


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.exists():
            raise FileNotFoundError(f"Config file not found: {explicit_path}")
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "meta-license.yaml", cwd / "meta-license.yml"):
        if candidate.exists():
            return candidate
    return None
