from __future__ import annotations

import logging
from dataclasses import fields
from typing import Optional

from . import placeholders as ph
from .config import DEFAULT_METADATA, DefaultMetadata, Settings
from .models import DateFormat, MetadataProfile

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = {f.name for f in fields(MetadataProfile)}


class MetadataProfileStore:
    """Owns the live, editable metadata profile.

    Front ends edit ``profile`` freely; the packaging pipeline only ever
    receives ``snapshot()``, an independent copy merged onto the defaults.
    """

    def __init__(
        self,
        defaults: DefaultMetadata = DEFAULT_METADATA,
        initial: Optional[MetadataProfile] = None,
    ) -> None:
        self.defaults = defaults
        self._initial = initial.copy() if initial is not None else self._default_profile()
        self.profile = self._initial.copy()

    @classmethod
    def from_settings(cls, settings: Settings) -> "MetadataProfileStore":
        defaults = settings.defaults
        initial = MetadataProfile(
            title=settings.profile.title,
            authors=list(settings.profile.authors or defaults.authors),
            institution=defaults.institution,
            website=defaults.website,
            contact=defaults.contact,
            source=defaults.source,
            date_format=settings.profile.date_format,
            license_template=settings.profile.load_template() or defaults.license_template,
        )
        return cls(defaults, initial)

    def _default_profile(self) -> MetadataProfile:
        return MetadataProfile(
            authors=list(self.defaults.authors),
            institution=self.defaults.institution,
            website=self.defaults.website,
            contact=self.defaults.contact,
            source=self.defaults.source,
            date_format=DateFormat.YMD,
            license_template=self.defaults.license_template,
        )

    def update(self, **changes: object) -> MetadataProfile:
        unknown = set(changes) - _PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unknown profile field(s): {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            if name == "date_format":
                value = DateFormat.coerce(value)
            elif name == "authors":
                value = [str(a).strip() for a in value or [] if str(a).strip()]
            setattr(self.profile, name, value)
        return self.profile

    def set_authors_text(self, text: str) -> MetadataProfile:
        return self.update(authors=text.split(","))

    def insert_placeholder(self, name: str, position: Optional[int] = None) -> str:
        if name not in ph.PLACEHOLDERS:
            raise ValueError(f"Unknown placeholder: {name}")
        template = self.profile.license_template
        index = len(template) if position is None else max(0, min(position, len(template)))
        self.profile.license_template = template[:index] + ph.token(name) + template[index:]
        return self.profile.license_template

    def snapshot(self) -> MetadataProfile:
        snapshot = self.profile.copy()
        snapshot.institution = snapshot.institution or self.defaults.institution
        snapshot.website = snapshot.website or self.defaults.website
        snapshot.contact = snapshot.contact or self.defaults.contact
        snapshot.source = snapshot.source or self.defaults.source
        return snapshot

    def reset(self) -> MetadataProfile:
        self.profile = self._initial.copy()
        logger.debug("Metadata profile reset")
        return self.profile
