from __future__ import annotations

# Template placeholders understood by the license renderer.
# Keep these centralized; the CLI and the profile store list them to users.

FILENAME = "filename"
DOWNLOAD_DATE = "downloadDate"
YEAR = "year"
INSTITUTION = "institution"
WEBSITE = "website"
CONTACT = "contact"
AUTHORS_LIST = "authorsList"

PLACEHOLDERS = (
    FILENAME,
    DOWNLOAD_DATE,
    YEAR,
    INSTITUTION,
    WEBSITE,
    CONTACT,
    AUTHORS_LIST,
)


def token(name: str) -> str:
    return "{" + name + "}"
