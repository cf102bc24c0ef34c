"""Plain-text license rendering from (possibly HTML) templates.

Templates come from a rich-text editor that stores each line as a
``<p>`` element. Rendering turns paragraphs into lines, drops every other
tag, substitutes the placeholder vocabulary in a single pass and trims
each line. Every value has a fallback, so rendering never raises for
missing metadata.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict

from lxml import html
from lxml.etree import ParserError

from . import placeholders as ph
from .config import DEFAULT_METADATA, DefaultMetadata
from .models import DateFormat, MetadataProfile

logger = logging.getLogger(__name__)

NO_AUTHORS = "N/A"

_PLACEHOLDER_RE = re.compile(r"\{(" + "|".join(re.escape(name) for name in ph.PLACEHOLDERS) + r")\}")
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_END_RE = re.compile(r"</p\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


def format_download_date(now: datetime, date_format: DateFormat | str) -> str:
    fmt = DateFormat.coerce(date_format)
    if fmt is DateFormat.YMD:
        return f"{now.year}-{now.month}-{now.day}"
    if fmt is DateFormat.MYD:
        return f"{now.month}-{now.year}-{now.day}"
    if fmt is DateFormat.DMY:
        return f"{now.day}-{now.month}-{now.year}"
    return now.strftime("%x")


def _is_trailing_break(br: html.HtmlElement) -> bool:
    # A lone trailing <br> only keeps an empty paragraph open.
    parent = br.getparent()
    if parent is None or parent.tag != "p":
        return False
    return parent.index(br) == len(parent) - 1 and not (br.tail or "").strip()


def template_to_text(template: str) -> str:
    if "<" not in template and "&" not in template:
        return template
    try:
        root = html.fragment_fromstring(template, create_parent="div")
    except (ParserError, ValueError) as exc:
        logger.debug("Falling back to tag stripping for license template: %s", exc)
        text = _BREAK_RE.sub("\n", template)
        return _TAG_RE.sub("", _PARAGRAPH_END_RE.sub("\n", text))
    for br in root.iter("br"):
        if not _is_trailing_break(br):
            br.tail = "\n" + (br.tail or "")
    for paragraph in root.iter("p"):
        paragraph.tail = "\n" + (paragraph.tail or "")
    return root.text_content()


def substitutions(
    filename: str,
    metadata: MetadataProfile,
    now: datetime,
    defaults: DefaultMetadata = DEFAULT_METADATA,
) -> Dict[str, str]:
    return {
        ph.FILENAME: filename,
        ph.DOWNLOAD_DATE: format_download_date(now, metadata.date_format),
        ph.YEAR: str(now.year),
        ph.INSTITUTION: metadata.institution or defaults.institution,
        ph.WEBSITE: metadata.website or defaults.website,
        ph.CONTACT: metadata.contact or defaults.contact,
        ph.AUTHORS_LIST: metadata.joined_authors() or NO_AUTHORS,
    }


def render_license(
    filename: str,
    metadata: MetadataProfile,
    now: datetime,
    defaults: DefaultMetadata = DEFAULT_METADATA,
) -> str:
    """Render the license text for ``filename``.

    Substitution is one regex pass, so a substituted value that itself
    contains ``{year}`` is left as is. Unknown ``{tokens}`` stay verbatim.
    """
    values = substitutions(filename, metadata, now, defaults)
    template = metadata.license_template if metadata.license_template.strip() else defaults.license_template
    text = template_to_text(template)
    text = _PLACEHOLDER_RE.sub(lambda match: values[match.group(1)], text)
    return "\n".join(line.strip() for line in text.split("\n"))
