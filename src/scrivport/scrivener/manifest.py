"""Streaming parser for the .scrivx project manifest.

The XML events are fed into ``ManifestBuilder``, a small state machine that
keeps an explicit stack of binder items under construction. The builder knows
nothing about the XML library, so it can be driven directly in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from ..log import get_logger
from .errors import FileReadFailedError, XmlParsingFailedError
from .models import (
    NEUTRAL_LABEL_COLOR,
    ItemType,
    SourceBinderItem,
    SourceKeyword,
    SourceLabel,
    SourceProject,
    SourceStatus,
    SourceTargets,
)

logger = get_logger(__name__)

ROOT_ELEMENT = "ScrivenerProject"

_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)

# Scalar fields of the innermost binder item: element -> allowed parents
_ITEM_FIELDS: dict[str, tuple[str, ...]] = {
    "Title": ("BinderItem",),
    "Synopsis": ("BinderItem", "MetaData"),
    "LabelID": ("MetaData", "BinderItem"),
    "StatusID": ("MetaData", "BinderItem"),
    "IncludeInCompile": ("MetaData", "BinderItem"),
    "IconFileName": ("MetaData", "BinderItem"),
    "Target": ("MetaData", "TextSettings"),
    "KeywordID": ("Keywords",),
}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a manifest timestamp; unparsable values yield None."""
    if not value or not value.strip():
        return None
    value = value.strip()
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_color(value: str | None, default: str = NEUTRAL_LABEL_COLOR) -> str:
    """Convert "R G B" floats in [0, 1] to "#RRGGBB"."""
    if not value:
        return default
    try:
        channels = [float(part) for part in value.split()]
    except ValueError:
        return default
    if len(channels) < 3 or any(not 0.0 <= c <= 1.0 for c in channels[:3]):
        return default
    r, g, b = (round(c * 255) for c in channels[:3])
    return f"#{r:02X}{g:02X}{b:02X}"


def _parse_int(text: str | None) -> int | None:
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


def _parse_flag(text: str | None, default: bool) -> bool:
    if text is None:
        return default
    value = text.strip().lower()
    if value in ("yes", "true", "1"):
        return True
    if value in ("no", "false", "0"):
        return False
    return default


@dataclass
class _ItemFrame:
    """A binder item whose end tag has not been seen yet."""

    item: SourceBinderItem
    children: list[SourceBinderItem] = field(default_factory=list)


class ManifestBuilder:
    """Event-driven construction of a ``SourceProject``.

    Call ``start``/``characters``/``end`` in document order, then ``finish``.
    """

    def __init__(self) -> None:
        self.title = ""
        self.format_version: str | None = None
        self.roots: list[SourceBinderItem] = []
        self.labels: dict[int, SourceLabel] = {}
        self.statuses: dict[int, SourceStatus] = {}
        self.keywords: dict[int, SourceKeyword] = {}
        self.targets: SourceTargets | None = None

        self._path: list[str] = []
        self._frames: list[_ItemFrame] = []
        self._field: str | None = None
        self._text: list[str] = []
        self._pending_attrs: dict[str, str] = {}
        self._synthetic_id = 0
        self.root_tag: str | None = None

    # -- event handlers ---------------------------------------------------

    def start(self, tag: str, attrs: dict[str, str]) -> None:
        parent = self._path[-1] if self._path else None
        self._path.append(tag)
        self._text = []

        if parent is None:
            self.root_tag = tag
            if tag == ROOT_ELEMENT:
                self.format_version = attrs.get("Version")
            return

        if tag == "BinderItem" and self._in("Binder"):
            self._frames.append(_ItemFrame(self._new_item(attrs)))
            return

        if self._frames and tag in _ITEM_FIELDS and parent in _ITEM_FIELDS[tag]:
            self._field = tag
            return

        if tag in ("Label", "Status", "Keyword", "DraftTarget", "SessionTarget"):
            self._pending_attrs = dict(attrs)

    def characters(self, text: str | None) -> None:
        if text:
            self._text.append(text)

    def end(self, tag: str) -> None:
        text = "".join(self._text).strip()
        self._text = []
        self._path.pop()

        if tag == "BinderItem" and self._frames and self._in("Binder"):
            self._close_item()
            return

        if self._field == tag:
            self._assign_field(tag, text)
            self._field = None
            return

        if tag == "ProjectTitle" and not self._frames:
            self.title = text
        elif tag == "Label" and self._in("LabelSettings"):
            self._add_label(text)
        elif tag == "Status" and self._in("StatusSettings"):
            self._add_status(text)
        elif tag == "Keyword" and self._in("KeywordSettings"):
            self._add_keyword(text)
        elif tag in ("DraftTarget", "SessionTarget") and self._in("ProjectTargets"):
            self._add_target(tag, text)

    def finish(self) -> SourceProject:
        if self.root_tag != ROOT_ELEMENT:
            raise XmlParsingFailedError(f"missing {ROOT_ELEMENT} root element")
        if self._frames:
            raise XmlParsingFailedError("unterminated BinderItem")
        return SourceProject(
            title=self.title,
            binder_items=self.roots,
            labels=list(self.labels.values()),
            statuses=list(self.statuses.values()),
            keywords=list(self.keywords.values()),
            targets=self.targets,
            format_version=self.format_version,
        )

    # -- helpers ------------------------------------------------------------

    def _in(self, section: str) -> bool:
        return section in self._path

    def _new_item(self, attrs: dict[str, str]) -> SourceBinderItem:
        item_id = _parse_int(attrs.get("ID"))
        if item_id is None:
            self._synthetic_id -= 1
            item_id = self._synthetic_id
        raw_type = attrs.get("Type", "")
        return SourceBinderItem(
            id=item_id,
            uuid=attrs.get("UUID") or None,
            type=ItemType.from_manifest(raw_type),
            raw_type=raw_type,
            created=parse_timestamp(attrs.get("Created")),
            modified=parse_timestamp(attrs.get("Modified")),
        )

    def _close_item(self) -> None:
        frame = self._frames.pop()
        frame.item.children = frame.children
        if self._frames:
            self._frames[-1].children.append(frame.item)
        else:
            self.roots.append(frame.item)

    def _assign_field(self, tag: str, text: str) -> None:
        item = self._frames[-1].item
        if tag == "Title":
            item.title = text
        elif tag == "Synopsis":
            item.synopsis = text or None
        elif tag == "LabelID":
            item.label_id = _parse_int(text)
        elif tag == "StatusID":
            item.status_id = _parse_int(text)
        elif tag == "IncludeInCompile":
            item.include_in_compile = _parse_flag(text, True)
        elif tag == "IconFileName":
            item.icon = text or None
        elif tag == "Target":
            item.target_word_count = _parse_int(text)
        elif tag == "KeywordID":
            keyword_id = _parse_int(text)
            if keyword_id is not None:
                item.keyword_ids.append(keyword_id)

    def _add_label(self, name: str) -> None:
        label_id = _parse_int(self._pending_attrs.get("ID"))
        if label_id is not None:
            color = parse_color(self._pending_attrs.get("Color"))
            self.labels[label_id] = SourceLabel(id=label_id, name=name, color_hex=color)
        self._pending_attrs = {}

    def _add_status(self, name: str) -> None:
        status_id = _parse_int(self._pending_attrs.get("ID"))
        if status_id is not None:
            self.statuses[status_id] = SourceStatus(id=status_id, name=name)
        self._pending_attrs = {}

    def _add_keyword(self, name: str) -> None:
        keyword_id = _parse_int(self._pending_attrs.get("ID"))
        if keyword_id is not None:
            self.keywords[keyword_id] = SourceKeyword(id=keyword_id, name=name)
        self._pending_attrs = {}

    def _add_target(self, tag: str, text: str) -> None:
        attrs = self._pending_attrs
        targets = self.targets or SourceTargets()
        if tag == "DraftTarget":
            targets.draft_word_count = _parse_int(text)
            targets.deadline = parse_timestamp(attrs.get("Deadline"))
            targets.deadline_ignored = _parse_flag(attrs.get("IgnoreDeadline"), False)
            targets.count_included_only = _parse_flag(attrs.get("CountIncludedOnly"), True)
        else:
            targets.session_word_count = _parse_int(text)
            targets.session_reset_type = attrs.get("ResetType")
            targets.session_reset_time = attrs.get("ResetTime")
            targets.session_allow_negatives = _parse_flag(attrs.get("AllowNegatives"), False)
        self.targets = targets
        self._pending_attrs = {}


def parse_manifest(manifest_path: Path) -> SourceProject:
    """Parse a .scrivx file into a ``SourceProject``.

    Raises:
        XmlParsingFailedError: malformed XML, forbidden constructs, or no root
        FileReadFailedError: the file cannot be opened
    """
    builder = ManifestBuilder()
    try:
        for event, elem in DefusedET.iterparse(str(manifest_path), events=("start", "end")):
            if event == "start":
                builder.start(elem.tag, dict(elem.attrib))
            else:
                builder.characters(elem.text)
                builder.end(elem.tag)
                elem.clear()
    except ParseError as e:
        raise XmlParsingFailedError(str(e)) from e
    except DefusedXmlException as e:
        raise XmlParsingFailedError(f"refused unsafe XML ({type(e).__name__})") from e
    except OSError as e:
        raise FileReadFailedError(str(manifest_path)) from e

    project = builder.finish()

    logger.debug(
        "manifest_parsed",
        path=str(manifest_path),
        items=project.item_count(),
        labels=len(project.labels),
        statuses=len(project.statuses),
    )
    return project

