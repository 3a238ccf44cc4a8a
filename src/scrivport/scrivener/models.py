"""Data models for the Scrivener side of an import."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from ..core.model import TargetProject

BUNDLE_EXTENSION = ".scriv"
MANIFEST_EXTENSION = ".scrivx"
MANIFEST_FILENAME = "project.scrivx"
NEUTRAL_LABEL_COLOR = "#808080"


class ItemType(enum.Enum):
    """Closed set of binder item kinds; unknown type strings map to OTHER."""

    DRAFT_ROOT = "DraftFolder"
    RESEARCH_ROOT = "ResearchFolder"
    TRASH_ROOT = "TrashFolder"
    FOLDER = "Folder"
    TEXT = "Text"
    PDF = "PDF"
    IMAGE = "Image"
    WEB_PAGE = "WebPage"
    OTHER = "Other"

    @classmethod
    def from_manifest(cls, raw: str | None) -> "ItemType":
        return _TYPE_TABLE.get((raw or "").strip(), cls.OTHER)

    @property
    def is_root(self) -> bool:
        return self in (ItemType.DRAFT_ROOT, ItemType.RESEARCH_ROOT, ItemType.TRASH_ROOT)

    @property
    def is_folder(self) -> bool:
        return self.is_root or self is ItemType.FOLDER

    @property
    def is_media(self) -> bool:
        return self in (ItemType.PDF, ItemType.IMAGE, ItemType.WEB_PAGE)


_TYPE_TABLE: dict[str, ItemType] = {
    "DraftFolder": ItemType.DRAFT_ROOT,
    "ResearchFolder": ItemType.RESEARCH_ROOT,
    "TrashFolder": ItemType.TRASH_ROOT,
    "Folder": ItemType.FOLDER,
    "Text": ItemType.TEXT,
    "PDF": ItemType.PDF,
    "Image": ItemType.IMAGE,
    "WebPage": ItemType.WEB_PAGE,
    "WebArchive": ItemType.WEB_PAGE,
}


class ContentLayout(enum.Enum):
    """On-disk content convention detected once per bundle."""

    LEGACY = "v2"  # Files/Docs/{id}.rtf
    CURRENT = "v3"  # Files/Data/{uuid}/content.rtf
    NONE = "none"  # neither directory exists

    @property
    def version(self) -> Literal["v2", "v3"]:
        # A bundle without content directories is reported as current format.
        return "v2" if self is ContentLayout.LEGACY else "v3"


@dataclass
class SourceLabel:
    id: int
    name: str
    color_hex: str = NEUTRAL_LABEL_COLOR


@dataclass
class SourceStatus:
    id: int
    name: str


@dataclass
class SourceKeyword:
    id: int
    name: str


@dataclass
class SourceTargets:
    """Project-level word-count targets."""

    draft_word_count: int | None = None
    session_word_count: int | None = None
    deadline: datetime | None = None
    deadline_ignored: bool = False
    count_included_only: bool = True
    session_reset_type: str | None = None
    session_reset_time: str | None = None
    session_allow_negatives: bool = False


@dataclass
class SourceBinderItem:
    id: int
    type: ItemType
    title: str = ""
    uuid: str | None = None
    raw_type: str = ""
    synopsis: str | None = None
    label_id: int | None = None
    status_id: int | None = None
    include_in_compile: bool = True
    icon: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    target_word_count: int | None = None
    keyword_ids: list[int] = field(default_factory=list)
    children: list["SourceBinderItem"] = field(default_factory=list)


@dataclass
class SourceProject:
    """Everything the manifest says about a project."""

    title: str
    binder_items: list[SourceBinderItem] = field(default_factory=list)
    labels: list[SourceLabel] = field(default_factory=list)
    statuses: list[SourceStatus] = field(default_factory=list)
    keywords: list[SourceKeyword] = field(default_factory=list)
    targets: SourceTargets | None = None
    format_version: str | None = None

    def item_count(self) -> int:
        return count_items(self.binder_items)


def count_items(items: list[SourceBinderItem]) -> int:
    return sum(1 + count_items(item.children) for item in items)


@dataclass(frozen=True)
class ImportOptions:
    """Caller-selected import switches; every combination is legal."""

    import_research: bool = True
    import_trash: bool = False
    import_snapshots: bool = True
    # Accepted but not acted upon; see DESIGN.md.
    preserve_source_ids: bool = False


@dataclass(frozen=True)
class ImportWarning:
    """A non-fatal, per-item problem."""

    message: str
    item_title: str | None = None
    severity: Literal["info", "warning", "error"] = "warning"

    def __str__(self) -> str:
        where = f"{self.item_title}: " if self.item_title else ""
        return f"[{self.severity}] {where}{self.message}"


@dataclass(frozen=True)
class ImportResult:
    project: TargetProject
    warnings: tuple[ImportWarning, ...] = ()
    skipped_items: int = 0
    imported_documents: int = 0
    imported_folders: int = 0

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def summary(self) -> str:
        docs = self.imported_documents
        folders = self.imported_folders
        parts = [
            f"Imported {docs} document{'' if docs == 1 else 's'}",
            f"{folders} folder{'' if folders == 1 else 's'}",
        ]
        text = ", ".join(parts)
        if self.skipped_items:
            skipped = self.skipped_items
            text += f" ({skipped} item{'' if skipped == 1 else 's'} skipped)"
        return text


@dataclass
class ValidationResult:
    """Outcome of a cheap, read-only bundle inspection."""

    is_valid: bool
    project_title: str = ""
    item_count: int = 0
    version: Literal["v2", "v3"] = "v3"
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
