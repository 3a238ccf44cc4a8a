from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from .history import WritingHistory

TargetId = str


class FolderKind(enum.Enum):
    DRAFT = "draft"
    RESEARCH = "research"
    TRASH = "trash"
    PLAIN = "plain"


@dataclass(frozen=True)
class TargetLabel:
    id: TargetId
    name: str
    color: str  # "#RRGGBB"


@dataclass(frozen=True)
class TargetStatus:
    id: TargetId
    name: str


@dataclass
class TargetDocument:
    id: TargetId
    title: str
    content: str = ""  # Markdown
    synopsis: str = ""
    notes: str = ""  # Markdown
    keywords: list[str] = field(default_factory=list)
    label_id: TargetId | None = None
    status_id: TargetId | None = None
    icon_name: str = "doc.text"
    icon_color: str | None = None
    order: int = 0
    include_in_compile: bool = True
    target_word_count: int | None = None
    created: datetime | None = None
    modified: datetime | None = None


@dataclass
class TargetFolder:
    id: TargetId
    title: str
    kind: FolderKind = FolderKind.PLAIN
    subfolders: list[TargetFolder] = field(default_factory=list)
    documents: list[TargetDocument] = field(default_factory=list)
    order: int = 0
    created: datetime | None = None

    def children(self) -> list[TargetFolder | TargetDocument]:
        """Subfolders and documents merged back into sibling order."""
        merged: list[TargetFolder | TargetDocument] = [*self.subfolders, *self.documents]
        return sorted(merged, key=lambda node: node.order)

    def iter_documents(self):
        yield from self.documents
        for sub in self.subfolders:
            yield from sub.iter_documents()


@dataclass
class TargetTargets:
    draft_word_count: int | None = None
    session_word_count: int | None = None
    deadline: datetime | None = None


@dataclass
class TargetProject:
    """The destination document tree populated by an import."""

    title: str
    root_folder: TargetFolder
    research_folder: TargetFolder | None = None
    trash_folder: TargetFolder | None = None
    labels: list[TargetLabel] = field(default_factory=list)
    statuses: list[TargetStatus] = field(default_factory=list)
    targets: TargetTargets | None = None
    writing_history: WritingHistory = field(default_factory=WritingHistory)
    created: datetime | None = None

    def folders(self) -> list[TargetFolder]:
        return [f for f in (self.root_folder, self.research_folder, self.trash_folder) if f]

    def label(self, label_id: TargetId | None) -> TargetLabel | None:
        return next((lb for lb in self.labels if lb.id == label_id), None)

    def status(self, status_id: TargetId | None) -> TargetStatus | None:
        return next((st for st in self.statuses if st.id == status_id), None)
