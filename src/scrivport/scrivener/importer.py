"""Import a Scrivener bundle into a ``TargetProject``.

One call to ``import_project`` is one ``_ImportRun``: all counters, id maps
and warnings live on the run and are returned (or discarded) when it ends.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path

from ..adapters.idgen import HexId
from ..core.history import WritingHistory
from ..core.model import (
    FolderKind,
    TargetDocument,
    TargetFolder,
    TargetLabel,
    TargetProject,
    TargetStatus,
    TargetTargets,
)
from ..core.ports import IdGenerator, ProgressCallback
from ..log import get_logger
from .bundle import (
    CURRENT_CONTENT_DIR,
    LEGACY_CONTENT_DIR,
    check_bundle,
    detect_layout,
    fallback_title,
    is_supported_version,
)
from .errors import (
    ImportCancelledError,
    MissingContentError,
    RtfConversionFailedError,
    ScrivenerImportError,
    UnsupportedVersionError,
)
from .history import HISTORY_FILENAME, find_history_file, parse_writing_history
from .icons import map_icon
from .manifest import parse_manifest
from .markdown import RtfToMarkdownConverter, normalize_markdown
from .models import (
    ContentLayout,
    ImportOptions,
    ImportResult,
    ImportWarning,
    ItemType,
    SourceBinderItem,
    SourceProject,
    count_items,
)
from .rtf import (
    FEATURE_COMMENT,
    FEATURE_FOOTNOTE,
    FEATURE_IMAGE,
    FEATURE_TABLE,
    plain_text_fallback,
)

logger = get_logger(__name__)

UNTITLED_PROJECT = "Untitled Project"
SNAPSHOTS_DIR = "Snapshots"

PROGRESS_VALIDATE = 0.05
PROGRESS_MANIFEST = 0.10
PROGRESS_ITEMS_START = 0.20
PROGRESS_ITEMS_SPAN = 0.70
PROGRESS_HISTORY = 0.95

_FEATURE_NAMES = {
    FEATURE_TABLE: "tables",
    FEATURE_IMAGE: "images",
    FEATURE_FOOTNOTE: "footnotes",
    FEATURE_COMMENT: "comments",
}


@dataclass(frozen=True)
class ItemFiles:
    """Where one binder item's files would live under a given layout."""

    content: Path
    notes: Path
    synopsis: tuple[Path, ...]


def item_files(root: Path, item: SourceBinderItem, layout: ContentLayout) -> ItemFiles | None:
    if layout is ContentLayout.CURRENT:
        if not item.uuid:
            return None
        folder = root / CURRENT_CONTENT_DIR / item.uuid
        return ItemFiles(folder / "content.rtf", folder / "notes.rtf", (folder / "synopsis.txt",))
    if layout is ContentLayout.LEGACY:
        if item.id < 0:
            return None
        docs = root / LEGACY_CONTENT_DIR
        return ItemFiles(
            docs / f"{item.id}.rtf",
            docs / f"{item.id}_notes.rtf",
            (docs / f"{item.id}_synopsis.txt", docs / f"{item.id}.txt"),
        )
    return None


def resolve_item_files(root: Path, item: SourceBinderItem, layout: ContentLayout) -> ItemFiles | None:
    """Files for ``item``: the detected layout first, then the other convention."""
    if layout is ContentLayout.NONE:
        return None
    other = ContentLayout.LEGACY if layout is ContentLayout.CURRENT else ContentLayout.CURRENT
    preferred = item_files(root, item, layout)
    for files in (preferred, item_files(root, item, other)):
        if files is not None and files.content.is_file():
            return files
    return preferred


class _ImportRun:
    def __init__(
        self,
        path: Path,
        options: ImportOptions,
        progress: ProgressCallback | None,
        cancel: threading.Event | None,
        idgen: IdGenerator,
        converter: RtfToMarkdownConverter,
    ):
        self.path = path
        self.options = options
        self.progress = progress
        self.cancel = cancel
        self.idgen = idgen
        self.converter = converter

        self.root = path
        self.layout = ContentLayout.NONE
        self.warnings: list[ImportWarning] = []
        self.skipped = 0
        self.documents = 0
        self.folders = 0
        self.processed = 0
        self.total = 0
        self.label_map: dict[int, str] = {}
        self.status_map: dict[int, str] = {}
        self.keyword_names: dict[int, str] = {}

    # -- bookkeeping --------------------------------------------------------

    def report(self, fraction: float, text: str) -> None:
        if self.progress is not None:
            self.progress(min(max(fraction, 0.0), 1.0), text)

    def warn(self, message: str, item_title: str | None = None, severity: str = "warning") -> None:
        warning = ImportWarning(message=message, item_title=item_title, severity=severity)
        self.warnings.append(warning)
        logger.debug("import_warning", message=message, item=item_title, severity=severity)

    def checkpoint(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            logger.info("import_cancelled", path=str(self.path), processed=self.processed)
            raise ImportCancelledError()

    def advance(self, item: SourceBinderItem, count: int = 1) -> None:
        self.processed += count
        fraction = PROGRESS_ITEMS_START + PROGRESS_ITEMS_SPAN * self.processed / max(self.total, 1)
        self.report(fraction, f"Converting: {item.title}")

    def skip_subtree(self, item: SourceBinderItem) -> None:
        self.skipped += count_items([item])

    # -- main flow ----------------------------------------------------------

    def execute(self) -> ImportResult:
        self.report(PROGRESS_VALIDATE, "Validating Scrivener project...")
        self.root, manifest_path = check_bundle(self.path)

        self.report(PROGRESS_MANIFEST, "Reading project structure...")
        source = parse_manifest(manifest_path)
        if not is_supported_version(source.format_version):
            raise UnsupportedVersionError(source.format_version or "")
        self.layout = detect_layout(self.root)
        if self.options.preserve_source_ids:
            logger.debug("preserve_source_ids_ignored", path=str(self.root))

        title = source.title.strip()
        if not title or title == UNTITLED_PROJECT:
            title = fallback_title(self.root)

        labels, statuses = self.map_labels_and_statuses(source)
        self.keyword_names = {kw.id: kw.name for kw in source.keywords}

        self.report(PROGRESS_ITEMS_START, "Converting documents...")
        project = TargetProject(
            title=title,
            root_folder=TargetFolder(id=self.idgen.new_id(), title=title, kind=FolderKind.DRAFT),
            labels=labels,
            statuses=statuses,
            targets=self.map_targets(source),
        )
        self.convert_binder(source, project)

        if self.options.import_snapshots and (self.root / SNAPSHOTS_DIR).is_dir():
            self.warn("Snapshots were found but not imported (not yet supported)", severity="info")

        self.report(PROGRESS_HISTORY, "Importing writing history...")
        project.writing_history = self.read_history()

        self.report(1.0, "Import complete!")
        result = ImportResult(
            project=project,
            warnings=tuple(self.warnings),
            skipped_items=self.skipped,
            imported_documents=self.documents,
            imported_folders=self.folders,
        )
        logger.info(
            "import_completed",
            path=str(self.root),
            documents=self.documents,
            folders=self.folders,
            skipped=self.skipped,
            warnings=len(self.warnings),
        )
        return result

    def map_labels_and_statuses(
        self, source: SourceProject
    ) -> tuple[list[TargetLabel], list[TargetStatus]]:
        labels: list[TargetLabel] = []
        for label in source.labels:
            if label.id < 0 or label.id in self.label_map:
                continue
            target = TargetLabel(id=self.idgen.new_id(), name=label.name, color=label.color_hex)
            self.label_map[label.id] = target.id
            labels.append(target)

        statuses: list[TargetStatus] = []
        for status in source.statuses:
            if status.id < 0 or status.id in self.status_map:
                continue
            target = TargetStatus(id=self.idgen.new_id(), name=status.name)
            self.status_map[status.id] = target.id
            statuses.append(target)
        return labels, statuses

    @staticmethod
    def map_targets(source: SourceProject) -> TargetTargets | None:
        if source.targets is None:
            return None
        return TargetTargets(
            draft_word_count=source.targets.draft_word_count,
            session_word_count=source.targets.session_word_count,
            deadline=source.targets.deadline,
        )

    def convert_binder(self, source: SourceProject, project: TargetProject) -> None:
        opts = self.options
        draft: SourceBinderItem | None = None
        extras: list[SourceBinderItem] = []
        included_roots: list[SourceBinderItem] = []

        for item in source.binder_items:
            if item.type is ItemType.DRAFT_ROOT and draft is None:
                draft = item
                included_roots.append(item)
            elif item.type is ItemType.RESEARCH_ROOT:
                if opts.import_research:
                    included_roots.append(item)
                else:
                    self.skip_subtree(item)
            elif item.type is ItemType.TRASH_ROOT:
                if opts.import_trash:
                    included_roots.append(item)
                else:
                    self.skip_subtree(item)
            else:
                extras.append(item)

        self.total = sum(count_items(r.children) for r in included_roots) + count_items(extras)

        for item in included_roots:
            if item is draft:
                folder = project.root_folder
                folder.created = item.created
            elif item.type is ItemType.RESEARCH_ROOT:
                if project.research_folder is None:
                    project.research_folder = self.root_folder(item, FolderKind.RESEARCH, "Research")
                folder = project.research_folder
            else:
                if project.trash_folder is None:
                    project.trash_folder = self.root_folder(item, FolderKind.TRASH, "Trash")
                folder = project.trash_folder
            self.convert_children(item.children, folder)

        if draft is None:
            self.warn("No Draft folder found in the project; created an empty one")
        for item in extras:
            if item.type is ItemType.DRAFT_ROOT:
                self.warn("Additional Draft folder imported as a regular folder", item.title)
            self.convert_children([item], project.root_folder)

    def root_folder(self, item: SourceBinderItem, kind: FolderKind, default_title: str) -> TargetFolder:
        return TargetFolder(
            id=self.idgen.new_id(),
            title=item.title or default_title,
            kind=kind,
            created=item.created,
        )

    # -- tree walk ----------------------------------------------------------

    def convert_children(self, children: list[SourceBinderItem], folder: TargetFolder) -> None:
        for child in children:
            self.checkpoint()
            node = self.convert_item(child)
            if node is not None:
                attach(folder, node)

    def convert_item(self, item: SourceBinderItem) -> TargetFolder | TargetDocument | None:
        kind = item.type

        if kind.is_media:
            self.warn("Media item skipped (not yet supported)", item.title, "info")
            self.skip_subtree(item)
            self.advance(item, count_items([item]))
            return None
        if kind is ItemType.TRASH_ROOT and not self.options.import_trash:
            self.skip_subtree(item)
            self.advance(item, count_items([item]))
            return None

        files = resolve_item_files(self.root, item, self.layout)
        has_content = files is not None and files.content.is_file()
        self.advance(item)

        if kind is ItemType.TEXT:
            if not item.children:
                return self.document(item, files)
            folder = self.folder(item)
            if has_content:
                attach(folder, self.document(item, files))
            self.convert_children(item.children, folder)
            return folder

        if kind.is_folder or item.children:
            if not item.children:
                return self.document(item, files) if has_content else self.folder(item)
            folder = self.folder(item)
            if has_content:
                attach(folder, self.document(item, files))
            self.convert_children(item.children, folder)
            return folder

        if has_content:
            return self.document(item, files)
        label = item.raw_type or "unknown"
        self.warn(f"Unsupported item type '{label}' skipped", item.title, "info")
        self.skipped += 1
        return None

    def folder(self, item: SourceBinderItem) -> TargetFolder:
        self.folders += 1
        return TargetFolder(id=self.idgen.new_id(), title=item.title, created=item.created)

    def document(self, item: SourceBinderItem, files: ItemFiles | None) -> TargetDocument:
        content = ""
        try:
            content = self.read_content(item, files)
        except MissingContentError:
            self.warn("Content file missing; imported with empty content", item.title)
        except ScrivenerImportError as e:
            self.warn(e.message, item.title)

        icon = map_icon(item.icon, item.type)
        if not icon.recognized:
            self.warn(f"Unrecognized icon '{item.icon}'; using the default icon", item.title, "info")

        self.documents += 1
        return TargetDocument(
            id=self.idgen.new_id(),
            title=item.title,
            content=content,
            synopsis=self.read_synopsis(item, files),
            notes=self.read_notes(files),
            keywords=[self.keyword_names[k] for k in item.keyword_ids if k in self.keyword_names],
            label_id=self.label_map.get(item.label_id) if item.label_id is not None else None,
            status_id=self.status_map.get(item.status_id) if item.status_id is not None else None,
            icon_name=icon.name,
            icon_color=icon.color_hex,
            include_in_compile=item.include_in_compile,
            target_word_count=item.target_word_count,
            created=item.created,
            modified=item.modified,
        )

    # -- per-item files -----------------------------------------------------

    def read_content(self, item: SourceBinderItem, files: ItemFiles | None) -> str:
        if files is None or not files.content.is_file():
            raise MissingContentError(item.uuid or str(item.id))
        try:
            data = files.content.read_bytes()
        except OSError as e:
            raise MissingContentError(item.uuid or str(item.id)) from e

        try:
            conversion = self.converter.convert_with_report(data)
        except RtfConversionFailedError as e:
            self.warn(f"{e.message}; imported as plain text", item.title)
            return normalize_markdown(plain_text_fallback(data))

        if conversion.dropped_features:
            dropped = ", ".join(sorted(_FEATURE_NAMES[f] for f in conversion.dropped_features))
            self.warn(f"Unsupported formatting dropped: {dropped}", item.title, "info")
        return conversion.markdown

    def read_notes(self, files: ItemFiles | None) -> str:
        if files is None or not files.notes.is_file():
            return ""
        try:
            data = files.notes.read_bytes()
        except OSError as e:
            logger.debug("notes_unreadable", path=str(files.notes), error=str(e))
            return ""
        try:
            return self.converter.convert(data)
        except RtfConversionFailedError:
            return normalize_markdown(plain_text_fallback(data))

    def read_synopsis(self, item: SourceBinderItem, files: ItemFiles | None) -> str:
        synopsis = item.synopsis or ""
        if files is None:
            return synopsis
        for path in files.synopsis:
            if path.is_file():
                try:
                    return path.read_bytes().decode("utf-8", errors="replace").strip()
                except OSError as e:
                    logger.debug("synopsis_unreadable", path=str(path), error=str(e))
        return synopsis

    def read_history(self) -> WritingHistory:
        path = find_history_file(self.root)
        if path is None:
            return WritingHistory()
        try:
            return parse_writing_history(path)
        except ScrivenerImportError as e:
            self.warn(f"Could not import writing history: {e.message}", HISTORY_FILENAME, "info")
            return WritingHistory()


def attach(folder: TargetFolder, node: TargetFolder | TargetDocument) -> None:
    """Append ``node`` to ``folder`` with the next dense sibling order."""
    node.order = len(folder.subfolders) + len(folder.documents)
    if isinstance(node, TargetFolder):
        folder.subfolders.append(node)
    else:
        folder.documents.append(node)


class ScrivenerImporter:
    """Reusable entry point holding the collaborators; each import is independent."""

    def __init__(
        self,
        idgen: IdGenerator | None = None,
        converter: RtfToMarkdownConverter | None = None,
    ):
        self.idgen = idgen or HexId()
        self.converter = converter or RtfToMarkdownConverter()

    def import_project(
        self,
        path: Path,
        options: ImportOptions | None = None,
        progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> ImportResult:
        logger.info("import_started", path=str(path))
        run = _ImportRun(
            Path(path),
            options or ImportOptions(),
            progress,
            cancel,
            self.idgen,
            self.converter,
        )
        return run.execute()


def import_project(
    path: Path,
    options: ImportOptions | None = None,
    progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
    idgen: IdGenerator | None = None,
) -> ImportResult:
    """Import the bundle at ``path``.

    Raises:
        ScrivenerImportError: a subclass describing why nothing was imported
    """
    return ScrivenerImporter(idgen=idgen).import_project(path, options, progress, cancel)


async def import_project_async(
    path: Path,
    options: ImportOptions | None = None,
    progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
    idgen: IdGenerator | None = None,
) -> ImportResult:
    """``import_project`` on a worker thread; ``progress`` runs on that thread."""
    return await asyncio.to_thread(import_project, path, options, progress, cancel, idgen)
