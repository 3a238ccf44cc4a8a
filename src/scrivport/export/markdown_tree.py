"""Write an imported project out as a directory of Markdown files."""

from pathlib import Path
from typing import Any

from ..adapters.yaml_codec import MarkdownDocumentCodec, YamlFrontmatter
from ..core.history import WritingHistory
from ..core.model import FolderKind, TargetDocument, TargetFolder, TargetProject
from ..core.ports import ResultWriter
from ..core.utils import numbered_name
from ..log import get_logger
from ..scrivener.models import ImportResult

logger = get_logger(__name__)

PROJECT_FILE = "project.yaml"

_ROOT_DIRS = {
    FolderKind.DRAFT: "draft",
    FolderKind.RESEARCH: "research",
    FolderKind.TRASH: "trash",
}


def history_summary(history: WritingHistory) -> dict[str, Any]:
    longest = history.longest_streak
    return {
        "total_words": history.total_words,
        "days_written": history.days_written,
        "average_words_per_day": round(history.average_words_per_day, 1),
        "current_streak": history.current_streak,
        "longest_streak": {
            "days": longest.length,
            "start": longest.start,
            "end": longest.end,
        },
    }


class MarkdownTreeWriter(ResultWriter):
    """
    Lay out a ``TargetProject`` under ``out``::

        out/project.yaml
        out/draft/01-part-one/01-chapter-1.md
        out/draft/01-part-one/01-chapter-1.notes.md
        out/research/...

    Refuses to write into a non-empty directory unless ``overwrite`` is set.
    """

    def __init__(self, out: Path, codec: MarkdownDocumentCodec | None = None, overwrite: bool = False):
        self.out = out
        self.codec = codec or MarkdownDocumentCodec(YamlFrontmatter())
        self.overwrite = overwrite

    def write(self, result: ImportResult) -> list[Path]:
        project = result.project
        if self.out.exists() and any(self.out.iterdir()) and not self.overwrite:
            raise FileExistsError(f"Output directory is not empty: {self.out}")
        self.out.mkdir(parents=True, exist_ok=True)

        written = [self._write_project(project)]
        for folder in project.folders():
            written.extend(self._write_folder(project, folder, self.out / _ROOT_DIRS[folder.kind]))

        logger.info("tree_written", out=str(self.out), files=len(written))
        return written

    def _write_project(self, project: TargetProject) -> Path:
        data: dict[str, Any] = {
            "title": project.title,
            "labels": [{"id": lb.id, "name": lb.name, "color": lb.color} for lb in project.labels],
            "statuses": [{"id": st.id, "name": st.name} for st in project.statuses],
        }
        if project.targets is not None:
            data["targets"] = {
                "draft_word_count": project.targets.draft_word_count,
                "session_word_count": project.targets.session_word_count,
                "deadline": project.targets.deadline,
            }
        history = project.writing_history
        if not history.is_empty:
            data["writing_history"] = {
                "summary": history_summary(history),
                "days": [
                    {
                        "date": e.day,
                        "words": e.words_written,
                        "draft_words": e.draft_word_count,
                        "duration": e.session_duration,
                    }
                    for e in history.entries
                ],
            }
        path = self.out / PROJECT_FILE
        path.write_text(self.codec.fm.dump(data), encoding="utf-8")
        return path

    def _write_folder(self, project: TargetProject, folder: TargetFolder, path: Path) -> list[Path]:
        path.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for node in folder.children():
            name = numbered_name(node.order, node.title)
            if isinstance(node, TargetFolder):
                written.extend(self._write_folder(project, node, path / name))
            else:
                written.extend(self._write_document(project, node, path, name))
        return written

    def _write_document(
        self, project: TargetProject, doc: TargetDocument, path: Path, name: str
    ) -> list[Path]:
        label = project.label(doc.label_id)
        status = project.status(doc.status_id)
        meta = {
            "id": doc.id,
            "title": doc.title,
            "label": label.name if label else None,
            "status": status.name if status else None,
            "synopsis": doc.synopsis,
            "keywords": doc.keywords,
            "icon": doc.icon_name,
            "icon_color": doc.icon_color,
            "include_in_compile": doc.include_in_compile,
            "target_word_count": doc.target_word_count,
            "created": doc.created,
        }
        doc_path = path / f"{name}.md"
        doc_path.write_text(self.codec.encode_file(meta, doc.content), encoding="utf-8")
        written = [doc_path]
        if doc.notes:
            notes_path = path / f"{name}.notes.md"
            notes_path.write_text(doc.notes.rstrip("\n") + "\n", encoding="utf-8")
            written.append(notes_path)
        return written
