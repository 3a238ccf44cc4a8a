"""Tests for writing an imported project as a Markdown tree."""

from datetime import date

import pytest
import yaml

from scrivport.adapters.yaml_codec import MarkdownDocumentCodec, YamlFrontmatter
from scrivport.core.history import WritingHistory, WritingHistoryEntry
from scrivport.export.markdown_tree import MarkdownTreeWriter, history_summary
from scrivport.scrivener import ImportOptions, import_project


@pytest.fixture
def imported(builder):
    builder.label(1, "Chapter")
    builder.status(1, "First Draft")
    builder.keyword(4, "harbor")
    ch1 = builder.item("Chapter 1: The Start", label=1, status=1, keywords=[4], synopsis="Opens")
    ch2 = builder.item("Chapter 2")
    builder.content(ch1, "{\\b Call} me.")
    builder.notes(ch1, "Check dates")
    builder.content(ch2, "More.")
    part = builder.item("Part One", "Folder", [ch1, ch2])
    clip = builder.item("Clipping")
    builder.content(clip, "Saved.")
    builder.history('<Day Date="2025-01-01" WordCount="100"/>')
    bundle = builder.build(builder.draft(part), builder.research(clip))
    return import_project(bundle, ImportOptions())


def test_tree_layout(imported, tmp_path):
    out = tmp_path / "out"

    written = MarkdownTreeWriter(out).write(imported)

    part = out / "draft" / "01-part-one"
    assert (part / "01-chapter-1-the-start.md").is_file()
    assert (part / "01-chapter-1-the-start.notes.md").read_text() == "Check dates\n"
    assert (part / "02-chapter-2.md").is_file()
    assert (out / "research" / "01-clipping.md").is_file()
    assert not (out / "trash").exists()
    assert out / "project.yaml" in written
    assert len(written) == 5


def test_document_frontmatter(imported, tmp_path):
    out = tmp_path / "out"
    MarkdownTreeWriter(out).write(imported)
    text = (out / "draft" / "01-part-one" / "01-chapter-1-the-start.md").read_text()

    meta, body = MarkdownDocumentCodec(YamlFrontmatter()).decode_file(text)

    assert meta["title"] == "Chapter 1: The Start"
    assert meta["label"] == "Chapter"
    assert meta["status"] == "First Draft"
    assert meta["keywords"] == ["harbor"]
    assert meta["synopsis"] == "Opens"
    assert meta["include_in_compile"] is True
    assert meta["created"].startswith("2024-01-05")
    assert "icon_color" not in meta
    assert body == "**Call** me.\n"


def test_project_file(imported, tmp_path):
    out = tmp_path / "out"
    MarkdownTreeWriter(out).write(imported)

    data = yaml.safe_load((out / "project.yaml").read_text())

    assert data["title"] == "My Novel"
    assert [lb["name"] for lb in data["labels"]] == ["Chapter"]
    assert data["statuses"][0]["name"] == "First Draft"
    assert data["writing_history"]["summary"]["total_words"] == 100
    assert data["writing_history"]["days"] == [{"date": "2025-01-01", "words": 100}]


def test_refuses_non_empty_directory(imported, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "keep.txt").write_text("mine")

    with pytest.raises(FileExistsError):
        MarkdownTreeWriter(out).write(imported)

    MarkdownTreeWriter(out, overwrite=True).write(imported)
    assert (out / "keep.txt").read_text() == "mine"
    assert (out / "project.yaml").is_file()


def test_history_summary():
    history = WritingHistory([
        WritingHistoryEntry(day=date(2025, 1, 1), words_written=100),
        WritingHistoryEntry(day=date(2025, 1, 2), words_written=51),
    ])

    summary = history_summary(history)

    assert summary["total_words"] == 151
    assert summary["average_words_per_day"] == 75.5
    assert summary["longest_streak"] == {
        "days": 2, "start": date(2025, 1, 1), "end": date(2025, 1, 2)
    }


def test_frontmatter_round_trip_without_meta():
    codec = MarkdownDocumentCodec(YamlFrontmatter())
    assert codec.encode_file({}, "Body only\n\n") == "Body only\n"
    assert codec.decode_file("No frontmatter") == ({}, "No frontmatter")
