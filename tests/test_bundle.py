"""Tests for bundle discovery and validation."""

from pathlib import Path

import pytest

from scrivport.scrivener.bundle import (
    bundle_root,
    check_bundle,
    detect_layout,
    find_manifest,
    validate_bundle,
)
from scrivport.scrivener.errors import (
    InvalidBundleStructureError,
    MissingProjectFileError,
    NotABundleError,
)
from scrivport.scrivener.models import ContentLayout


def test_validate_current_bundle(builder):
    bundle = builder.build(builder.draft(builder.item("Chapter 1")))

    result = validate_bundle(bundle)

    assert result.is_valid
    assert result.errors == []
    assert result.project_title == "My Novel"
    assert result.item_count == 2
    assert result.version == "v3"
    assert result.warnings == []


def test_validate_legacy_bundle(legacy_builder):
    bundle = legacy_builder.build(legacy_builder.draft())

    result = validate_bundle(bundle)

    assert result.is_valid
    assert result.version == "v2"


def test_validate_accepts_manifest_path(builder):
    """Given the .scrivx file itself, its directory is the bundle."""
    bundle = builder.build(builder.draft())

    result = validate_bundle(bundle / "project.scrivx")

    assert result.is_valid
    assert result.project_title == "My Novel"


def test_validate_missing_path(tmp_path):
    result = validate_bundle(tmp_path / "nothing-here.scriv")

    assert not result.is_valid
    assert "does not exist" in result.errors[0]


def test_validate_plain_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")

    result = validate_bundle(path)

    assert not result.is_valid
    assert result.errors


def test_validate_empty_directory(tmp_path):
    """No manifest: fatal error, returned immediately."""
    empty = tmp_path / "Empty.scriv"
    empty.mkdir()

    result = validate_bundle(empty)

    assert not result.is_valid
    assert "Missing .scrivx" in result.errors[0]
    assert result.project_title == "Empty"


def test_validate_unrelated_tree(tmp_path):
    tree = tmp_path / "src"
    (tree / "pkg").mkdir(parents=True)
    (tree / "pkg" / "main.py").write_text("print('hi')")

    result = validate_bundle(tree)

    assert not result.is_valid
    assert result.errors
    assert any(".scriv" in w for w in result.warnings)


def test_validate_truncated_manifest(builder):
    """Malformed XML becomes an error entry, never an exception."""
    bundle = builder.build(builder.draft())
    manifest = bundle / "project.scrivx"
    manifest.write_text(manifest.read_text()[:120])

    result = validate_bundle(bundle)

    assert not result.is_valid
    assert result.errors[0].startswith("Could not parse project file")
    assert result.project_title == "Novel"


def test_validate_no_content_directory_warns(tmp_path):
    bundle = tmp_path / "Bare.scriv"
    bundle.mkdir()
    (bundle / "project.scrivx").write_text(
        "<ScrivenerProject><ProjectTitle>Bare</ProjectTitle><Binder/></ScrivenerProject>"
    )

    result = validate_bundle(bundle)

    assert result.is_valid
    assert "No content directory found - documents may be empty" in result.warnings


def test_validate_media_and_multiple_manifests(builder):
    bundle = builder.build(builder.research(builder.item("Scan", "PDF")))
    (bundle / "Backup.scrivx").write_text((bundle / "project.scrivx").read_text())

    result = validate_bundle(bundle)

    assert result.is_valid
    assert any("2 .scrivx files" in w for w in result.warnings)
    assert any("media" in w for w in result.warnings)


def test_validate_large_project_warns(builder):
    chapters = [builder.item(f"Chapter {n}") for n in range(501)]
    bundle = builder.build(builder.draft(*chapters))

    result = validate_bundle(bundle)

    assert result.item_count == 502
    assert any("Large project" in w for w in result.warnings)


def test_validate_old_version_is_error(builder):
    builder.version = "1.5"
    bundle = builder.build(builder.draft())

    result = validate_bundle(bundle)

    assert not result.is_valid
    assert "not supported" in result.errors[0]


def test_validate_untitled_falls_back_to_bundle_name(builder):
    builder.title = ""
    bundle = builder.build(builder.draft())

    assert validate_bundle(bundle).project_title == "Novel"


def test_find_manifest_preference(tmp_path):
    bundle = tmp_path / "Book.scriv"
    bundle.mkdir()
    for name in ("aaa.scrivx", "Book.scrivx"):
        (bundle / name).write_text("<ScrivenerProject/>")

    assert find_manifest(bundle).path.name == "Book.scrivx"

    (bundle / "project.scrivx").write_text("<ScrivenerProject/>")
    lookup = find_manifest(bundle)
    assert lookup.path.name == "project.scrivx"
    assert lookup.ambiguous


def test_detect_layout(tmp_path):
    assert detect_layout(tmp_path) is ContentLayout.NONE
    (tmp_path / "Files" / "Docs").mkdir(parents=True)
    assert detect_layout(tmp_path) is ContentLayout.LEGACY
    (tmp_path / "Files" / "Data").mkdir()
    assert detect_layout(tmp_path) is ContentLayout.CURRENT


def test_bundle_root_for_manifest_file(builder):
    bundle = builder.build(builder.draft())
    assert bundle_root(bundle / "project.scrivx") == bundle
    assert bundle_root(bundle) == bundle


def test_check_bundle_errors(tmp_path):
    with pytest.raises(NotABundleError):
        check_bundle(tmp_path / "missing.scriv")

    empty = tmp_path / "Empty.scriv"
    empty.mkdir()
    with pytest.raises(MissingProjectFileError):
        check_bundle(empty)

    (empty / "project.scrivx").write_text("<ScrivenerProject/>")
    (empty / "Files").write_text("not a directory")
    with pytest.raises(InvalidBundleStructureError):
        check_bundle(empty)


def test_check_bundle_returns_manifest(builder):
    bundle = builder.build(builder.draft())
    root, manifest = check_bundle(bundle)
    assert root == bundle
    assert manifest == Path(bundle / "project.scrivx")
