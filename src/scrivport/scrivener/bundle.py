"""Bundle discovery and read-only validation of a candidate Scrivener project."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from ..log import get_logger
from .errors import InvalidBundleStructureError, MissingProjectFileError, NotABundleError
from .models import (
    BUNDLE_EXTENSION,
    MANIFEST_EXTENSION,
    MANIFEST_FILENAME,
    ContentLayout,
    ItemType,
    ValidationResult,
)

logger = get_logger(__name__)

LEGACY_CONTENT_DIR = Path("Files") / "Docs"
CURRENT_CONTENT_DIR = Path("Files") / "Data"
LARGE_PROJECT_ITEMS = 500
MIN_SUPPORTED_MAJOR = 2


@dataclass(frozen=True)
class ManifestLookup:
    """Result of searching a bundle root for its manifest."""

    path: Path | None
    candidates: tuple[Path, ...] = ()

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


def bundle_root(path: Path) -> Path:
    """Return the bundle directory for ``path`` (a bundle or its manifest file)."""
    if path.is_file() and path.suffix.lower() == MANIFEST_EXTENSION:
        return path.parent
    return path


def find_manifest(root: Path) -> ManifestLookup:
    """Locate the .scrivx file in a bundle root.

    Preference: ``project.scrivx``, then ``<BundleName>.scrivx``, then the
    first other match in name order.
    """
    try:
        candidates = sorted(
            p for p in root.iterdir()
            if p.suffix.lower() == MANIFEST_EXTENSION and p.is_file()
        )
    except OSError:
        return ManifestLookup(path=None)
    if not candidates:
        return ManifestLookup(path=None)

    preferred = [MANIFEST_FILENAME, f"{root.stem}{MANIFEST_EXTENSION}"]
    for name in preferred:
        for candidate in candidates:
            if candidate.name.lower() == name.lower():
                return ManifestLookup(path=candidate, candidates=tuple(candidates))
    return ManifestLookup(path=candidates[0], candidates=tuple(candidates))


def detect_layout(root: Path) -> ContentLayout:
    """Decide which content-directory convention the bundle uses."""
    if (root / CURRENT_CONTENT_DIR).is_dir():
        return ContentLayout.CURRENT
    if (root / LEGACY_CONTENT_DIR).is_dir():
        return ContentLayout.LEGACY
    return ContentLayout.NONE


def fallback_title(root: Path) -> str:
    """Bundle directory name without its extension."""
    name = root.name
    if name.lower().endswith(BUNDLE_EXTENSION):
        name = name[: -len(BUNDLE_EXTENSION)]
    return name


def is_supported_version(version: str | None) -> bool:
    """Manifests without a version are assumed current."""
    if not version:
        return True
    major = version.strip().split(".")[0]
    try:
        return int(major) >= MIN_SUPPORTED_MAJOR
    except ValueError:
        return True


def check_bundle(path: Path) -> tuple[Path, Path]:
    """Fail-fast structural check used by the importer.

    Returns:
        (bundle root, manifest path)

    Raises:
        NotABundleError, MissingProjectFileError, InvalidBundleStructureError
    """
    root = bundle_root(path)
    if not root.is_dir():
        raise NotABundleError(str(path))
    lookup = find_manifest(root)
    if lookup.path is None:
        raise MissingProjectFileError(str(root))
    files_dir = root / "Files"
    if files_dir.exists() and not files_dir.is_dir():
        raise InvalidBundleStructureError("'Files' is not a directory")
    return root, lookup.path


@dataclass
class _ManifestSummary:
    title: str = ""
    item_count: int = 0
    has_media: bool = False
    version: str | None = None


def _summarize_manifest(manifest: Path) -> _ManifestSummary:
    """Shallow pass: project title, binder item count, media presence."""
    summary = _ManifestSummary()
    depth = 0
    for event, elem in DefusedET.iterparse(str(manifest), events=("start", "end")):
        if event == "start":
            if depth == 0:
                summary.version = elem.get("Version")
            depth += 1
            if elem.tag == "BinderItem":
                summary.item_count += 1
                if ItemType.from_manifest(elem.get("Type")).is_media:
                    summary.has_media = True
            continue
        depth -= 1
        if elem.tag == "ProjectTitle" and not summary.title:
            summary.title = (elem.text or "").strip()
        elem.clear()
    return summary


def validate_bundle(path: Path) -> ValidationResult:
    """Inspect a candidate bundle without importing it.

    Never raises; every problem lands in ``errors`` or ``warnings``.
    """
    warnings: list[str] = []
    errors: list[str] = []

    try:
        if not path.exists():
            return ValidationResult(is_valid=False, errors=[f"File does not exist at {path}"])

        root = bundle_root(path)
        if not root.is_dir():
            return ValidationResult(
                is_valid=False,
                errors=["The selected file is not a Scrivener project bundle"],
            )
        if root.suffix.lower() != BUNDLE_EXTENSION:
            warnings.append(f"Folder name does not end in {BUNDLE_EXTENSION}")

        lookup = find_manifest(root)
        if lookup.path is None:
            return ValidationResult(
                is_valid=False,
                project_title=fallback_title(root),
                warnings=warnings,
                errors=["Missing .scrivx file - this may not be a valid Scrivener project"],
            )
        if lookup.ambiguous:
            warnings.append(
                f"Found {len(lookup.candidates)} .scrivx files; using {lookup.path.name}"
            )

        layout = detect_layout(root)
        if layout is ContentLayout.NONE:
            warnings.append("No content directory found - documents may be empty")

        summary = _ManifestSummary()
        try:
            summary = _summarize_manifest(lookup.path)
        except (ParseError, DefusedXmlException, OSError) as e:
            errors.append(f"Could not parse project file: {e}")
        else:
            if not is_supported_version(summary.version):
                errors.append(f"Scrivener version {summary.version} is not supported")
            if summary.item_count > LARGE_PROJECT_ITEMS:
                warnings.append(
                    f"Large project ({summary.item_count} items) - import may take a while"
                )
            if summary.has_media:
                warnings.append("Some media files (images, PDFs) will be skipped")

        return ValidationResult(
            is_valid=not errors,
            project_title=summary.title or fallback_title(root),
            item_count=summary.item_count,
            version=layout.version,
            warnings=warnings,
            errors=errors,
        )
    except Exception as e:  # noqa: BLE001
        logger.warning("validation_crashed", path=str(path), error=str(e))
        return ValidationResult(is_valid=False, warnings=warnings, errors=[*errors, str(e)])
