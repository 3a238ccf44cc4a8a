"""Reading Scrivener project bundles."""

from .bundle import validate_bundle
from .errors import ScrivenerImportError
from .history import parse_writing_history
from .importer import ScrivenerImporter, import_project, import_project_async
from .manifest import parse_manifest
from .markdown import RtfToMarkdownConverter
from .models import ImportOptions, ImportResult, ImportWarning, ValidationResult

__all__ = [
    "validate_bundle",
    "parse_manifest",
    "parse_writing_history",
    "import_project",
    "import_project_async",
    "ScrivenerImporter",
    "RtfToMarkdownConverter",
    "ScrivenerImportError",
    "ImportOptions",
    "ImportResult",
    "ImportWarning",
    "ValidationResult",
]
