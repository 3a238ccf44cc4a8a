"""Fatal errors raised by the Scrivener import pipeline.

Every subclass carries a user-facing ``message`` and, where one exists, a
``recovery_suggestion``. Per-item helpers also raise ``MissingContentError``
and ``RtfConversionFailedError``; the importer catches those at the item
boundary and records a warning instead.
"""

from __future__ import annotations


class ScrivenerImportError(Exception):
    """Base class for errors that abort an import."""

    recovery_suggestion: str | None = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotABundleError(ScrivenerImportError):
    recovery_suggestion = "Please select a valid .scriv folder or bundle."

    def __init__(self, path: str = ""):
        detail = f": {path}" if path else ""
        super().__init__(f"The selected file is not a valid Scrivener project bundle{detail}")
        self.path = path


class MissingProjectFileError(ScrivenerImportError):
    recovery_suggestion = (
        "The Scrivener project may be corrupted. Try opening it in Scrivener first."
    )

    def __init__(self, bundle: str = ""):
        super().__init__("Could not find a .scrivx project file in the Scrivener bundle.")
        self.bundle = bundle


class XmlParsingFailedError(ScrivenerImportError):
    recovery_suggestion = (
        "The project file may be corrupted. Try creating a backup in Scrivener "
        "and importing that instead."
    )

    def __init__(self, detail: str):
        super().__init__(f"Failed to parse project file: {detail}")
        self.detail = detail


class RtfConversionFailedError(ScrivenerImportError):
    recovery_suggestion = (
        "Some document content may not be imported correctly. You can manually "
        "copy the content from Scrivener."
    )

    def __init__(self, detail: str):
        super().__init__(f"Failed to convert RTF content: {detail}")
        self.detail = detail


class MissingContentError(ScrivenerImportError):
    recovery_suggestion = (
        "The document content file may have been deleted. The document will be "
        "imported with empty content."
    )

    def __init__(self, item_id: str):
        super().__init__(f"Could not find content for document {item_id}.")
        self.item_id = item_id


class UnsupportedVersionError(ScrivenerImportError):
    recovery_suggestion = "Please upgrade your Scrivener project to version 2.x or 3.x format."

    def __init__(self, version: str):
        super().__init__(f"Scrivener version {version} is not supported.")
        self.version = version


class FileReadFailedError(ScrivenerImportError):
    recovery_suggestion = "Check that you have permission to read the file and that it exists."

    def __init__(self, path: str):
        super().__init__(f"Failed to read file: {path}")
        self.path = path


class InvalidBundleStructureError(ScrivenerImportError):
    recovery_suggestion = (
        "The Scrivener project structure is not recognized. Try creating a backup in Scrivener."
    )

    def __init__(self, detail: str):
        super().__init__(f"Invalid Scrivener bundle structure: {detail}")
        self.detail = detail


class ImportCancelledError(ScrivenerImportError):
    def __init__(self) -> None:
        super().__init__("Import was cancelled.")
