"""scrivport - import Scrivener projects into a Markdown document tree."""

__version__ = "0.3.0"
