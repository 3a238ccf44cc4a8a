"""Parser for Scrivener's ``writing.history`` daily activity log.

The file is XML with one element per day::

    <Day Date="2025-01-15" WordCount="1500" DraftWordCount="50000"/>
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from ..core.history import WritingHistory, WritingHistoryEntry
from ..log import get_logger
from .errors import FileReadFailedError, XmlParsingFailedError

logger = get_logger(__name__)

HISTORY_FILENAME = "writing.history"
DATE_FORMAT = "%Y-%m-%d"

_WORDS_ATTRS = ("WordCount", "Words")
_TOTAL_ATTRS = ("DraftWordCount", "TotalWords")
_DURATION_ATTRS = ("Duration", "SessionDuration")


def find_history_file(bundle: Path) -> Path | None:
    """``Files/writing.history`` first, then the bundle root."""
    for candidate in (bundle / "Files" / HISTORY_FILENAME, bundle / HISTORY_FILENAME):
        if candidate.is_file():
            return candidate
    return None


def _first(attrs: dict[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        if name in attrs:
            return attrs[name]
    return None


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _to_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def parse_day_record(attrs: dict[str, str], text: str | None = None) -> WritingHistoryEntry | None:
    """Build one entry, or None when its date or word count is unusable."""
    day = _parse_day(attrs.get("Date") or text)
    words = _to_int(_first(attrs, _WORDS_ATTRS))
    if day is None or words is None:
        return None
    return WritingHistoryEntry(
        day=day,
        words_written=words,
        draft_word_count=_to_int(_first(attrs, _TOTAL_ATTRS)),
        session_duration=_to_float(_first(attrs, _DURATION_ATTRS)),
    )


def parse_writing_history(path: Path) -> WritingHistory:
    """Parse a writing.history file.

    Raises:
        FileReadFailedError: the file cannot be opened
        XmlParsingFailedError: the file is not well-formed XML
    """
    entries: list[WritingHistoryEntry] = []
    skipped = 0
    try:
        for _, elem in DefusedET.iterparse(str(path), events=("end",)):
            if elem.tag == "Day":
                entry = parse_day_record(dict(elem.attrib), elem.text)
                if entry is None:
                    skipped += 1
                else:
                    entries.append(entry)
                elem.clear()
    except ParseError as e:
        raise XmlParsingFailedError(str(e)) from e
    except DefusedXmlException as e:
        raise XmlParsingFailedError(f"refused unsafe XML ({type(e).__name__})") from e
    except OSError as e:
        raise FileReadFailedError(str(path)) from e

    history = WritingHistory(entries)
    logger.debug("writing_history_parsed", path=str(path), days=len(history), skipped=skipped)
    return history
