"""Tests for writing history parsing and statistics."""

from datetime import date

import pytest

from scrivport.core.history import WritingHistory, WritingHistoryEntry
from scrivport.scrivener.errors import FileReadFailedError, XmlParsingFailedError
from scrivport.scrivener.history import find_history_file, parse_day_record, parse_writing_history


def _entry(day: int, words: int) -> WritingHistoryEntry:
    return WritingHistoryEntry(day=date(2025, 1, day), words_written=words)


def _write(tmp_path, body: str):
    path = tmp_path / "writing.history"
    path.write_text(f'<?xml version="1.0"?>\n<WritingHistory>{body}</WritingHistory>', encoding="utf-8")
    return path


def test_parse_attribute_aliases(tmp_path):
    path = _write(tmp_path, """
<Day Date="2025-01-15" WordCount="1500" DraftWordCount="50000" Duration="3600"/>
<Day Date="2025-01-16" Words="200" TotalWords="50200" SessionDuration="90.5"/>
<Day WordCount="10">2025-01-17</Day>
""")

    history = parse_writing_history(path)

    assert [e.words_written for e in history.entries] == [1500, 200, 10]
    first, second, third = history.entries
    assert first.draft_word_count == 50000
    assert first.session_duration == 3600.0
    assert second.draft_word_count == 50200
    assert second.session_duration == 90.5
    assert third.day == date(2025, 1, 17)
    assert third.draft_word_count is None


def test_unusable_records_skipped(tmp_path):
    path = _write(tmp_path, """
<Day Date="2025-01-15" WordCount="100"/>
<Day Date="15/01/2025" WordCount="100"/>
<Day Date="2025-01-16"/>
<Day Date="2025-01-17" WordCount="lots"/>
<Note>ignored</Note>
""")

    history = parse_writing_history(path)

    assert len(history) == 1
    assert history.entries[0].day == date(2025, 1, 15)


def test_entries_sorted_and_deduplicated(tmp_path):
    path = _write(tmp_path, """
<Day Date="2025-01-20" WordCount="5"/>
<Day Date="2025-01-10" WordCount="7"/>
<Day Date="2025-01-20" WordCount="9"/>
""")

    history = parse_writing_history(path)

    assert [e.day.day for e in history.entries] == [10, 20]
    assert history.entry_for(date(2025, 1, 20)).words_written == 9


def test_negative_days_count_toward_total_only():
    history = WritingHistory([_entry(1, 500), _entry(2, -200), _entry(3, 300)])

    assert history.total_words == 600
    assert history.days_written == 2
    assert history.average_words_per_day == 400.0


def test_streaks():
    history = WritingHistory([_entry(1, 100), _entry(2, 100), _entry(3, 100), _entry(5, 100)])

    longest = history.longest_streak
    assert longest.length == 3
    assert longest.start == date(2025, 1, 1)
    assert longest.end == date(2025, 1, 3)
    assert history.current_streak == 1


def test_zero_day_breaks_streak():
    history = WritingHistory([_entry(1, 100), _entry(2, 0), _entry(3, 100), _entry(4, 50)])

    assert history.longest_streak.length == 2
    assert history.current_streak == 2


def test_current_streak_zero_when_latest_day_unproductive():
    history = WritingHistory([_entry(1, 100), _entry(2, -5)])
    assert history.current_streak == 0


def test_best_day_and_recent_window():
    history = WritingHistory([_entry(1, 100), _entry(2, 900), _entry(3, 900), _entry(9, 40)])

    assert history.best_day.day == date(2025, 1, 2)
    assert history.words_in_last_days(7, today=date(2025, 1, 9)) == 940
    assert history.words_in_last_days(1, today=date(2025, 1, 9)) == 40


def test_empty_history():
    history = WritingHistory()

    assert history.is_empty
    assert history.total_words == 0
    assert history.average_words_per_day == 0.0
    assert history.best_day is None
    assert history.current_streak == 0
    assert history.longest_streak.length == 0


def test_parse_day_record_directly():
    entry = parse_day_record({"Date": "2025-03-02", "WordCount": " 42 "})
    assert entry == WritingHistoryEntry(day=date(2025, 3, 2), words_written=42)
    assert parse_day_record({"WordCount": "42"}) is None


def test_malformed_file_raises(tmp_path):
    path = tmp_path / "writing.history"
    path.write_text("<WritingHistory><Day Date='2025-01-01'")

    with pytest.raises(XmlParsingFailedError):
        parse_writing_history(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileReadFailedError):
        parse_writing_history(tmp_path / "writing.history")


def test_find_history_file(tmp_path):
    assert find_history_file(tmp_path) is None
    (tmp_path / "writing.history").write_text("<WritingHistory/>")
    assert find_history_file(tmp_path) == tmp_path / "writing.history"
    (tmp_path / "Files").mkdir()
    (tmp_path / "Files" / "writing.history").write_text("<WritingHistory/>")
    assert find_history_file(tmp_path) == tmp_path / "Files" / "writing.history"
