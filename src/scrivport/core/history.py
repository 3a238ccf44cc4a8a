"""Writing history: one entry per calendar day plus derived statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta


@dataclass(frozen=True)
class WritingHistoryEntry:
    day: date
    words_written: int  # may be negative
    draft_word_count: int | None = None
    session_duration: float | None = None  # seconds


@dataclass(frozen=True)
class Streak:
    length: int = 0
    start: date | None = None
    end: date | None = None


@dataclass
class WritingHistory:
    """Entries ordered by day, unique per day.

    Statistics are computed on demand and never stored.
    """

    entries: list[WritingHistoryEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        by_day: dict[date, WritingHistoryEntry] = {}
        for entry in self.entries:
            by_day[entry.day] = entry  # last one wins
        self.entries = sorted(by_day.values(), key=lambda e: e.day)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def total_words(self) -> int:
        return sum(e.words_written for e in self.entries)

    @property
    def days_written(self) -> int:
        return sum(1 for e in self.entries if e.words_written > 0)

    @property
    def average_words_per_day(self) -> float:
        days = self.days_written
        if days == 0:
            return 0.0
        positive = sum(e.words_written for e in self.entries if e.words_written > 0)
        return positive / days

    @property
    def best_day(self) -> WritingHistoryEntry | None:
        if not self.entries:
            return None
        # max() keeps the first of equal maxima
        return max(self.entries, key=lambda e: e.words_written)

    @property
    def current_streak(self) -> int:
        """Consecutive positive days ending at the most recent entry."""
        streak = 0
        expected: date | None = None
        for entry in reversed(self.entries):
            if entry.words_written <= 0:
                break
            if expected is not None and entry.day != expected:
                break
            streak += 1
            expected = entry.day - timedelta(days=1)
        return streak

    @property
    def longest_streak(self) -> Streak:
        best = Streak()
        run_start: date | None = None
        run_len = 0
        previous: date | None = None
        for entry in self.entries:
            if entry.words_written <= 0:
                run_start, run_len, previous = None, 0, None
                continue
            if previous is not None and entry.day - previous == timedelta(days=1):
                run_len += 1
            else:
                run_start, run_len = entry.day, 1
            previous = entry.day
            if run_len > best.length:
                best = Streak(length=run_len, start=run_start, end=entry.day)
        return best

    def words_in_last_days(self, days: int, today: date) -> int:
        cutoff = today - timedelta(days=days)
        return sum(e.words_written for e in self.entries if cutoff < e.day <= today)

    def entry_for(self, day: date) -> WritingHistoryEntry | None:
        return next((e for e in self.entries if e.day == day), None)
