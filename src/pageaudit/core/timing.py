"""Timing spans recorded during a run and their aggregation into the result."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

RUNNER_RUN_SPAN = "pageaudit:runner:run"
TIMING_PRECISION_DIGITS = 2
MEASURE_ENTRY_TYPE = "measure"


@dataclass(frozen=True)
class TimingEntry:
    """One completed span; ``start_time`` and ``duration`` are milliseconds."""

    name: str
    start_time: float
    duration: float
    entry_type: str = MEASURE_ENTRY_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "startTime": self.start_time,
            "duration": self.duration,
            "entryType": self.entry_type,
        }

    @classmethod
    def from_value(cls, value: Union["TimingEntry", Mapping[str, Any]]) -> "TimingEntry":
        """Accept an entry or its persisted dict form."""
        if isinstance(value, TimingEntry):
            return value
        return cls(
            name=str(value["name"]),
            start_time=float(value["startTime"]),
            duration=float(value["duration"]),
            entry_type=str(value.get("entryType", MEASURE_ENTRY_TYPE)),
        )


@dataclass(frozen=True)
class SpanHandle:
    """Open span returned by ``Timer.begin_span``."""

    name: str
    start_time: float


@dataclass
class TimingSummary:
    """Deduplicated timing entries plus the total run duration."""

    entries: List[TimingEntry] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "total": self.total,
        }


class Timer:
    """Records spans for one run.

    The timer is created by whoever starts the run and passed explicitly to
    every phase that records spans.
    """

    def __init__(self, clock=None) -> None:
        self._clock = clock or time.perf_counter
        self._origin = self._clock()
        self._entries: List[TimingEntry] = []

    def _now_ms(self) -> float:
        return (self._clock() - self._origin) * 1000.0

    def begin_span(self, name: str) -> SpanHandle:
        logger.debug("span start: %s", name)
        return SpanHandle(name=name, start_time=self._now_ms())

    def end_span(self, handle: SpanHandle) -> TimingEntry:
        entry = TimingEntry(
            name=handle.name,
            start_time=handle.start_time,
            duration=self._now_ms() - handle.start_time,
        )
        self._entries.append(entry)
        logger.debug("span end: %s (%.2fms)", entry.name, entry.duration)
        return entry

    @property
    def entries(self) -> List[TimingEntry]:
        """Snapshot of the entries recorded so far."""
        return list(self._entries)

    def take_entries(self) -> List[TimingEntry]:
        """Return all recorded entries and reset the timer's buffer."""
        entries = self._entries
        self._entries = []
        return entries


def aggregate_timing(
    artifact_entries: Optional[Iterable[Union[TimingEntry, Mapping[str, Any]]]],
    runner_entries: Iterable[TimingEntry],
) -> TimingSummary:
    """Merge collection-phase and orchestration entries.

    Entries sharing a ``start_time`` are one entry: the later one wins while
    keeping the position of the first. Times are rounded to hundredths.
    """
    by_start_time: Dict[float, TimingEntry] = {}
    for raw_entry in [*(artifact_entries or []), *runner_entries]:
        entry = TimingEntry.from_value(raw_entry)
        by_start_time[entry.start_time] = entry

    entries = [
        TimingEntry(
            name=entry.name,
            start_time=round(entry.start_time, TIMING_PRECISION_DIGITS),
            duration=round(entry.duration, TIMING_PRECISION_DIGITS),
            entry_type=entry.entry_type,
        )
        for entry in by_start_time.values()
    ]
    runner_entry = next((e for e in entries if e.name == RUNNER_RUN_SPAN), None)
    total = runner_entry.duration if runner_entry else 0.0
    return TimingSummary(entries=entries, total=total)
