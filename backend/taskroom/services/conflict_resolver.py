"""
Greedy overlap resolution for proposed time intervals.

Intervals are placed in ascending start order. A candidate that overlaps an
already placed interval of strictly higher confidence is pushed to start where
that interval ends, keeping its duration, and checked again from scratch.
Overlaps with lower- or equal-confidence intervals are left in place, so only
later-sorted, lower-confidence candidates ever move. A candidate blocked by an
interval that runs to 23:59 has nowhere to go and stays where it is.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Generic, Hashable, Iterable, Optional, TypeVar

from taskroom.core.logger import setup_logger
from taskroom.utils.time_codec import MAX_MINUTE, MINUTES_PER_DAY

logger = setup_logger(__name__)

MAX_SHIFT_ROUNDS = 10

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class ProposedInterval(Generic[K]):
    """A non-null interval competing for a slot in the day."""

    id: K
    start_minute: int
    end_minute: int
    confidence: float
    adjusted: bool = False

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute


def has_overlap(a: ProposedInterval, b: ProposedInterval) -> bool:
    """Open-interval intersection; touching endpoints do not conflict."""
    return a.start_minute < b.end_minute and a.end_minute > b.start_minute


def find_conflicts(intervals: Iterable[ProposedInterval[K]]) -> list[tuple[K, K]]:
    """Return the ids of every overlapping pair, in input order."""
    items = list(intervals)
    conflicts: list[tuple[K, K]] = []
    for i, first in enumerate(items):
        for second in items[i + 1:]:
            if has_overlap(first, second):
                conflicts.append((first.id, second.id))
    return conflicts


def _shift_after(candidate: ProposedInterval[K], blocker: ProposedInterval[K]) -> ProposedInterval[K]:
    start = blocker.end_minute
    end = start + candidate.duration
    if end >= MINUTES_PER_DAY:
        # Same-day clamp: the duration is not preserved here.
        end = MAX_MINUTE
    return replace(candidate, start_minute=start, end_minute=end, adjusted=True)


def _stronger_overlap(
    candidate: ProposedInterval[K],
    accepted: list[ProposedInterval[K]],
) -> Optional[ProposedInterval[K]]:
    for existing in accepted:
        if has_overlap(candidate, existing) and candidate.confidence < existing.confidence:
            return existing
    return None


def resolve_conflicts(
    intervals: Iterable[ProposedInterval[K]],
    fixed: Iterable[ProposedInterval[K]] = (),
) -> list[ProposedInterval[K]]:
    """
    Produce an adjusted interval set.

    Every input interval appears exactly once in the output, flagged with
    ``adjusted=True`` when it was moved. Output order is the processing order
    (ascending original start); callers should match results by id.

    ``fixed`` intervals are treated as already placed: they are never moved
    and are not part of the output.
    """
    # sorted() is stable, so equal starts keep input order.
    ordered = sorted(intervals, key=lambda interval: interval.start_minute)
    placed: list[ProposedInterval[K]] = list(fixed)
    accepted: list[ProposedInterval[K]] = []

    for candidate in ordered:
        current = candidate
        for _ in range(MAX_SHIFT_ROUNDS):
            blocker = _stronger_overlap(current, placed)
            if blocker is None:
                break
            if blocker.end_minute >= MAX_MINUTE:
                logger.warning(
                    f"Interval {current.id} cannot move past {blocker.id} at end of day; "
                    "accepting as-is"
                )
                break
            current = _shift_after(current, blocker)
        else:
            if _stronger_overlap(current, placed) is not None:
                logger.warning(
                    f"Interval {current.id} still overlaps after {MAX_SHIFT_ROUNDS} shifts; "
                    "accepting as-is"
                )
        placed.append(current)
        accepted.append(current)

    return accepted
