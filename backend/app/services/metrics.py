"""Metric extractors over already-windowed event rows.

Rows are any objects exposing ``event_type``, ``visitor_id``, ``session_id``
and ``created_at`` attributes (ORM rows, ``Row`` tuples from a projection).
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Protocol

from app.models.event import PAGE_VIEW


class EventRow(Protocol):
    event_type: str
    visitor_id: str | None
    session_id: str | None
    created_at: datetime


def unique_visitor_count(rows: Iterable[EventRow]) -> int:
    """Number of distinct non-null visitor ids."""
    return len({row.visitor_id for row in rows if row.visitor_id is not None})


def page_view_count(rows: Iterable[EventRow]) -> int:
    return sum(1 for row in rows if row.event_type == PAGE_VIEW)


def average_session_duration(rows: Iterable[EventRow]) -> float:
    """Mean session length in minutes.

    Sessions with a single row have no measurable duration and are left out of
    the average altogether rather than counted as zero.
    """
    sessions: defaultdict[str, list[datetime]] = defaultdict(list)
    for row in rows:
        if row.session_id is not None:
            sessions[row.session_id].append(row.created_at)

    durations = [
        (max(stamps) - min(stamps)).total_seconds() / 60
        for stamps in sessions.values()
        if len(stamps) >= 2
    ]
    if not durations:
        return 0.0
    return sum(durations) / len(durations)


def bounce_rate(rows: Iterable[EventRow]) -> float:
    """Percentage of visitors with exactly one row in the window."""
    per_visitor = Counter(row.visitor_id for row in rows if row.visitor_id is not None)
    if not per_visitor:
        return 0.0
    bounced = sum(1 for count in per_visitor.values() if count == 1)
    return bounced / len(per_visitor) * 100


def percent_change(current: float, previous: float) -> float:
    """Relative change from ``previous`` to ``current`` in percent.

    Growth from a zero baseline is reported as a flat 100.
    """
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return (current - previous) / previous * 100


def share(part: int, total: int) -> float:
    """``part`` as a percentage of ``total``, rounded to 2 dp (0 when empty)."""
    if total == 0:
        return 0.0
    return round(part / total * 100, 2)


def top_n_with_other(
    counts: Sequence[tuple[str, int]], limit: int, other_label: str = "Other"
) -> list[tuple[str, int]]:
    """Keep the ``limit`` largest buckets and fold the rest into ``other_label``.

    The result is ordered by count descending, ties by name, with the folded
    bucket last. A real value already named ``other_label`` absorbs the tail
    instead of producing a second bucket with the same name.
    """
    ranked = sorted(counts, key=lambda item: (-item[1], item[0]))
    head = ranked[:limit]
    remainder = sum(count for _, count in ranked[limit:])
    if not remainder:
        return head
    for i, (name, count) in enumerate(head):
        if name == other_label:
            head[i] = (name, count + remainder)
            return head
    head.append((other_label, remainder))
    return head


def metric_result(current: Any, previous: Any, *, rounded: bool = True) -> dict[str, Any]:
    """Build a ``{value, percent_change}`` pair.

    Integer counts keep their exact value; other values are rounded to 2 dp.
    """
    value = round(current, 2) if rounded else current
    return {"value": value, "percent_change": round(percent_change(current, previous), 2)}
