"""Display ranking helpers: priority score, labels, date filters, paging.

None of this is persisted; it mirrors how task lists are ordered and sliced
for display.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, Sequence, TypeVar

from .models import Task, as_utc

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Page",
    "priority_score",
    "priority_label",
    "rank_tasks",
    "in_date_range",
    "paginate",
    "task_display_date",
    "filter_tasks_by_date",
]

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 5

# (max days until due, bonus), checked in order
_URGENCY_BONUS: tuple[tuple[int, int], ...] = ((0, 100), (1, 60), (3, 40), (7, 20))


def _today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def _as_date(value: dt.date | dt.datetime | None) -> Optional[dt.date]:
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return as_utc(value).date()
    return value


def priority_score(
    priority: int,
    due_date: dt.date | dt.datetime | None,
    today: Optional[dt.date] = None,
) -> int:
    """``priority * 30`` plus a bonus for approaching due dates."""
    score = priority * 30
    due = _as_date(due_date)
    if due is None:
        return score
    days = (due - (today or _today())).days
    for limit, bonus in _URGENCY_BONUS:
        if days <= limit:
            return score + bonus
    return score


def priority_label(score: int) -> str:
    if score >= 120:
        return "High"
    if score >= 70:
        return "Medium"
    return "Low"


def rank_tasks(tasks: Iterable[Task], today: Optional[dt.date] = None) -> list[Task]:
    """Highest score first; ties keep their incoming order."""
    today = today or _today()
    return sorted(
        tasks,
        key=lambda task: priority_score(task.priority, task.due_date, today),
        reverse=True,
    )


def in_date_range(
    value: dt.date | dt.datetime | None,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> bool:
    """Inclusive range check; open bounds always match."""
    day = _as_date(value)
    if day is None:
        return start is None and end is None
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice ``items`` into a 1-based page."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total=len(items),
    )


def task_display_date(task: Task) -> Optional[dt.date]:
    """Due date, falling back to creation date."""
    return _as_date(task.due_date or task.created_at)


def filter_tasks_by_date(
    tasks: Iterable[Task],
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    key: Callable[[Task], Optional[dt.date]] = task_display_date,
) -> list[Task]:
    return [task for task in tasks if in_date_range(key(task), start, end)]
