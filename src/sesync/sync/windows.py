"""Window policies for walking provider history backwards in bounded chunks."""

import math
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta


def start_of_month(d: date) -> date:
    """First day of the month containing ``d``."""
    return d.replace(day=1)


def start_of_previous_month(d: date) -> date:
    """First day of the month before the one containing ``d``."""
    return start_of_month(start_of_month(d) - timedelta(days=1))


def months_back(d: date, months: int) -> date:
    """First day of the month ``months`` calendar months before ``d``."""
    result = start_of_month(d)
    for _ in range(months):
        result = start_of_previous_month(result)
    return result


@dataclass(frozen=True)
class WindowPolicy:
    """How far back one provider request may reach.

    Exactly one of three shapes:

    * ``calendar_month=True``: windows are calendar months.
    * ``days=N``: windows are fixed spans of ``N`` days.
    * neither: a single window covering the whole range (for endpoints that
      return a complete history regardless of the requested range).
    """

    days: int | None = None
    calendar_month: bool = False

    def __post_init__(self) -> None:
        if self.days is not None and self.days <= 0:
            raise ValueError("Window length must be a positive number of days")
        if self.days is not None and self.calendar_month:
            raise ValueError("A window policy is either calendar-month or fixed-day, not both")

    @classmethod
    def monthly(cls) -> "WindowPolicy":
        return cls(calendar_month=True)

    @classmethod
    def fixed_days(cls, days: int) -> "WindowPolicy":
        return cls(days=days)

    @classmethod
    def unbounded(cls) -> "WindowPolicy":
        return cls()

    def first_start(self, end: date) -> date:
        """Start of the newest window ending at ``end``.

        On the first day of a month the calendar policy steps back a whole
        month, so the newest window is never empty.
        """
        if self.calendar_month:
            start = start_of_month(end)
            return start if start < end else start_of_previous_month(end)
        if self.days is not None:
            return end - timedelta(days=self.days)
        return date.min

    def previous_start(self, start: date) -> date:
        """Start of the window preceding the one that starts at ``start``."""
        if self.calendar_month:
            return start_of_previous_month(start)
        if self.days is not None:
            return start - timedelta(days=self.days)
        return date.min


def iter_windows(today: date, until: date, policy: WindowPolicy) -> Iterator[tuple[date, date]]:
    """Yield half-open ``(window_start, end)`` pairs from ``today`` back to ``until``.

    Ends strictly decrease, every start is clamped to ``until`` and the window
    starting at ``until`` is the last one yielded.
    """
    end = today
    start = max(policy.first_start(end), until)

    while until <= start < end:
        yield start, end
        end = start
        start = max(policy.previous_start(start), until)


def progress_percentage(days_remaining: int, total_days: int) -> int:
    """Percentage of the range already covered, rounded half away from zero."""
    if total_days <= 0:
        return 100
    percentage = 100.0 * (1.0 - (days_remaining / total_days))
    return int(math.floor(percentage + 0.5))
