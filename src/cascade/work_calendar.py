"""Working calendar evaluation: working days, shift hours and duration arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from .exceptions import InvalidCalendarError, InvalidDurationError

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DAYS_PER_WEEK = 7
SECONDS_PER_HOUR = 3600


def _hours_between(start: time, end: time) -> float:
    delta = datetime.combine(date.min, end) - datetime.combine(date.min, start)
    return delta.total_seconds() / SECONDS_PER_HOUR


@dataclass(frozen=True)
class CalendarException:
    """A date range that overrides the weekly pattern.

    Non-working exceptions model holidays; working exceptions turn an
    otherwise free day (e.g. a Saturday) into a working day.
    """

    start: date
    end: date | None = None  # Inclusive; None means a single day
    is_working: bool = False
    name: str = ""

    def covers(self, day: date) -> bool:
        """Check whether the given day falls within this exception."""
        return self.start <= day <= (self.end or self.start)


@dataclass(frozen=True)
class WorkingCalendar:
    """Weekly working pattern split into a morning and an afternoon shift.

    All operations are pure: they return new datetimes and never mutate
    their arguments. Datetimes keep whatever tzinfo the caller passed in.
    """

    working_weekdays: frozenset[int] = frozenset({0, 1, 2, 3, 4})  # Monday = 0
    morning_start: time = time(8, 0)
    morning_end: time = time(12, 0)
    afternoon_start: time = time(13, 0)
    afternoon_end: time = time(17, 0)
    exceptions: tuple[CalendarException, ...] = ()
    max_search_days: int = 366  # Horizon for next_working_day when exceptions apply

    @classmethod
    def standard(cls) -> WorkingCalendar:
        """Monday to Friday, 08:00-12:00 and 13:00-17:00."""
        return cls()

    @property
    def hours_per_day(self) -> float:
        """Working hours in one working day, derived from the two shifts."""
        return _hours_between(self.morning_start, self.morning_end) + _hours_between(
            self.afternoon_start, self.afternoon_end
        )

    @property
    def _search_limit(self) -> int:
        # Days to scan for a working day before giving up
        return self.max_search_days if self.exceptions else DAYS_PER_WEEK + 1

    def validate(self) -> None:
        """Check the calendar can be used for date arithmetic.

        Raises:
            InvalidCalendarError: If shifts are inverted or overlap, no day is
                ever a working day, or hours_per_day is not positive
        """
        if self.morning_end <= self.morning_start:
            raise InvalidCalendarError(
                f"Morning shift ends ({self.morning_end}) before it starts ({self.morning_start})"
            )
        if self.afternoon_end <= self.afternoon_start:
            raise InvalidCalendarError(
                f"Afternoon shift ends ({self.afternoon_end}) before it starts "
                f"({self.afternoon_start})"
            )
        if self.afternoon_start < self.morning_end:
            raise InvalidCalendarError("Afternoon shift starts before the morning shift ends")
        if self.hours_per_day <= 0:
            raise InvalidCalendarError(f"hours_per_day must be positive, got {self.hours_per_day}")
        invalid_days = [day for day in self.working_weekdays if not 0 <= day < DAYS_PER_WEEK]
        if invalid_days:
            raise InvalidCalendarError(f"Invalid weekday numbers: {sorted(invalid_days)}")
        if not self.working_weekdays and not any(exc.is_working for exc in self.exceptions):
            raise InvalidCalendarError("Calendar has no working days")
        if self.max_search_days < DAYS_PER_WEEK:
            raise InvalidCalendarError("max_search_days must cover at least one week")

    def is_working_day(self, day: date | datetime) -> bool:
        """True if the day is a working day (exceptions take precedence)."""
        if isinstance(day, datetime):
            day = day.date()
        for exception in self.exceptions:
            if exception.covers(day):
                return exception.is_working
        return day.weekday() in self.working_weekdays

    def shifts(self, day: date, tz: tzinfo | None = None) -> list[tuple[datetime, datetime]]:
        """Working intervals of a day; empty for non-working days."""
        if not self.is_working_day(day):
            return []
        return [
            (
                datetime.combine(day, self.morning_start, tzinfo=tz),
                datetime.combine(day, self.morning_end, tzinfo=tz),
            ),
            (
                datetime.combine(day, self.afternoon_start, tzinfo=tz),
                datetime.combine(day, self.afternoon_end, tzinfo=tz),
            ),
        ]

    def next_working_day(self, moment: datetime) -> datetime:
        """Roll a moment forward to the nearest working instant (inclusive).

        A moment already inside a shift is returned unchanged. Before a shift
        it snaps to the shift start; at or after the end of the afternoon
        shift, or on a non-working day, it rolls to the next working day's
        morning start.

        Raises:
            InvalidCalendarError: If no working day exists within the search horizon
        """
        limit = self._search_limit
        candidate = moment
        for _ in range(limit):
            for shift_start, shift_end in self.shifts(candidate.date(), moment.tzinfo):
                if candidate < shift_start:
                    return shift_start
                if candidate < shift_end:
                    return candidate
            candidate = datetime.combine(
                candidate.date() + timedelta(days=1), time.min, tzinfo=moment.tzinfo
            )
        raise InvalidCalendarError(f"No working day within {limit} days of {moment.isoformat()}")

    def add_working_hours(self, start: datetime, hours: float) -> datetime:
        """Advance start by the given amount of working time.

        Non-working days are skipped entirely; each working day supplies
        hours_per_day of time across its two shifts. Zero hours returns
        start unchanged (milestones).

        Raises:
            InvalidDurationError: If hours is negative
            InvalidCalendarError: If hours_per_day is not positive
        """
        if hours < 0:
            raise InvalidDurationError(f"Duration cannot be negative: {hours} hours")
        if self.hours_per_day <= 0:
            raise InvalidCalendarError(f"hours_per_day must be positive, got {self.hours_per_day}")
        if hours == 0:
            return start

        remaining = timedelta(hours=hours)
        current = self.next_working_day(start)
        while True:
            day = current.date()
            for shift_start, shift_end in self.shifts(day, start.tzinfo):
                if current >= shift_end:
                    continue
                begin = max(current, shift_start)
                available = shift_end - begin
                if remaining <= available:
                    return begin + remaining
                remaining -= available
            current = self.next_working_day(
                datetime.combine(day + timedelta(days=1), time.min, tzinfo=start.tzinfo)
            )

    def subtract_working_hours(self, end: datetime, hours: float) -> datetime:
        """Move end back by the given amount of working time.

        Inverse of add_working_hours: the result lies inside a shift, and
        add_working_hours(result, hours) returns end whenever end is a
        working instant or a shift end. An end in non-working time is
        treated as the last shift end before it. Zero hours returns end
        unchanged.

        Raises:
            InvalidDurationError: If hours is negative
            InvalidCalendarError: If hours_per_day is not positive, or no
                working day exists within the search horizon
        """
        if hours < 0:
            raise InvalidDurationError(f"Duration cannot be negative: {hours} hours")
        if self.hours_per_day <= 0:
            raise InvalidCalendarError(f"hours_per_day must be positive, got {self.hours_per_day}")
        if hours == 0:
            return end

        remaining = timedelta(hours=hours)
        current = end
        day = end.date()
        idle_days = 0
        while True:
            shifts = self.shifts(day, end.tzinfo)
            idle_days = 0 if shifts else idle_days + 1
            if idle_days > self._search_limit:
                raise InvalidCalendarError(
                    f"No working day within {self._search_limit} days before {end.isoformat()}"
                )
            for shift_start, shift_end in reversed(shifts):
                if current <= shift_start:
                    continue
                finish = min(current, shift_end)
                available = finish - shift_start
                if remaining <= available:
                    return finish - remaining
                remaining -= available
            current = datetime.combine(day, time.min, tzinfo=end.tzinfo)
            day -= timedelta(days=1)

    def working_hours_between(self, start: datetime, end: datetime) -> float:
        """Working time contained in [start, end], in hours."""
        if end <= start:
            return 0.0
        total = timedelta(0)
        day = start.date()
        while day <= end.date():
            for shift_start, shift_end in self.shifts(day, start.tzinfo):
                overlap = min(end, shift_end) - max(start, shift_start)
                if overlap > timedelta(0):
                    total += overlap
            day += timedelta(days=1)
        return total.total_seconds() / SECONDS_PER_HOUR
