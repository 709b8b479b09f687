# 📄 File: billing_engine/modules/subscription_billing/domain/services/billing_calendar.py
# 🧭 Purpose (Layman Explanation):
# Works out when a subscription should be charged next - either on the same day every month
# (like "the 15th") or every fixed number of seconds (like "every 30 days").
# 🧪 Purpose (Technical Summary):
# Billing date calculator (pure function) plus the calendar service and clock interfaces it
# depends on, with UTC Gregorian and wall-clock implementations backed by datetime.
# 🔗 Dependencies:
# abc, datetime
# 🔄 Connected Modules / Calls From:
# subscription_service.py (schedule advance), bootstrap (default collaborators), tests

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class CalendarService(ABC):
    """Converts between unix timestamps and calendar fields."""

    @abstractmethod
    def month_of(self, timestamp: int) -> int:
        """Month (1-12) the timestamp falls in."""
        pass

    @abstractmethod
    def year_of(self, timestamp: int) -> int:
        """Year the timestamp falls in."""
        pass

    @abstractmethod
    def to_timestamp(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0
    ) -> int:
        """Unix timestamp for the given calendar fields."""
        pass


class GregorianCalendarService(CalendarService):
    """UTC Gregorian calendar; leap years and month lengths come from datetime."""

    def month_of(self, timestamp: int) -> int:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).month

    def year_of(self, timestamp: int) -> int:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).year

    def to_timestamp(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0
    ) -> int:
        moment = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
        return int(moment.timestamp())


class Clock(ABC):
    """Source of the current time in unix seconds."""

    @abstractmethod
    def now(self) -> int:
        pass


class SystemClock(Clock):
    """Wall clock in UTC."""

    def now(self) -> int:
        return int(datetime.now(timezone.utc).timestamp())


def calculate_next_billing_time(
    billing_day: int,
    next_billing_time: int,
    billing_cycle_seconds: int,
    now: int,
    calendar: CalendarService
) -> int:
    """
    Compute the next due timestamp for a subscription.

    Calendar mode (billing_day != 0): midnight UTC on ``billing_day`` of the
    month after the one ``now`` falls in. December rolls into January of the
    following year. Late charges are not caught up beyond one month.

    Interval mode (billing_day == 0): ``billing_cycle_seconds`` after the
    current schedule, anchored on ``now`` when nothing is scheduled yet, so
    the periods line up with the original schedule no matter how late a
    charge is processed.

    Args:
        billing_day: 0 for interval mode, 1-28 for calendar mode
        next_billing_time: Currently scheduled due time (0 = unset)
        billing_cycle_seconds: Interval length for interval mode
        now: Current unix time
        calendar: Calendar service used for calendar mode

    Returns:
        The next due unix timestamp
    """
    if billing_day != 0:
        year = calendar.year_of(now)
        month = calendar.month_of(now)
        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1
        return calendar.to_timestamp(year, month, billing_day, 0, 0, 0)

    anchor = next_billing_time if next_billing_time != 0 else now
    return anchor + billing_cycle_seconds
