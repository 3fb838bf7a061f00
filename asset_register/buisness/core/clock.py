"""
Clock collaborators

Every "is this date in the future?" check in the engine asks an injected
clock, so tests can pin the calendar.
"""

from datetime import date, datetime, timedelta


class SystemClock:
    """Wall clock (UTC timestamps, local calendar date)"""

    def now(self) -> datetime:
        return datetime.utcnow()

    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock frozen at a given instant; advance() moves it forward"""

    def __init__(self, now: datetime):
        if isinstance(now, date) and not isinstance(now, datetime):
            now = datetime(now.year, now.month, now.day, 9, 0, 0)
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, **kwargs) -> None:
        self._now = self._now + timedelta(**kwargs)

    def __repr__(self):
        return f'<FixedClock {self._now.isoformat()}>'
