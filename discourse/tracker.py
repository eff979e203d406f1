from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from datetime import timedelta
from datetime import timezone


@dataclass(frozen=True, slots=True)
class Untracked:
    """No record yet: the topic has not been mentioned twice."""


@dataclass(frozen=True, slots=True)
class Tracked:
    days: int


Record = Untracked | Tracked

UNTRACKED = Untracked()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_aware(value: datetime, *, arg_name: str) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{arg_name} must be timezone-aware")
    return value.astimezone(timezone.utc)


def record_days(record: Record) -> int | None:
    if isinstance(record, Tracked):
        return record.days
    return None


@dataclass(slots=True)
class DurationTracker:
    last_mention: datetime
    record: Record = UNTRACKED

    @classmethod
    def create(cls, now: datetime | None = None) -> DurationTracker:
        stamp = utc_now() if now is None else _require_aware(now, arg_name="now")
        return cls(last_mention=stamp, record=UNTRACKED)

    def _elapsed(self, now: datetime) -> timedelta:
        elapsed = _require_aware(now, arg_name="now") - self.last_mention
        # clock skew: never report negative time
        if elapsed < timedelta(0):
            return timedelta(0)
        return elapsed

    def days_since_last(self, now: datetime) -> int:
        return self._elapsed(now).days

    def fine_time_since_last(self, now: datetime) -> tuple[int, int, int]:
        total_seconds = int(self._elapsed(now).total_seconds())
        return (total_seconds // 3600, (total_seconds // 60) % 60, total_seconds % 60)

    def reset(self, now: datetime) -> None:
        """
        Fold the current gap into the record, then restart the clock.

        The gap is measured against the pre-reset last_mention, so the
        order of the two assignments matters.
        """
        current = self.days_since_last(now)
        if isinstance(self.record, Tracked):
            self.record = Tracked(max(self.record.days, current))
        else:
            self.record = Tracked(current)
        self.last_mention = max(self.last_mention, _require_aware(now, arg_name="now"))
