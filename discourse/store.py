from __future__ import annotations

import json
import os
import re
import tempfile
from datetime import datetime
from datetime import timezone
from pathlib import Path
from typing import Any

from discourse.errors import MalformedSnapshot
from discourse.errors import PersistenceError
from discourse.tracker import DurationTracker
from discourse.tracker import Tracked
from discourse.tracker import UNTRACKED
from discourse.tracker import Record
from discourse.tracker import record_days
from discourse.tracker import utc_now


_FRACTION_RE = re.compile(r"\.(\d+)")


class TrackerStore:
    """channel -> lowercased topic -> DurationTracker"""

    def __init__(self, channels: dict[str, dict[str, DurationTracker]] | None = None) -> None:
        self._channels: dict[str, dict[str, DurationTracker]] = channels or {}

    def get_or_create(self, channel: str, topic: str, now: datetime | None = None) -> DurationTracker:
        topics = self._channels.setdefault(channel, {})
        key = topic.lower()
        tracker = topics.get(key)
        if tracker is None:
            tracker = DurationTracker.create(now)
            topics[key] = tracker
        return tracker

    def get(self, channel: str, topic: str) -> DurationTracker | None:
        return self._channels.get(channel, {}).get(topic.lower())

    def topics_for(self, channel: str) -> dict[str, DurationTracker]:
        return dict(self._channels.get(channel, {}))

    def channels(self) -> list[str]:
        return list(self._channels.keys())

    def channel_count(self) -> int:
        return len(self._channels)

    def topic_count(self) -> int:
        return sum(len(topics) for topics in self._channels.values())

    def to_payload(self) -> dict[str, dict[str, dict[str, Any]]]:
        out: dict[str, dict[str, dict[str, Any]]] = {}
        for channel, topics in self._channels.items():
            out[channel] = {
                key: {
                    "last_mention": format_timestamp(tracker.last_mention),
                    "record": record_days(tracker.record),
                }
                for key, tracker in topics.items()
            }
        return out

    @classmethod
    def from_payload(cls, payload: Any, *, source: str = "<memory>") -> TrackerStore:
        if not isinstance(payload, dict):
            raise MalformedSnapshot(source, "top level must be a mapping of channels")
        channels: dict[str, dict[str, DurationTracker]] = {}
        for channel, topics in payload.items():
            if not isinstance(topics, dict):
                raise MalformedSnapshot(source, f"channel {channel!r} must map topics to trackers")
            parsed: dict[str, DurationTracker] = {}
            for key, entry in topics.items():
                parsed[str(key).lower()] = _tracker_from_entry(entry, source=source, where=f"{channel}/{key}")
            channels[str(channel)] = parsed
        return cls(channels)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    text = str(raw or "").strip()
    if not text:
        raise ValueError("empty timestamp")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # other writers may emit nanoseconds; datetime keeps microseconds
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _tracker_from_entry(entry: Any, *, source: str, where: str) -> DurationTracker:
    if not isinstance(entry, dict):
        raise MalformedSnapshot(source, f"{where}: tracker must be a mapping")
    try:
        last_mention = parse_timestamp(entry.get("last_mention"))
    except (TypeError, ValueError) as exc:
        raise MalformedSnapshot(source, f"{where}: bad last_mention ({exc})") from exc

    raw_record = entry.get("record")
    record: Record
    if raw_record is None:
        record = UNTRACKED
    elif isinstance(raw_record, int) and not isinstance(raw_record, bool) and raw_record >= 0:
        record = Tracked(raw_record)
    else:
        raise MalformedSnapshot(source, f"{where}: record must be a non-negative integer or null")
    return DurationTracker(last_mention=last_mention, record=record)


def load_snapshot(path: str | Path) -> TrackerStore:
    """
    Read the full store from path.

    A missing file is the first-run state and yields an empty store. An
    existing file that cannot be parsed raises MalformedSnapshot.
    """
    p = Path(path)
    if not p.exists():
        return TrackerStore()
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedSnapshot(str(p), str(exc)) from exc
    return TrackerStore.from_payload(payload, source=str(p))


def save_snapshot(store: TrackerStore, path: str | Path) -> None:
    p = Path(path)
    payload = store.to_payload()
    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, sort_keys=True)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, p)
        tmp_name = None
    except (OSError, TypeError, ValueError) as exc:
        raise PersistenceError(f"couldn't write snapshot to {p}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass


def quarantine_snapshot(path: str | Path, now: datetime | None = None) -> Path:
    p = Path(path)
    stamp = (now or utc_now()).astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    target = p.with_name(f"{p.name}.corrupt-{stamp}")
    os.replace(p, target)
    return target


def load_or_recover(path: str | Path, *, recover: bool) -> TrackerStore:
    try:
        return load_snapshot(path)
    except MalformedSnapshot as exc:
        if not recover:
            raise
        moved = quarantine_snapshot(path)
        print(f"[Snapshot] {exc}; moved to {moved} and starting empty")
        return TrackerStore()
