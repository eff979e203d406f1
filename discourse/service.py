from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime

from config.defaults import EMPTY_TOPIC_REPLY
from discourse.store import TrackerStore
from discourse.store import format_timestamp
from discourse.tracker import DurationTracker
from discourse.tracker import Tracked
from discourse.tracker import record_days
from misc.command_parser import parse_addressed_command


@dataclass(frozen=True, slots=True)
class JoinEvent:
    channel: str
    actor_prefix: str


@dataclass(frozen=True, slots=True)
class MessageEvent:
    target: str
    source_nick: str | None
    text: str
    # transport handle for the originating channel, distinct from the scope key
    route: str | None = None


@dataclass(frozen=True, slots=True)
class FlushRequest:
    reason: str = "manual"


Event = JoinEvent | MessageEvent | FlushRequest


@dataclass(frozen=True, slots=True)
class Notice:
    target: str
    text: str
    route: str | None = None


@dataclass(slots=True)
class EventOutcome:
    notices: list[Notice] = field(default_factory=list)
    log_lines: list[str] = field(default_factory=list)
    mutated: bool = False


def format_first_mention(topic: str, target: str) -> str:
    return f'Now tracking "{topic}" for {target}.'


def format_same_day(hours: int, minutes: int, seconds: int, topic: str, target: str, record: int) -> str:
    return (
        f'It has been {hours}:{minutes:02}:{seconds:02} since {target} '
        f'discussed "{topic}". Record: [{record}] days'
    )


def format_days(days: int, topic: str, target: str, record: int) -> str:
    return f'It has been [{days}] days since {target} discussed "{topic}". Record: [{record}]'


def handle_join(event: JoinEvent, *, bot_nick: str) -> EventOutcome:
    outcome = EventOutcome()
    if bot_nick and event.actor_prefix.startswith(bot_nick):
        outcome.log_lines.append(f"[Join] Joined to {event.channel}.")
    return outcome


def handle_message(event: MessageEvent, store: TrackerStore, *, bot_nick: str, now: datetime) -> EventOutcome:
    outcome = EventOutcome()
    cmd = parse_addressed_command(
        bot_nick=bot_nick,
        target=event.target,
        source_nick=event.source_nick,
        text=event.text,
    )
    if cmd is None:
        return outcome

    target = cmd.reply_target
    if cmd.is_empty:
        outcome.notices.append(Notice(target=target, text=EMPTY_TOPIC_REPLY, route=event.route))
        return outcome

    topic = cmd.body
    tracker = store.get_or_create(target, cmd.topic_key, now)
    if not isinstance(tracker.record, Tracked):
        tracker.record = Tracked(0)
        outcome.notices.append(Notice(target=target, text=format_first_mention(topic, target), route=event.route))
    else:
        record = tracker.record.days
        current = tracker.days_since_last(now)
        if current == 0:
            hours, minutes, seconds = tracker.fine_time_since_last(now)
            text = format_same_day(hours, minutes, seconds, topic, target, record)
        else:
            text = format_days(current, topic, target, record)
        outcome.notices.append(Notice(target=target, text=text, route=event.route))
        tracker.reset(now)

    outcome.mutated = True
    return outcome


def handle_event(event: Event, store: TrackerStore, *, bot_nick: str, now: datetime) -> EventOutcome:
    """
    Apply one inbound event to the store and describe what should go out.

    The store is mutated in place; the caller is responsible for delivering
    the notices and persisting the store when outcome.mutated is set.
    """
    if isinstance(event, JoinEvent):
        return handle_join(event, bot_nick=bot_nick)
    if isinstance(event, MessageEvent):
        return handle_message(event, store, bot_nick=bot_nick, now=now)
    if isinstance(event, FlushRequest):
        return EventOutcome(log_lines=[f"[Snapshot] flush requested ({event.reason})"], mutated=True)
    raise TypeError(f"Unsupported event: {event!r}")


def format_topics_listing(scope: str, topics: dict[str, DurationTracker], *, now: datetime) -> str:
    if not topics:
        return f"Nothing tracked for {scope} yet."
    lines = [f"Tracked topics for {scope}:"]
    for key in sorted(topics):
        tracker = topics[key]
        days = tracker.days_since_last(now)
        record = record_days(tracker.record)
        record_text = f"[{record}] days" if record is not None else "none yet"
        lines.append(
            f"- {key or '(empty)'}: {days} days since last mention "
            f"({format_timestamp(tracker.last_mention)}), record {record_text}"
        )
    return "\n".join(lines)


def format_status(
    store: TrackerStore,
    *,
    snapshot_path: str,
    saves_ok: int,
    last_save_error: str | None,
    pending: int,
) -> str:
    lines = [
        f"channels={store.channel_count()} topics={store.topic_count()} pending_events={pending}",
        f"snapshot={snapshot_path} saves_ok={saves_ok}",
    ]
    if last_save_error:
        lines.append(f"last_save_error={last_save_error}")
    return "\n".join(lines)
