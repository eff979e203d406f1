from __future__ import annotations

import asyncio
import importlib
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def _noop_async(*args, **kwargs):
    return None


def _try_import_or_skip(module_name: str, pip_name: str | None = None) -> bool:
    try:
        importlib.import_module(module_name)
        return True
    except ModuleNotFoundError:
        install_name = pip_name or module_name
        print(
            f"Smoke wiring check skipped: missing dependency '{module_name}'. "
            f"Install requirements and retry (e.g. `pip install {install_name}` "
            f"or `pip install -e .`)."
        )
        return False


class _FakeChannel:
    def __init__(self):
        self.sent: list[str] = []

    async def send(self, text, **kwargs):
        self.sent.append(text)


async def _exercise_dispatcher(dispatcher, notice_targets_channel: _FakeChannel) -> None:
    from discourse.service import MessageEvent

    dispatcher.submit(MessageEvent(target="#smoke", source_nick="alice", text="whismur: rust"))
    dispatcher.submit(MessageEvent(target="#smoke", source_nick="alice", text="whismur: Rust"))
    await dispatcher.drain()
    if len(notice_targets_channel.sent) != 2:
        raise RuntimeError(f"Expected 2 notices, got {notice_targets_channel.sent!r}")


def _main() -> int:
    if not _try_import_or_skip("discord", "discord.py"):
        return 0
    if not _try_import_or_skip("yaml", "PyYAML"):
        return 0

    import discord
    from discord.ext import commands
    from discourse.store import TrackerStore
    from discourse.store import load_snapshot
    from discourse.store import save_snapshot
    from misc.runtime_wiring import wire_bot_runtime

    intents = discord.Intents.none()
    bot = commands.Bot(command_prefix="!", intents=intents)
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ticks = iter([start, start + timedelta(hours=1)])

    with tempfile.TemporaryDirectory() as tmp:
        snapshot_path = str(Path(tmp) / "discourse.json")
        dispatcher = wire_bot_runtime(
            bot,
            store=TrackerStore(),
            nickname="whismur",
            snapshot_path=snapshot_path,
            save_snapshot_func=save_snapshot,
            allowed_channel_ids=set(),
            user_is_owner=lambda user: True,
            send_chunked=_noop_async,
            clock=lambda: next(ticks),
        )

        expected_commands = {"topics", "discourse_status", "discourse_save"}
        existing_commands = set(bot.all_commands.keys())
        missing = sorted(expected_commands - existing_commands)
        if missing:
            raise RuntimeError(f"Missing expected commands: {missing}")

        for name in ("on_ready", "on_message", "on_guild_join"):
            handler = getattr(bot, name, None)
            if handler is None or getattr(handler, "__module__", "") != "misc.events_runtime":
                raise RuntimeError(f"Runtime event {name} was not registered")

        channel = _FakeChannel()
        bot._discourse_notice_targets.remember("#smoke", channel)
        asyncio.run(_exercise_dispatcher(dispatcher, channel))

        reloaded = load_snapshot(snapshot_path)
        if reloaded.get("#smoke", "rust") is None:
            raise RuntimeError("Snapshot did not persist the tracked topic")

    print("Smoke wiring check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
