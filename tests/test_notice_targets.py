from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace

try:
    import discord
    from misc.notice_targets import NoticeTargets
    from misc.notice_targets import route_key_for
except ModuleNotFoundError:
    discord = None
    NoticeTargets = None

from discourse.errors import TransportError


class _FakeChannel:
    def __init__(self, error: Exception | None = None):
        self.sent: list[tuple[str, dict]] = []
        self.error = error

    async def send(self, text, **kwargs):
        if self.error is not None:
            raise self.error
        self.sent.append((text, kwargs))


class _FakeResponse:
    status = 403
    reason = "Forbidden"


@unittest.skipIf(NoticeTargets is None, "discord.py not installed")
class NoticeTargetsTests(unittest.IsolatedAsyncioTestCase):
    async def test_sends_silently_to_remembered_target(self):
        targets = NoticeTargets()
        channel = _FakeChannel()
        targets.remember("#c", channel)
        await targets.send_notice("#c", 'Now tracking "foo" for #c.')
        self.assertEqual(channel.sent, [('Now tracking "foo" for #c.', {"silent": True})])

    async def test_latest_messageable_wins(self):
        targets = NoticeTargets()
        old, new = _FakeChannel(), _FakeChannel()
        targets.remember("bob", old)
        targets.remember("bob", new)
        await targets.send_notice("bob", "hi")
        self.assertEqual(old.sent, [])
        self.assertEqual(len(new.sent), 1)
        self.assertEqual(len(targets), 1)

    async def test_unknown_target_is_transport_error(self):
        with self.assertRaises(TransportError):
            await NoticeTargets().send_notice("#nowhere", "hi")

    async def test_http_failure_is_transport_error(self):
        targets = NoticeTargets()
        targets.remember("#c", _FakeChannel(error=discord.Forbidden(_FakeResponse(), "missing permissions")))
        with self.assertRaises(TransportError):
            await targets.send_notice("#c", "hi")

    async def test_network_failures_are_transport_errors(self):
        for error in (OSError("connection reset"), asyncio.TimeoutError()):
            with self.subTest(error=type(error).__name__):
                targets = NoticeTargets()
                targets.remember("#c", _FakeChannel(error=error))
                with self.assertRaises(TransportError):
                    await targets.send_notice("#c", "hi")

    async def test_route_wins_over_shared_channel_name(self):
        targets = NoticeTargets()
        first_guild, second_guild = _FakeChannel(), _FakeChannel()
        targets.remember("channel:1", first_guild)
        targets.remember("channel:2", second_guild)
        targets.remember("#general", second_guild)
        await targets.send_notice("#general", "hi", route="channel:1")
        self.assertEqual(first_guild.sent, [("hi", {"silent": True})])
        self.assertEqual(second_guild.sent, [])

    async def test_unknown_route_falls_back_to_target(self):
        targets = NoticeTargets()
        channel = _FakeChannel()
        targets.remember("#c", channel)
        await targets.send_notice("#c", "hi", route="channel:404")
        self.assertEqual(len(channel.sent), 1)

    def test_route_key_uses_channel_id(self):
        self.assertEqual(route_key_for(SimpleNamespace(id=55)), "channel:55")


if __name__ == "__main__":
    unittest.main()
