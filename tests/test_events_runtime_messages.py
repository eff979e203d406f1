from __future__ import annotations

import unittest
from types import SimpleNamespace

try:
    from misc.events_runtime import join_events_for_guild
    from misc.events_runtime import message_event_from_discord
    from misc.events_runtime import normalize_mention_address
    from misc.events_runtime import reply_key_for
except ModuleNotFoundError:
    message_event_from_discord = None

from discourse.service import JoinEvent
from discourse.service import MessageEvent


BOT_ID = 424242424242424242


def _message(content: str, *, guild=True, channel_name: str = "general", author: str = "alice"):
    return SimpleNamespace(
        guild=SimpleNamespace(id=1) if guild else None,
        channel=SimpleNamespace(id=55, name=channel_name),
        author=SimpleNamespace(id=7, name=author, bot=False),
        content=content,
    )


@unittest.skipIf(message_event_from_discord is None, "discord.py not installed")
class EventsRuntimeMessageTests(unittest.TestCase):
    def test_guild_message_targets_channel_key(self):
        event = message_event_from_discord(_message("whismur: rust"), bot_user_id=BOT_ID, bot_nick="whismur")
        self.assertEqual(
            event,
            MessageEvent(target="#general", source_nick="alice", text="whismur: rust", route="channel:55"),
        )

    def test_dm_targets_bot_nick(self):
        event = message_event_from_discord(_message("rust", guild=False), bot_user_id=BOT_ID, bot_nick="whismur")
        self.assertEqual(event.target, "whismur")
        self.assertEqual(event.source_nick, "alice")

    def test_dm_mention_is_kept_as_typed(self):
        raw = f"<@{BOT_ID}> rust"
        event = message_event_from_discord(_message(raw, guild=False), bot_user_id=BOT_ID, bot_nick="whismur")
        self.assertEqual(event.text, raw)

    def test_same_named_channels_get_distinct_routes(self):
        first = _message("whismur: rust")
        second = _message("whismur: rust")
        second.channel.id = 56
        a = message_event_from_discord(first, bot_user_id=BOT_ID, bot_nick="whismur")
        b = message_event_from_discord(second, bot_user_id=BOT_ID, bot_nick="whismur")
        self.assertEqual(a.target, b.target)
        self.assertNotEqual(a.route, b.route)

    def test_leading_mention_becomes_nick_address(self):
        for raw in (f"<@{BOT_ID}> rust", f"<@!{BOT_ID}>: rust", f"  <@{BOT_ID}>, rust"):
            with self.subTest(raw=raw):
                self.assertEqual(
                    normalize_mention_address(raw, bot_user_id=BOT_ID, bot_nick="whismur"),
                    "whismur: rust",
                )

    def test_mention_of_someone_else_is_untouched(self):
        raw = "<@123456789012345678> rust"
        self.assertEqual(normalize_mention_address(raw, bot_user_id=BOT_ID, bot_nick="whismur"), raw)

    def test_mention_mid_sentence_is_untouched(self):
        raw = f"hey <@{BOT_ID}> rust"
        self.assertEqual(normalize_mention_address(raw, bot_user_id=BOT_ID, bot_nick="whismur"), raw)

    def test_reply_key_for_dm_is_author_name(self):
        self.assertEqual(reply_key_for(_message("x", guild=False, author="bob")), "bob")
        self.assertEqual(reply_key_for(_message("x", channel_name="rust")), "#rust")

    def test_join_events_respect_allowlist(self):
        guild = SimpleNamespace(
            text_channels=[
                SimpleNamespace(id=1, name="general"),
                SimpleNamespace(id=2, name="offtopic"),
            ]
        )
        self.assertEqual(
            join_events_for_guild(guild, bot_nick="whismur", allowed_channel_ids={2}),
            [JoinEvent(channel="#offtopic", actor_prefix="whismur")],
        )
        self.assertEqual(len(join_events_for_guild(guild, bot_nick="whismur", allowed_channel_ids=set())), 2)


if __name__ == "__main__":
    unittest.main()
