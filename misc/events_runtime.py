from __future__ import annotations

import asyncio
import re

import discord
from discord.ext import commands

from discourse.service import JoinEvent
from discourse.service import MessageEvent
from misc.discord_gates import channel_is_allowed
from misc.discord_gates import channel_key
from misc.discord_gates import message_in_allowed_channels
from misc.notice_targets import route_key_for
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def _mention_prefix_re(bot_user_id: int) -> re.Pattern[str]:
    return re.compile(rf"^\s*<@!?\s*{int(bot_user_id)}\s*>\s*[,:]?\s*")


def normalize_mention_address(text: str, *, bot_user_id: int | None, bot_nick: str) -> str:
    """Rewrite a leading "@bot" mention into the "<nick>: " address form."""
    if bot_user_id is None or not bot_nick:
        return text
    pattern = _mention_prefix_re(bot_user_id)
    if not pattern.match(text or ""):
        return text
    return pattern.sub(lambda _m: f"{bot_nick}: ", text, count=1)


def message_event_from_discord(message: discord.Message, *, bot_user_id: int | None, bot_nick: str) -> MessageEvent:
    text = message.content or ""
    if getattr(message, "guild", None) is None:
        # in a DM the whole text is the topic, a leading mention included
        target = bot_nick
    else:
        target = channel_key(message.channel)
        text = normalize_mention_address(text, bot_user_id=bot_user_id, bot_nick=bot_nick)
    return MessageEvent(
        target=target,
        source_nick=getattr(message.author, "name", None),
        text=text,
        route=route_key_for(message.channel),
    )


def reply_key_for(message: discord.Message) -> str:
    if getattr(message, "guild", None) is None:
        return str(message.author.name)
    return channel_key(message.channel)


def join_events_for_guild(guild, *, bot_nick: str, allowed_channel_ids: set[int]) -> list[JoinEvent]:
    out: list[JoinEvent] = []
    for channel in getattr(guild, "text_channels", []) or []:
        if not channel_is_allowed(channel, allowed_channel_ids):
            continue
        out.append(JoinEvent(channel=channel_key(channel), actor_prefix=bot_nick))
    return out


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"[Discourse] online as {bot.user} (nick={deps.bot_nick()!r}, snapshot={boot.snapshot_path})")
        if not getattr(bot, "_dispatcher_task", None):
            bot._dispatcher_task = asyncio.create_task(boot.dispatcher_loop_func())
            print("[Discourse] dispatcher loop started")

        for guild in bot.guilds:
            for event in join_events_for_guild(
                guild,
                bot_nick=deps.bot_nick(),
                allowed_channel_ids=deps.allowed_channel_ids,
            ):
                deps.dispatcher.submit(event)

    @bot.event
    async def on_guild_join(guild: discord.Guild):
        for event in join_events_for_guild(
            guild,
            bot_nick=deps.bot_nick(),
            allowed_channel_ids=deps.allowed_channel_ids,
        ):
            deps.dispatcher.submit(event)

    @bot.event
    async def on_message(message: discord.Message):
        if not message_in_allowed_channels(message, deps.allowed_channel_ids):
            return

        if message.author.bot:
            return

        if (message.content or "").lstrip().startswith("!"):
            await bot.process_commands(message)
            return

        deps.notice_targets.remember(route_key_for(message.channel), message.channel)
        deps.dispatcher.submit(
            message_event_from_discord(
                message,
                bot_user_id=(int(bot.user.id) if bot.user else None),
                bot_nick=deps.bot_nick(),
            )
        )
