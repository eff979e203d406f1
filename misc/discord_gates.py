from __future__ import annotations

import discord


def channel_key(channel) -> str:
    return f"#{getattr(channel, 'name', None) or getattr(channel, 'id', 'unknown')}"


def channel_is_allowed(channel, allowed_channel_ids: set[int]) -> bool:
    # An empty allowlist means every channel the bot can read.
    if not allowed_channel_ids:
        return True

    channel_id = int(getattr(channel, "id", 0) or 0)
    if channel_id in allowed_channel_ids:
        return True
    # thread: allow if parent is allowed
    if isinstance(channel, discord.Thread) and channel.parent:
        return int(channel.parent.id) in allowed_channel_ids
    return False


def message_in_allowed_channels(message: discord.Message, allowed_channel_ids: set[int]) -> bool:
    # DMs are always their own tracking scope.
    if getattr(message, "guild", None) is None:
        return True
    return channel_is_allowed(message.channel, allowed_channel_ids)
