from __future__ import annotations

import asyncio

import aiohttp
import discord

from discourse.errors import TransportError
from misc.text_chunks import chunk_text


def route_key_for(channel) -> str:
    return f"channel:{channel.id}"


class NoticeTargets:
    """
    Resolves where a notice goes. A route ("channel:<id>") names the exact
    messageable a command came from; the reply target ("#channel" or a user
    name) is only a fallback, since same-named channels in different guilds
    share it.
    """

    def __init__(self) -> None:
        self._targets: dict[str, discord.abc.Messageable] = {}

    def remember(self, key: str, messageable: discord.abc.Messageable) -> None:
        self._targets[key] = messageable

    def resolve(self, target: str, route: str | None = None) -> discord.abc.Messageable | None:
        if route is not None and route in self._targets:
            return self._targets[route]
        return self._targets.get(target)

    def __len__(self) -> int:
        return len(self._targets)

    async def send_notice(self, target: str, text: str, *, route: str | None = None) -> None:
        channel = self.resolve(target, route)
        if channel is None:
            raise TransportError(f"no known channel for target {target!r}")
        for part in chunk_text(text):
            try:
                # silent=True is Discord's closest thing to a NOTICE: no ping.
                await channel.send(part, silent=True)
            except (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                raise TransportError(f"send to {target!r} failed: {exc}") from exc
