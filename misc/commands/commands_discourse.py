from __future__ import annotations

from discord.ext import commands

from discourse.service import format_status
from discourse.service import format_topics_listing
from discourse.tracker import utc_now
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    @bot.command(name="topics")
    async def topics_command(ctx: commands.Context):
        scope = deps.scope_key_for(ctx)
        text = format_topics_listing(scope, deps.dispatcher.store.topics_for(scope), now=utc_now())
        await deps.send_chunked(ctx.channel, text)

    @bot.command(name="discourse_status")
    async def discourse_status(ctx: commands.Context):
        if not gates.user_is_owner(ctx.author):
            await ctx.send("Discourse status is owner-only.")
            return
        dispatcher = deps.dispatcher
        text = format_status(
            dispatcher.store,
            snapshot_path=deps.snapshot_path,
            saves_ok=dispatcher.saves_ok,
            last_save_error=dispatcher.last_save_error,
            pending=dispatcher.pending(),
        )
        await deps.send_chunked(ctx.channel, text)

    @bot.command(name="discourse_save")
    async def discourse_save(ctx: commands.Context):
        if not gates.user_is_owner(ctx.author):
            await ctx.send("Discourse save is owner-only.")
            return
        deps.dispatcher.request_save(reason=f"requested by {ctx.author}")
        await ctx.send("Snapshot save queued.")
