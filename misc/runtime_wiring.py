from __future__ import annotations

from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_discourse import register as register_discourse
from misc.dispatcher import Dispatcher
from misc.events_runtime import register_runtime_events
from misc.events_runtime import reply_key_for
from misc.notice_targets import NoticeTargets
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def wire_bot_runtime(
    bot,
    *,
    store,
    nickname: str | None,
    snapshot_path: str,
    save_snapshot_func,
    allowed_channel_ids: set[int],
    user_is_owner,
    send_chunked,
    clock=None,
) -> Dispatcher:
    def bot_nick() -> str:
        if nickname:
            return nickname
        if bot.user is not None:
            return str(bot.user.name)
        return ""

    def save(current_store) -> None:
        save_snapshot_func(current_store, snapshot_path)

    notice_targets = NoticeTargets()
    bot._discourse_notice_targets = notice_targets
    dispatcher_kwargs = {}
    if clock is not None:
        dispatcher_kwargs["clock"] = clock
    dispatcher = Dispatcher(
        store=store,
        bot_nick=bot_nick,
        send_notice=notice_targets.send_notice,
        save_snapshot=save,
        **dispatcher_kwargs,
    )

    register_discourse(
        bot,
        deps=CommandDeps(
            dispatcher=dispatcher,
            send_chunked=send_chunked,
            snapshot_path=snapshot_path,
            scope_key_for=reply_key_for,
        ),
        gates=CommandGates(user_is_owner=user_is_owner),
    )

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            dispatcher=dispatcher,
            notice_targets=notice_targets,
            bot_nick=bot_nick,
            allowed_channel_ids=allowed_channel_ids,
        ),
        boot=RuntimeBootDeps(
            dispatcher_loop_func=dispatcher.run,
            snapshot_path=snapshot_path,
        ),
    )
    return dispatcher
