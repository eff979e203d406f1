from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class RuntimeDeps:
    # core
    dispatcher: Any
    notice_targets: Any
    bot_nick: Callable[[], str]

    # gates
    allowed_channel_ids: set[int]


@dataclass(frozen=True)
class RuntimeBootDeps:
    dispatcher_loop_func: Callable
    snapshot_path: str
