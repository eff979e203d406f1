from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Callable


def _default_false(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    # Core/shared
    dispatcher: Any = None
    send_chunked: Callable | None = None
    snapshot_path: str = ""

    # Key used for the invoking channel, e.g. "#general" or a DM sender's name.
    scope_key_for: Callable[[Any], str] | None = None


@dataclass(frozen=True)
class CommandGates:
    user_is_owner: Callable[[Any], bool] = _default_false
