from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from config.defaults import DEFAULT_ALLOWED_CHANNEL_IDS
from config.defaults import DEFAULT_OWNER_USER_IDS
from config.defaults import DEFAULT_SNAPSHOT_PATH


@dataclass(frozen=True, slots=True)
class BotSettings:
    nickname: str | None = None
    snapshot_path: str = DEFAULT_SNAPSHOT_PATH
    allowed_channel_ids: set[int] = field(default_factory=lambda: set(DEFAULT_ALLOWED_CHANNEL_IDS))
    owner_user_ids: set[int] = field(default_factory=lambda: set(DEFAULT_OWNER_USER_IDS))
    recover_malformed_snapshot: bool = False


def parse_id_set(raw: str | None) -> set[int]:
    if not raw:
        return set()
    out: set[int] = set()
    for tok in re.split(r"[\s,;]+", raw.strip()):
        if not tok:
            continue
        if re.fullmatch(r"\d{8,22}", tok):
            out.add(int(tok))
    return out


def parse_flag(raw: str | None, default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _as_id_set(value: Any) -> set[int]:
    if isinstance(value, (list, tuple, set)):
        return parse_id_set(" ".join(str(v) for v in value))
    if value is None:
        return set()
    return parse_id_set(str(value))


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return parse_flag(str(value))


def load_bot_settings(path: str | Path | None) -> tuple[BotSettings, str | None]:
    """
    Returns (settings, warning_message). warning_message is None on clean load.
    """
    defaults = BotSettings()
    if not path:
        return (defaults, None)

    p = Path(path)
    if not p.exists():
        return (defaults, f"Config file not found at {p}; using built-in defaults.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (defaults, f"Failed to read config from {p}: {exc}; using built-in defaults.")

    if payload is None:
        return (defaults, None)
    if not isinstance(payload, dict):
        return (defaults, f"Invalid config format in {p}; using built-in defaults.")

    nickname = str(payload.get("nickname") or "").strip() or None
    settings = BotSettings(
        nickname=nickname,
        snapshot_path=str(payload.get("snapshot_path") or defaults.snapshot_path),
        allowed_channel_ids=_as_id_set(payload.get("allowed_channel_ids")) or defaults.allowed_channel_ids,
        owner_user_ids=_as_id_set(payload.get("owner_user_ids")) or defaults.owner_user_ids,
        recover_malformed_snapshot=_as_flag(payload.get("recover_malformed_snapshot")),
    )
    return (settings, None)


def apply_env_overrides(settings: BotSettings, environ: Mapping[str, str]) -> BotSettings:
    changes: dict[str, Any] = {}

    nick = (environ.get("DISCOURSE_NICK") or "").strip()
    if nick:
        changes["nickname"] = nick

    snapshot_path = (environ.get("DISCOURSE_SNAPSHOT_PATH") or "").strip()
    if snapshot_path:
        changes["snapshot_path"] = snapshot_path

    allowed = parse_id_set(environ.get("DISCOURSE_ALLOWED_CHANNEL_IDS"))
    if allowed:
        changes["allowed_channel_ids"] = allowed

    owners = parse_id_set(environ.get("DISCOURSE_OWNER_USER_IDS"))
    if owners:
        changes["owner_user_ids"] = owners

    if "DISCOURSE_SNAPSHOT_RECOVER" in environ:
        changes["recover_malformed_snapshot"] = parse_flag(environ.get("DISCOURSE_SNAPSHOT_RECOVER"))

    return replace(settings, **changes) if changes else settings
