import os

import discord
from discord.ext import commands

from config.defaults import DEFAULT_CONFIG_PATH
from config.defaults import DISCORD_MAX_MESSAGE_LEN
from config.settings import apply_env_overrides
from config.settings import load_bot_settings
from discourse.store import load_or_recover
from discourse.store import save_snapshot
from misc.runtime_wiring import wire_bot_runtime
from misc.text_chunks import chunk_text

# =========================
# ENV
# =========================
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN env var")

CONFIG_PATH = os.getenv(
    "DISCOURSE_CONFIG_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), DEFAULT_CONFIG_PATH),
)
_file_settings, CONFIG_WARNING = load_bot_settings(CONFIG_PATH)
SETTINGS = apply_env_overrides(_file_settings, os.environ)

print(
    f"[CFG] config={CONFIG_PATH} nick={SETTINGS.nickname or '(account name)'} "
    f"snapshot={SETTINGS.snapshot_path} recover_malformed={SETTINGS.recover_malformed_snapshot}"
)
print(
    f"[CFG] allowed_channels={len(SETTINGS.allowed_channel_ids) or 'all'} "
    f"owner_ids={len(SETTINGS.owner_user_ids)}"
)
if CONFIG_WARNING:
    print(f"[CFG] {CONFIG_WARNING}")

# =========================
# SNAPSHOT
# =========================
# A malformed snapshot stops startup unless recovery is enabled; silently
# starting empty would drop every record.
store = load_or_recover(SETTINGS.snapshot_path, recover=SETTINGS.recover_malformed_snapshot)
print(f"[Snapshot] loaded channels={store.channel_count()} topics={store.topic_count()}")


def user_is_owner(user) -> bool:
    try:
        return int(user.id) in SETTINGS.owner_user_ids
    except (AttributeError, TypeError, ValueError):
        return False


async def send_chunked(channel: discord.abc.Messageable, text: str) -> None:
    for part in chunk_text(text, DISCORD_MAX_MESSAGE_LEN):
        await channel.send(part)


intents = discord.Intents.default()
intents.message_content = True
intents.guilds = True

bot = commands.Bot(command_prefix="!", intents=intents)

wire_bot_runtime(
    bot,
    store=store,
    nickname=SETTINGS.nickname,
    snapshot_path=SETTINGS.snapshot_path,
    save_snapshot_func=save_snapshot,
    allowed_channel_ids=SETTINGS.allowed_channel_ids,
    user_is_owner=user_is_owner,
    send_chunked=send_chunked,
)


bot.run(DISCORD_TOKEN)
