DEFAULT_SNAPSHOT_PATH = "discourse.json"
DEFAULT_CONFIG_PATH = "config/discourse.yml"

# Discord's hard limit is 2000; keep headroom.
DISCORD_MAX_MESSAGE_LEN = 1900

# "<nick>," or "<nick>:" addresses the bot in a shared channel.
ADDRESS_SEPARATORS = (",", ":")

DEFAULT_ALLOWED_CHANNEL_IDS: set[int] = set()
DEFAULT_OWNER_USER_IDS: set[int] = set()

EMPTY_TOPIC_REPLY = "Yep? Give me a topic to track."
