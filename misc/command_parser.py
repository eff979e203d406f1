from __future__ import annotations

from dataclasses import dataclass

from config.defaults import ADDRESS_SEPARATORS


@dataclass(frozen=True, slots=True)
class AddressedCommand:
    reply_target: str
    body: str

    @property
    def topic_key(self) -> str:
        return self.body.lower()

    @property
    def is_empty(self) -> bool:
        return not self.body


def strip_address_prefix(text: str, bot_nick: str) -> str | None:
    """Return the text after "<nick>," / "<nick>:", or None if not addressed."""
    if not bot_nick or not text.startswith(bot_nick):
        return None
    rest = text[len(bot_nick):]
    if not rest or rest[0] not in ADDRESS_SEPARATORS:
        return None
    return rest[1:].strip()


def parse_addressed_command(
    *,
    bot_nick: str,
    target: str,
    source_nick: str | None,
    text: str,
) -> AddressedCommand | None:
    body = (text or "").strip()

    # Direct message: everything is a command, replies go back to the sender.
    if target == bot_nick:
        if not source_nick:
            return None
        return AddressedCommand(reply_target=source_nick, body=body)

    stripped = strip_address_prefix(body, bot_nick)
    if stripped is None:
        return None
    return AddressedCommand(reply_target=target, body=stripped)
