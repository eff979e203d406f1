from __future__ import annotations


class DiscourseError(Exception):
    pass


class TransportError(DiscourseError):
    """A notice could not be delivered to its target."""


class PersistenceError(DiscourseError):
    """The snapshot could not be written. In-memory state is unchanged."""


class MalformedSnapshot(DiscourseError):
    """An existing snapshot file could not be parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed snapshot at {path}: {reason}")
        self.path = path
        self.reason = reason
