"""A connected client and its registration state."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(eq=False)
class Client:
    """A connection's identity; clients compare and order by nickname."""

    ip: str = ""
    password: str = ""
    nick: str = ""
    username: str = ""
    realname: str = ""
    channels: set[str] = field(default_factory=set)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Client):
            return NotImplemented
        return self.nick == other.nick

    def __lt__(self, other: Client) -> bool:
        if not isinstance(other, Client):
            return NotImplemented
        return self.nick < other.nick

    __hash__ = None  # type: ignore[assignment]

    def is_password_set(self) -> bool:
        return bool(self.password)

    def is_nick_set(self) -> bool:
        return bool(self.nick)

    def is_user_set(self) -> bool:
        return bool(self.username)

    def is_authenticated(self) -> bool:
        """True once password, nickname and user have all been given."""
        return self.is_user_set() and self.is_nick_set() and self.is_password_set()

    def set_username(self, username: str, realname: str) -> None:
        self.username = username
        self.realname = realname

    def add_channel(self, channel_name: str) -> None:
        self.channels.add(channel_name)

    def remove_channel(self, channel_name: str) -> None:
        self.channels.discard(channel_name)