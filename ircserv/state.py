"""Shared server state: registered nicknames, channels and message delivery."""

from __future__ import annotations

from typing import Callable, Optional

from ircserv.channel import Channel

Sender = Callable[[int, str], None]


def bot_response(message: str) -> str:
    """Answer a message addressed to the built-in bot."""
    if message == "Hello":
        response = "Hello, how can I help you?"
    elif message == "Tell me about you":
        response = "I'm a simple irc bot that can answer some of your questions."
    else:
        response = "Sorry, I don't understand your question. Try again."
    return response + "\n"


class ServerState:
    """Nickname-to-connection map, channels by name and an outgoing sender.

    ``sender`` is called with a connection id and the text to deliver; when it
    is ``None`` outgoing messages are dropped.
    """

    def __init__(self, password: str, sender: Optional[Sender] = None) -> None:
        self.password = password
        self.channels: dict[str, Channel] = {}
        self.users: dict[str, int] = {}
        self._sender = sender

    def send(self, fd: int, message: str) -> None:
        """Deliver a message to one connection."""
        if self._sender is not None:
            self._sender(fd, message)

    def add_user(self, nickname: str, fd: int) -> None:
        self.users[nickname] = fd

    def get_user(self, nickname: str) -> Optional[int]:
        """Return the connection registered under a nickname, if any."""
        return self.users.get(nickname)

    def remove_user(self, nickname: str) -> None:
        self.users.pop(nickname, None)

    def get_channel(self, channel_name: str) -> Optional[Channel]:
        return self.channels.get(channel_name)

    def add_channel(self, channel_name: str, channel: Channel) -> None:
        self.channels[channel_name] = channel

    def remove_channel(self, channel_name: str) -> None:
        self.channels.pop(channel_name, None)

    def send_to_channel(self, channel: Channel, message: str) -> None:
        """Deliver a message to every member of a channel, in nickname order."""
        for nickname in sorted(channel.clients):
            fd = self.get_user(nickname)
            if fd is not None:
                self.send(fd, message)