"""Parsing of one protocol line and dispatch to the matching command."""

from __future__ import annotations

import re
from typing import Callable, Optional

from ircserv.client import Client
from ircserv.commands import (
    SERVER_NAME,
    CommandContext,
    invite_command,
    join_command,
    kick_command,
    mode_command,
    nick_command,
    pass_command,
    privmsg_command,
    topic_command,
)
from ircserv.state import ServerState

HELP_TEXT = (
    "Available commands:\n"
    "PASS <password>\n"
    "NICK <nickname>\n"
    "USER <username> 0 * :<realname>\n"
    "JOIN <#channel> [<key>]\n"
    "PART <#channel> [:<reason>]\n"
    "PRIVMSG <target> :<message>\n"
    "KICK <channel> <nick> [reason]\n"
    "TOPIC <channel> [<topic>]\n"
    "INVITE <nickname> <channel>\n"
    "MODE <channel> <flag> [<extra>]\n"
    "PING <text>\n"
    "CAP LS|REQ|END\n"
)

_OPEN_COMMANDS = frozenset({"HELP", "PASS", "NICK", "USER", "CAP"})
_WORD = re.compile(r"\S+")
_MODE_LETTERS = "itkol"


def _words(text: str, count: int) -> tuple[list[str], str]:
    """Take up to ``count`` whitespace-separated words and the text after them.

    Missing words come back empty, and then nothing is left over.
    """
    words: list[str] = []
    pos = 0
    for match in _WORD.finditer(text):
        if len(words) == count:
            break
        words.append(match.group())
        pos = match.end()
    if len(words) < count:
        return words + [""] * (count - len(words)), ""
    return words, text[pos:]


def _mode_usage_error(flag: str, extra: str) -> bool:
    if len(flag) < 2 or flag[0] not in "+-" or flag[1] not in _MODE_LETTERS:
        return True
    sign, letter = flag[0], flag[1]
    takes_no_extra = letter in "it" or (sign == "-" and letter in "kl")
    needs_extra = letter == "o" or (sign == "+" and letter in "kl")
    return (takes_no_extra and bool(extra)) or (needs_extra and not extra)


class RequestHandler:
    """Handles the lines received from one connection."""

    def __init__(self, state: ServerState, client: Client, fd: int) -> None:
        self.ctx = CommandContext(state, client, fd)
        self._handlers: dict[str, Callable[[str], Optional[str]]] = {
            "PASS": lambda args: pass_command(self.ctx, args),
            "NICK": lambda args: nick_command(self.ctx, args),
            "USER": self._user,
            "KICK": self._kick,
            "TOPIC": self._topic,
            "INVITE": self._invite,
            "MODE": self._mode,
            "PRIVMSG": self._privmsg,
            "JOIN": self._join,
            "PART": self._part,
            "PING": self._ping,
            "CAP": self._cap,
        }

    @property
    def _nick(self) -> str:
        return self.ctx.client.nick

    def handle(self, line: str) -> None:
        """Run one command line and send its direct reply, if there is one."""
        message = line.rstrip(" \r\n")
        command, _, args = message.partition(" ")
        response = self._dispatch(command, args)
        if response:
            self.ctx.reply(response)

    def _dispatch(self, command: str, args: str) -> Optional[str]:
        if not self.ctx.client.is_authenticated() and command not in _OPEN_COMMANDS:
            return (
                f":{SERVER_NAME} 451  :You must authenticate first. "
                "Use HELP for more info\n"
            )
        if command == "HELP" and not args:
            return HELP_TEXT
        handler = self._handlers.get(command)
        if handler is None:
            return f"{SERVER_NAME} :No such command\n"
        return handler(args)

    def _user(self, args: str) -> str:
        (username, value, asterisk), rest = _words(args, 3)
        realname = rest.lstrip()
        if not (username and value and asterisk and realname.startswith(":")):
            return "ERROR\nUsage: USER <username> 0 * :<realname>\n"
        client = self.ctx.client
        if client.is_nick_set() and client.is_password_set() and not client.is_user_set():
            client.set_username(username, realname[1:])
            return (
                f"{SERVER_NAME} 001 {client.nick} :Welcome to the Internet Relay Network "
                f"{client.nick}!{client.username}@{client.ip}\n"
            )
        return f"{SERVER_NAME} 462 :You must enter password and crate nick before creating USER\n"

    def _kick(self, args: str) -> Optional[str]:
        (channel, user), rest = _words(args, 2)
        reason = rest[1:] if rest.startswith(" ") else rest
        if channel and user:
            kick_command(self.ctx, channel, user, reason)
            return None
        return f"{SERVER_NAME} 461 {self._nick} :Usage - KICK <channel> <nick> [reason]\n"

    def _topic(self, args: str) -> Optional[str]:
        (channel,), rest = _words(args, 1)
        topic = rest.lstrip()
        if channel and topic:
            topic_command(self.ctx, channel, topic)
            return None
        return f"{SERVER_NAME} 461 {self._nick} :Usage - TOPIC <channel> [<topic>]\n"

    def _invite(self, args: str) -> Optional[str]:
        (nickname, channel, extra), _ = _words(args, 3)
        if nickname and channel and not extra:
            invite_command(self.ctx, nickname, channel)
            return None
        return f"{SERVER_NAME} 461 {self._nick} :Usage - INVITE <nickname> <channel>\n"

    def _mode(self, args: str) -> Optional[str]:
        (channel_name, flag, extra), _ = _words(args, 3)
        if not channel_name or _mode_usage_error(flag, extra):
            return f"{SERVER_NAME} 461 {self._nick} :Usage - MODE <target> <flag> [<extra>]\n"
        channel = self.ctx.state.get_channel(channel_name)
        if channel is None:
            return f"{SERVER_NAME}: 412 {self._nick} :No such channel\n"
        # Replies name the command word where a channel name would stand.
        mode_command(self.ctx, channel, "MODE", flag, extra)
        return None

    def _privmsg(self, args: str) -> Optional[str]:
        usage = f"{SERVER_NAME} 461 {self._nick} :Usage - PRIVMSG <target> :<message>\n"
        target, colon, text = args.partition(":")
        if not colon:
            return usage
        target = target.rstrip(" ") or target
        if not target or not text:
            return usage
        privmsg_command(self.ctx, target, text)
        return None

    def _join(self, args: str) -> Optional[str]:
        (channel, key), _ = _words(args, 2)
        if not channel.startswith("#"):
            return f"{SERVER_NAME} 461 {self._nick} :Usage - JOIN <#channel>\n"
        join_command(self.ctx, channel, key)
        return None

    def _part(self, args: str) -> Optional[str]:
        (channel_name,), rest = _words(args, 1)
        reason = rest.lstrip()
        nick = self._nick
        if not channel_name:
            return f"{SERVER_NAME} 461 {nick} :Usage - PART <#channel> [:<reason>]\r\n"
        state = self.ctx.state
        channel = state.get_channel(channel_name)
        if channel is None:
            return f"{SERVER_NAME} 403 {nick} {channel_name} :No such channel\r\n"
        if not channel.is_client(nick):
            return f"{SERVER_NAME} 442 {nick} {channel_name} :You're not on that channel\r\n"
        reason = reason.removeprefix(":")
        message = f"{self.ctx.prefix()} PART {channel_name}"
        if reason:
            message += f" :{reason}"
        state.send_to_channel(channel, message + "\r\n")
        channel.kick_client(nick)
        self.ctx.client.remove_channel(channel_name)
        if not channel.clients:
            state.remove_channel(channel_name)
        return None

    def _ping(self, args: str) -> str:
        return f"PONG :{args.lstrip()}\r\n"

    def _cap(self, args: str) -> str:
        (subcommand,), rest = _words(args, 1)
        if subcommand == "LS":
            return "CAP * LS :multi-prefix sasl\r\n"
        if subcommand == "REQ":
            capabilities = rest.lstrip().removeprefix(":")
            return f"CAP * ACK :{capabilities}\r\n"
        if subcommand == "END":
            return ""
        return f"CAP * NAK :{subcommand}\r\n"