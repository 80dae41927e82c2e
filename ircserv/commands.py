"""Channel and registration commands issued by one connected client."""

from __future__ import annotations

from dataclasses import dataclass

from ircserv.channel import Channel, JoinStatus
from ircserv.client import Client
from ircserv.state import ServerState, bot_response

SERVER_NAME = ":super_mega_cool_irc_server"
MAX_NICK_LENGTH = 32


@dataclass
class CommandContext:
    """The issuing client, its connection and the shared server state."""

    state: ServerState
    client: Client
    fd: int

    def reply(self, message: str) -> None:
        """Send a message back to the issuing connection."""
        self.state.send(self.fd, message)

    def prefix(self) -> str:
        """The ``:nick!user@ip`` origin of messages from this client."""
        client = self.client
        return f":{client.nick}!{client.username}@{client.ip}"


def pass_command(ctx: CommandContext, password: str) -> str:
    """Check the connection password and return the reply."""
    client = ctx.client
    if not password:
        return f"{SERVER_NAME} 461 :Not enough parameters\n"
    if client.is_authenticated():
        return f"{SERVER_NAME} 462 :You are already registered\n"
    if password == ctx.state.password and not client.is_password_set():
        client.password = password
        return f"{SERVER_NAME} 920 :Password accepted\n"
    return f"{SERVER_NAME} 464 :Invalid password\n"


def nick_command(ctx: CommandContext, nickname: str) -> str:
    """Set or change the client's nickname and return the reply."""
    client = ctx.client
    state = ctx.state
    if not client.is_password_set():
        return f"{SERVER_NAME} 462 :You must register first\n"
    if not nickname:
        return f"{SERVER_NAME} 431 :No nickname given\n"
    if len(nickname) > MAX_NICK_LENGTH:
        return f"{SERVER_NAME} 432 {nickname} :Erroneous nickname\n"
    existing = state.get_user(nickname)
    if existing is not None and existing != ctx.fd:
        return f"{SERVER_NAME} 433 {nickname} :Nickname is already in use\n"

    old_nick = client.nick
    if client.is_nick_set():
        state.remove_user(old_nick)
    for channel_name in list(client.channels):
        channel = state.get_channel(channel_name)
        if channel is not None:
            channel.change_client_nickname(old_nick, nickname)
    state.add_user(nickname, ctx.fd)
    client.nick = nickname

    reply_nick = old_nick or nickname
    return f":{reply_nick}!user@{client.ip} NICK :{nickname}\n"


_JOIN_REFUSALS = {
    JoinStatus.ALREADY_IN: "443 {nick} {chan} :is already on channel",
    JoinStatus.NOT_INVITED: "473 {nick} {chan} :Cannot join channel (+i)",
    JoinStatus.NOT_ENOUGH_PLACES: "471 {nick} {chan} :Cannot join channel (+l)",
    JoinStatus.INVALID_KEY: "475 {nick} {chan} :Cannot join channel (+k)",
}


def join_command(ctx: CommandContext, channel_name: str, key: str = "") -> None:
    """Join a channel, creating it with the client as operator if needed."""
    state = ctx.state
    client = ctx.client
    nickname = client.nick
    channel = state.get_channel(channel_name)

    if not client.is_nick_set():
        ctx.reply(f"{SERVER_NAME} 451 {nickname} JOIN :You have not registered\n")
    if channel is None:
        channel = Channel(nickname)
        state.add_channel(channel_name, channel)
        client.add_channel(channel_name)
        state.send_to_channel(channel, f"{ctx.prefix()} JOIN {channel_name}\n")
        return

    status = channel.add_client(nickname, key)
    if status is not JoinStatus.OK:
        text = _JOIN_REFUSALS[status].format(nick=nickname, chan=channel_name)
        ctx.reply(f"{SERVER_NAME} {text}\n")
        return

    state.send_to_channel(channel, f"{ctx.prefix()} JOIN {channel_name}\n")
    topic = channel.topic or "No topic"
    ctx.reply(f"{SERVER_NAME} 332 {nickname} {channel_name} :{topic}\n")
    names = "".join(f"{name} " for name in sorted(channel.clients))
    ctx.reply(names + "\n")
    ctx.reply(f"{SERVER_NAME} 366 {nickname} {channel_name} :End of NAMES list\n")


def privmsg_command(ctx: CommandContext, receiver: str, message: str) -> None:
    """Deliver a message to the bot, a user or every other member of a channel."""
    state = ctx.state
    nick = ctx.client.nick
    if receiver == "bot":
        ctx.reply(f":bot!bot PRIVMSG {nick} :{bot_response(message)}")
        return

    prefix = ctx.prefix()
    user_fd = state.get_user(receiver)
    if not message:
        ctx.reply(f"{SERVER_NAME} 412 {nick} :No text to send\n")
        return

    line = f"{prefix} PRIVMSG {receiver} :{message}\n"
    if user_fd is not None:
        state.send(user_fd, line)
    elif receiver.startswith("#"):
        channel = state.get_channel(receiver)
        if channel is None:
            ctx.reply(f"{SERVER_NAME} 401 {nick} {receiver} :No such channel\n")
            return
        if not channel.is_client(nick):
            ctx.reply(f"{SERVER_NAME} 442 {nick} {receiver} :You're not on that channel\n")
            return
        for member in sorted(channel.clients):
            member_fd = state.get_user(member)
            if member_fd is not None and member_fd != ctx.fd:
                state.send(member_fd, line)
    else:
        ctx.reply(f"{SERVER_NAME} 401 {nick} {receiver} :No such nick\n")


def kick_command(
    ctx: CommandContext, channel_name: str, nickname: str, reason: str = ""
) -> None:
    """Remove a member from a channel on an operator's request."""
    state = ctx.state
    nick = ctx.client.nick
    channel = state.get_channel(channel_name)
    if channel is None:
        ctx.reply(f"{SERVER_NAME} 403 {nick} {channel_name} :No such channel\n")
        return
    if not channel.is_client(nick):
        ctx.reply(f"{SERVER_NAME} 442 {nick} {channel_name} :You're not on that channel\n")
        return
    if not channel.is_operator(nick):
        ctx.reply(f"{SERVER_NAME} 482 {nick} {channel_name} :You're not a channel operator\n")
        return
    if nick == nickname:
        ctx.reply(f"{SERVER_NAME} 482 {nick} {channel_name} :You can't kick yourself\n")
        return
    if state.get_user(nickname) is not None and channel.is_client(nickname):
        message = f"{ctx.prefix()} KICK {channel_name} {nickname}"
        if reason:
            message += f" :{reason}"
        state.send_to_channel(channel, message + "\n")
        channel.kick_client(nickname)
    else:
        ctx.reply(f"{SERVER_NAME} 401 {nick} {nickname} :No such nick\n")


def topic_command(ctx: CommandContext, channel_name: str, topic: str) -> None:
    """Set a channel's topic and announce it to the members."""
    state = ctx.state
    nick = ctx.client.nick
    channel = state.get_channel(channel_name)
    if channel is None:
        ctx.reply(f"{SERVER_NAME}: 412 {nick} :No such channel {channel_name}\n")
        return
    if not channel.is_client(nick):
        ctx.reply(f"{SERVER_NAME} 442 :You're not in channel {channel_name}\n")
        return
    if channel.topic_settable_by_op and not channel.is_operator(nick):
        ctx.reply(f"{SERVER_NAME} 482 :You must be operator\n")
        return
    channel.topic = topic
    state.send_to_channel(channel, f"{SERVER_NAME} TOPIC {channel_name} :{topic}\n")


def invite_command(ctx: CommandContext, nickname: str, channel_name: str) -> None:
    """Invite a user into a channel the issuing client is on."""
    state = ctx.state
    nick = ctx.client.nick
    channel = state.get_channel(channel_name)
    if channel is None:
        ctx.reply(f"{SERVER_NAME} 403 {nick} {channel_name} :No such channel\n")
        return
    user_fd = state.get_user(nickname)
    if user_fd is None:
        ctx.reply(f"{SERVER_NAME} 401 {nick} {nickname} :No such nick\n")
        return
    if not channel.is_client(nick):
        ctx.reply(f"{SERVER_NAME} 442 {nick} {channel_name} :You're not on that channel\n")
        return
    if channel.is_client(nickname):
        ctx.reply(
            f"{SERVER_NAME} 443 {nick} {nickname} {channel_name} :is already on channel\n"
        )
        return
    if channel.invite_only and not channel.is_operator(nick):
        ctx.reply(f"{SERVER_NAME} 482 {nick} {channel_name} :You're not channel operator\r\n")
        return
    channel.invite_client(nickname)
    ctx.reply(f"{SERVER_NAME} 341 {nick} {nickname} {channel_name}\n")
    state.send(user_fd, f"{ctx.prefix()} INVITE {nickname} :{channel_name}\n")


def mode_command(
    ctx: CommandContext, channel: Channel, channel_name: str, flag: str, extra: str = ""
) -> None:
    """Apply one channel mode change requested by an operator."""
    state = ctx.state
    nick = ctx.client.nick
    if not channel.is_operator(nick):
        ctx.reply(f"{SERVER_NAME} 482 {nick} {channel_name} :You're not a channel operator\n")
        return

    def announce(code: str, target: str, text: str) -> None:
        state.send_to_channel(channel, f"{SERVER_NAME} {code} {nick} {target} :{text}\n")

    def no_such_user() -> None:
        ctx.reply(f"{SERVER_NAME} 401 {nick} {extra} :No such user\n")

    if flag == "+i":
        channel.invite_only = True
        announce("473", channel_name, "Channel is now invite-only")
    elif flag == "-i":
        channel.invite_only = False
        announce("473", channel_name, "Channel is no longer invite-only")
    elif flag == "+t":
        channel.topic_settable_by_op = True
        announce("332", channel_name, "Only operators can set the topic")
    elif flag == "-t":
        channel.topic_settable_by_op = False
        announce("332", channel_name, "All users can set the topic")
    elif flag == "+k":
        channel.key = extra
        announce("475", channel_name, "Channel now has a password")
    elif flag == "-k":
        channel.key = ""
        announce("475", channel_name, "Channel password removed")
    elif flag == "+o":
        if state.get_user(extra) is not None and channel.is_client(extra):
            channel.add_operator(extra)
            announce("381", extra, "is now a channel operator")
        else:
            no_such_user()
    elif flag == "-o":
        if state.get_user(extra) is not None:
            channel.remove_operator(extra)
            announce("381", extra, "is no longer a channel operator")
        else:
            no_such_user()
    elif flag == "+l":
        try:
            limit = int(extra)
        except ValueError:
            ctx.reply(f"{SERVER_NAME} 461 {nick} :Usage - MODE <target> <flag> [<extra>]\n")
            return
        channel.client_limit = limit
        announce("471", channel_name, f"Channel client limit set to {extra}")
    elif flag == "-l":
        channel.client_limit = None
        announce("471", channel_name, "Channel has no client limit")