# ircserv

A small IRC server. It listens on a TCP port, requires a connection password
before a client can register, and supports channels with operators,
invitations, topics, keys and client limits. A built-in bot answers private
messages sent to `bot`.

## Running

```
ircserv <port> <password>
```

The port must be a whole number between 1024 and 65535; otherwise the command
prints an error and exits with status 1, as it does when an argument is
missing. The server listens on all interfaces, takes up to 99 clients at a
time and greets each new connection with a notice. Stop it with Ctrl-C, which
closes every connection and the listening socket.

## Registering

A client registers with three commands, in this order:

```
PASS <password>
NICK <nickname>
USER <username> 0 * :<realname>
```

Until all three have been accepted only `HELP`, `PASS`, `NICK`, `USER` and
`CAP` are answered; anything else gets a 451 reply. A nickname may be up to
32 characters long and must not already be taken. `NICK` may be sent again
later to change the nickname; the change is carried into every channel the
client is on. `HELP` with no arguments lists the commands.

## Commands

| Command | Usage |
|---------|-------|
| `JOIN` | `JOIN <#channel> [key]`. The first client to join creates the channel and becomes its operator. Joining an existing channel sends the topic and the list of members. |
| `PART` | `PART <#channel> [:<reason>]`. A channel is removed once its last member leaves. |
| `PRIVMSG` | `PRIVMSG <target> :<message>`. The target is a nickname, a `#channel` (delivered to every other member) or `bot`. |
| `TOPIC` | `TOPIC <channel> <topic>` sets the topic and announces it to the members. |
| `INVITE` | `INVITE <nickname> <channel>`. On an invite-only channel only operators may invite. |
| `KICK` | `KICK <channel> <nick> [reason]`. Operators only; an operator cannot kick itself. |
| `MODE` | `MODE <channel> <flag> [<extra>]`. Operators only. |
| `PING` | `PING <token>` is answered with `PONG :<token>`. |
| `CAP` | `CAP LS`, `CAP REQ :<caps>` (acknowledged as given) and `CAP END`; any other subcommand gets `NAK`. |

### Channel modes

- `+i` / `-i`: invite-only on or off. An invitation lets one join through, and
  is used up by it.
- `+t` / `-t`: topic settable by operators only (the default), or by every member
- `+k <key>` / `-k`: set or remove the channel key
- `+o <nick>` / `-o <nick>`: give or take operator status
- `+l <limit>` / `-l`: set or remove the client limit

### The bot

`PRIVMSG bot :Hello` and `PRIVMSG bot :Tell me about you` get an answer from
the built-in bot. Any other message gets a polite refusal.

## Using it from Python

```python
from ircserv.server import Server

password = "password"
server = Server(6667, password, "0.0.0.0")
try:
    server.start()
finally:
    server.cleanup()
```

The protocol can also be driven without sockets. `Server.feed(fd, data)`
processes raw bytes as if they had arrived on connection `fd`, and
`ircserv.state.ServerState` takes a `sender` callable that receives every
outgoing `(fd, message)`:

```python
from ircserv.client import Client
from ircserv.requests import RequestHandler
from ircserv.state import ServerState

sent = []
state = ServerState("password", lambda fd, message: sent.append((fd, message)))
handler = RequestHandler(state, Client(ip="127.0.0.1"), 4)
handler.handle("PASS password")
handler.handle("NICK alice")
```

The modules are:

- `ircserv.channel`: `Channel` and the `JoinStatus` outcomes of a join
- `ircserv.client`: `Client`, a connection's registration state
- `ircserv.state`: `ServerState` (nicknames, channels, delivery) and `bot_response`
- `ircserv.commands`: the command functions and their `CommandContext`
- `ircserv.requests`: `RequestHandler`, which parses one line and dispatches it
- `ircserv.server`: `Server`, `parse_port` and the `main` entry point

## What it does not do

The server handles only the commands listed above. There is no `QUIT`,
`NAMES`, `LIST`, `WHO` or `WHOIS`, `TOPIC` cannot be used to read the current
topic, there are no user modes, no TLS, and nothing is stored between runs.