"""The listening server, its connections and the command-line entry point."""

from __future__ import annotations

import selectors
import socket
import sys
from typing import Optional, Sequence

from ircserv.client import Client
from ircserv.commands import SERVER_NAME
from ircserv.requests import RequestHandler
from ircserv.state import ServerState

MAX_CONNECTIONS = 100
RECV_SIZE = 1023
MIN_PORT = 1024
MAX_PORT = 65535
WELCOME = f"{SERVER_NAME} NOTICE * :Welcome! Use HELP for more info\n"


def parse_port(text: str) -> int:
    """Parse a listening port, which must lie between 1024 and 65535."""
    error = f"Invalid port range\nUse values in range of {MIN_PORT} to {MAX_PORT}"
    try:
        port = int(text)
    except ValueError:
        raise ValueError(error) from None
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(error)
    return port


class Server:
    """A poll-driven chat server holding up to ``MAX_CONNECTIONS - 1`` clients."""

    def __init__(self, port: int, password: str, host: str = "0.0.0.0") -> None:
        self.port = port
        self.host = host
        self.password = password
        self.state = ServerState(password, self._deliver)
        self.clients: dict[int, Client] = {}
        self._connections: dict[int, socket.socket] = {}
        self._buffers: dict[int, bytes] = {}
        self._listener: Optional[socket.socket] = None
        self._selector: Optional[selectors.BaseSelector] = None

    def _deliver(self, fd: int, message: str) -> None:
        sock = self._connections.get(fd)
        if sock is None:
            return
        try:
            sock.send(message.encode("utf-8"))
        except OSError as exc:
            print(f"Send error: {exc}", file=sys.stderr)

    def _attach(self, sock: socket.socket, ip: str) -> Optional[int]:
        """Take on a new connection; returns its id, or None when full."""
        if len(self._connections) >= MAX_CONNECTIONS - 1:
            print("No available slots for new client", file=sys.stderr)
            sock.close()
            return None
        sock.setblocking(False)
        fd = sock.fileno()
        self._connections[fd] = sock
        self.clients[fd] = Client(ip=ip)
        if self._selector is not None:
            self._selector.register(sock, selectors.EVENT_READ)
        print(f"New client connected, IP: {ip}")
        self._deliver(fd, WELCOME)
        return fd

    def _disconnect(self, fd: int) -> None:
        sock = self._connections.pop(fd, None)
        if sock is not None:
            if self._selector is not None:
                self._selector.unregister(sock)
            sock.close()
        self.clients.pop(fd, None)
        self._buffers.pop(fd, None)

    def feed(self, fd: int, data: bytes) -> None:
        """Process bytes received on a connection; empty data means it closed."""
        if not data:
            print("Client disconnected")
            self._disconnect(fd)
            return
        *lines, rest = (self._buffers.get(fd, b"") + data).split(b"\n")
        self._buffers[fd] = rest
        client = self.clients.setdefault(fd, Client())
        for raw in lines:
            line = raw.removesuffix(b"\r")
            if line:
                RequestHandler(self.state, client, fd).handle(line.decode("utf-8", "replace"))

    def _accept(self) -> None:
        assert self._listener is not None
        try:
            conn, address = self._listener.accept()
        except OSError as exc:
            print(f"Accept error: {exc}", file=sys.stderr)
            return
        self._attach(conn, address[0])

    def _receive(self, fd: int) -> None:
        sock = self._connections.get(fd)
        if sock is None:
            return
        try:
            data = sock.recv(RECV_SIZE)
        except BlockingIOError:
            return
        except OSError:
            print("recv() error", file=sys.stderr)
            self._disconnect(fd)
            return
        self.feed(fd, data)

    def start(self) -> None:
        """Bind, listen and serve connections until interrupted."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            listener.bind((self.host, self.port))
            listener.listen(MAX_CONNECTIONS)
        except OSError:
            listener.close()
            raise
        listener.setblocking(False)
        self._listener = listener
        self._selector = selectors.DefaultSelector()
        self._selector.register(listener, selectors.EVENT_READ)
        for sock in self._connections.values():
            self._selector.register(sock, selectors.EVENT_READ)

        while True:
            for key, _ in self._selector.select():
                if key.fileobj is listener:
                    self._accept()
                else:
                    self._receive(key.fd)

    def cleanup(self) -> None:
        """Close every connection and the listening socket."""
        print("Cleaning up all sockets...")
        for fd in list(self._connections):
            self._disconnect(fd)
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        print("All resources have been cleaned up.")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the server: ``ircserv <port> <password>``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print("Invalid arguments\nUsage - ircserv <port> <password>", file=sys.stderr)
        return 1
    try:
        port = parse_port(args[0])
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    server = Server(port, args[1])
    try:
        server.start()
    except KeyboardInterrupt:
        print("Shutting down server...")
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1
    finally:
        server.cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main())