import socket

import pytest

from ircserv.commands import SERVER_NAME
from ircserv.server import WELCOME, Server, main, parse_port

password = "password"


def drain(sock):
    sock.setblocking(False)
    chunks = []
    while True:
        try:
            chunk = sock.recv(4096)
        except BlockingIOError:
            break
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks).decode()


@pytest.fixture
def server():
    srv = Server(6667, password, "127.0.0.1")
    yield srv
    srv.cleanup()


@pytest.fixture
def peers(server):
    made = []

    def connect():
        ours, theirs = socket.socketpair()
        fd = server._attach(ours, "127.0.0.1")
        made.append(theirs)
        return fd, theirs

    yield connect
    for sock in made:
        sock.close()


def test_parse_port_accepts_range():
    assert parse_port("6667") == 6667
    assert parse_port("1024") == 1024
    assert parse_port("65535") == 65535


@pytest.mark.parametrize("text", ["80", "1023", "65536", "abc", ""])
def test_parse_port_rejects(text):
    with pytest.raises(ValueError, match="Invalid port range"):
        parse_port(text)


def test_main_without_arguments(capsys):
    assert main([]) == 1
    assert "Invalid arguments" in capsys.readouterr().err


def test_main_with_bad_port(capsys):
    assert main(["80", "pw"]) == 1
    assert "Invalid port range" in capsys.readouterr().err


def test_attach_sends_welcome(server, peers):
    fd, peer = peers()
    assert drain(peer) == WELCOME
    assert server.clients[fd].ip == "127.0.0.1"


def test_feed_handles_several_lines(server, peers):
    fd, peer = peers()
    drain(peer)
    server.feed(fd, b"PASS password\r\nNICK alice\r\n")
    assert drain(peer) == (
        f"{SERVER_NAME} 920 :Password accepted\n"
        ":alice!user@127.0.0.1 NICK :alice\n"
    )
    assert server.state.get_user("alice") == fd


def test_feed_buffers_partial_line(server, peers):
    fd, peer = peers()
    drain(peer)
    server.feed(fd, b"PASS pass")
    assert drain(peer) == ""
    server.feed(fd, b"word\n")
    assert drain(peer) == f"{SERVER_NAME} 920 :Password accepted\n"
    assert server.clients[fd].is_password_set()


def test_messages_reach_other_connection(server, peers):
    alice_fd, alice = peers()
    bob_fd, bob = peers()
    for fd, nick in ((alice_fd, "alice"), (bob_fd, "bob")):
        server.feed(fd, f"PASS password\nNICK {nick}\nUSER {nick} 0 * :{nick}\n".encode())
    drain(alice)
    drain(bob)
    server.feed(alice_fd, b"PRIVMSG bob :hello\n")
    assert drain(bob) == ":alice!alice@127.0.0.1 PRIVMSG bob :hello\n"


def test_empty_data_disconnects(server, peers):
    fd, peer = peers()
    drain(peer)
    server.feed(fd, b"")
    assert fd not in server.clients
    peer.setblocking(True)
    peer.settimeout(1)
    assert peer.recv(16) == b""


def test_cleanup_closes_connections(server, peers):
    fd, peer = peers()
    drain(peer)
    server.cleanup()
    assert server.clients == {}
    peer.setblocking(True)
    peer.settimeout(1)
    assert peer.recv(16) == b""


def test_start_raises_when_port_taken():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen(1)
        port = taken.getsockname()[1]
        srv = Server(port, password, "127.0.0.1")
        with pytest.raises(OSError):
            srv.start()
        srv.cleanup()