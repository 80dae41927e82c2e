import pytest

from ircserv.client import Client


def test_new_client_not_registered():
    client = Client("127.0.0.1")
    assert client.ip == "127.0.0.1"
    assert not client.is_password_set()
    assert not client.is_nick_set()
    assert not client.is_user_set()
    assert not client.is_authenticated()


def test_authenticated_needs_all_three():
    client = Client("127.0.0.1")
    client.password = "password"
    assert not client.is_authenticated()
    client.nick = "alice"
    assert not client.is_authenticated()
    client.set_username("alice", "Alice Liddell")
    assert client.is_authenticated()


def test_set_username_stores_both():
    client = Client()
    client.set_username("bob", "Bob Builder")
    assert client.username == "bob"
    assert client.realname == "Bob Builder"
    assert client.is_user_set()


def test_equality_by_nick():
    first = Client("10.0.0.1", nick="alice")
    second = Client("10.0.0.2", nick="alice")
    third = Client("10.0.0.1", nick="bob")
    assert first == second
    assert not (first == third)


def test_ordering_by_nick():
    clients = [Client(nick="carol"), Client(nick="alice"), Client(nick="bob")]
    assert [c.nick for c in sorted(clients)] == ["alice", "bob", "carol"]


def test_not_hashable():
    with pytest.raises(TypeError):
        hash(Client(nick="alice"))


def test_channels_add_and_remove():
    client = Client()
    client.add_channel("#a")
    client.add_channel("#b")
    client.add_channel("#a")
    assert client.channels == {"#a", "#b"}
    client.remove_channel("#a")
    client.remove_channel("#missing")
    assert client.channels == {"#b"}


def test_channels_not_shared_between_clients():
    first = Client()
    second = Client()
    first.add_channel("#a")
    assert second.channels == set()