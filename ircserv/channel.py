"""Channel membership, invitations, operators and modes."""

from __future__ import annotations

import enum


class JoinStatus(enum.Enum):
    """Outcome of an attempt to join a channel."""

    OK = "ok"
    NOT_ENOUGH_PLACES = "not_enough_places"
    INVALID_KEY = "invalid_key"
    NOT_INVITED = "not_invited"
    ALREADY_IN = "already_in"


class Channel:
    """A chat channel with its members, pending invitations and operators.

    ``client_limit`` is ``None`` when the channel has no limit; a negative
    limit also means no limit.  ``key`` is empty when no key is required.
    """

    def __init__(self, creator: str | None = None) -> None:
        self.clients: set[str] = set()
        self.invited: set[str] = set()
        self.ops: set[str] = set()
        self.topic: str = ""
        self.key: str = ""
        self.client_limit: int | None = None
        self.invite_only: bool = False
        self.topic_settable_by_op: bool = True
        if creator is not None:
            self.clients.add(creator)
            self.ops.add(creator)

    def __repr__(self) -> str:
        return (
            f"Channel(clients={sorted(self.clients)!r}, ops={sorted(self.ops)!r}, "
            f"topic={self.topic!r}, invite_only={self.invite_only!r})"
        )

    def _is_full(self) -> bool:
        limit = self.client_limit
        return limit is not None and limit >= 0 and len(self.clients) >= limit

    def add_client(self, nickname: str, key: str = "") -> JoinStatus:
        """Try to add a client and report why it was refused, if it was.

        On an invite-only channel an invitation is all that is checked, and
        it is used up by the join.
        """
        if nickname in self.clients:
            return JoinStatus.ALREADY_IN
        if self.invite_only:
            if nickname not in self.invited:
                return JoinStatus.NOT_INVITED
            self.invited.discard(nickname)
        elif self._is_full():
            return JoinStatus.NOT_ENOUGH_PLACES
        elif self.key and self.key != key:
            return JoinStatus.INVALID_KEY
        self.clients.add(nickname)
        return JoinStatus.OK

    def kick_client(self, nickname: str) -> None:
        """Remove a client together with its invitation and operator rights."""
        self.clients.discard(nickname)
        self.invited.discard(nickname)
        self.ops.discard(nickname)

    def change_client_nickname(self, old: str, new: str) -> None:
        """Rename a client wherever the old nickname appears."""
        for group in (self.clients, self.invited, self.ops):
            if old in group:
                group.discard(old)
                group.add(new)

    def is_operator(self, nickname: str) -> bool:
        return nickname in self.ops

    def is_client(self, nickname: str) -> bool:
        return nickname in self.clients

    def invite_client(self, nickname: str) -> None:
        """Allow the nickname to join while the channel is invite-only."""
        self.invited.add(nickname)

    def add_operator(self, nickname: str) -> None:
        self.ops.add(nickname)

    def remove_operator(self, nickname: str) -> None:
        self.ops.discard(nickname)