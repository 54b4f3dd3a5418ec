"""In-memory map of authenticated socket connections.

The database connection flag stays the source of truth for "who is online";
this registry only links an account to the socket it authenticated on so a
disconnect can be traced back to the account.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from cerisonet.realtime.events import AuthenticateEvent


@dataclass(frozen=True)
class PresenceEntry:
    account_id: int
    sid: str
    user: AuthenticateEvent

    @property
    def name(self) -> str:
        return self.user.name


class PresenceRegistry:
    def __init__(self) -> None:
        self._entries: dict[int, PresenceEntry] = {}

    def add(self, sid: str, user: AuthenticateEvent) -> PresenceEntry:
        """Bind the account to this socket, replacing any previous binding."""
        entry = PresenceEntry(account_id=user.id, sid=sid, user=user)
        self._entries[user.id] = entry
        return entry

    def get(self, account_id: int) -> PresenceEntry | None:
        return self._entries.get(account_id)

    def find_by_sid(self, sid: str) -> PresenceEntry | None:
        for entry in self._entries.values():
            if entry.sid == sid:
                return entry
        return None

    def remove_by_sid(self, sid: str) -> PresenceEntry | None:
        entry = self.find_by_sid(sid)
        if entry is not None:
            del self._entries[entry.account_id]
        return entry

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PresenceEntry]:
        return iter(list(self._entries.values()))
