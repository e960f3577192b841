"""In-memory stores: the subscriber registry and the scoreboard collaborator's state."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable, Hashable
from typing import Any

from signalbus.domain.models import SubscriberEntry, SubscriptionHandle
from signalbus.game.models import Player


class SubscriberRegistry:
    """Dict-backed map of event id to subscriber entries, in insertion order.

    Every read and mutation of the mapping happens under one re-entrant lock.
    An event id present in the mapping always has at least one entry.
    """

    def __init__(self) -> None:
        self._store: dict[Hashable, list[SubscriberEntry]] = {}
        self._index: dict[str, Hashable] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def add(
        self, handle: SubscriptionHandle, handler: Callable[..., Any]
    ) -> SubscriberEntry:
        with self._lock:
            entry = SubscriberEntry(
                handle=handle, handler=handler, sequence=next(self._sequence)
            )
            self._store.setdefault(handle.event_id, []).append(entry)
            self._index[handle.id] = handle.event_id
            return entry

    def remove(self, handle: SubscriptionHandle) -> bool:
        """Remove the entry issued for *handle*; False if it is not registered."""
        with self._lock:
            if handle.id not in self._index:
                return False
            event_id = self._index[handle.id]
            if event_id != handle.event_id:
                return False
            entries = self._store.get(event_id, [])
            for pos, entry in enumerate(entries):
                if entry.handle.id == handle.id:
                    del entries[pos]
                    break
            del self._index[handle.id]
            if not entries:
                self._store.pop(event_id, None)
            return True

    def snapshot(self, event_id: Hashable) -> tuple[SubscriberEntry, ...]:
        """Immutable copy of the entries for *event_id*, ordered by sequence."""
        with self._lock:
            return tuple(self._store.get(event_id, ()))

    def contains(self, handle: SubscriptionHandle) -> bool:
        with self._lock:
            return handle.id in self._index

    def count(self) -> int:
        with self._lock:
            return len(self._index)

    def count_for(self, event_id: Hashable) -> int:
        with self._lock:
            return len(self._store.get(event_id, ()))

    def event_ids(self) -> list[Hashable]:
        with self._lock:
            return list(self._store)

    def clear(self) -> int:
        """Drop every entry. Returns how many went."""
        with self._lock:
            removed = len(self._index)
            self._store.clear()
            self._index.clear()
            return removed

    def clear_event(self, event_id: Hashable) -> int:
        with self._lock:
            entries = self._store.pop(event_id, [])
            for entry in entries:
                self._index.pop(entry.handle.id, None)
            return len(entries)

    def __len__(self) -> int:
        return self.count()


class PlayerRepository:
    """Dict-backed store for Player instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[int, Player] = {}

    def add(self, player: Player) -> None:
        self._store[player.id] = player

    def get(self, player_id: int) -> Player | None:
        return self._store.get(player_id)

    def list_all(self) -> list[Player]:
        return sorted(self._store.values(), key=lambda p: p.id)


class ScoreLedger:
    """Running totals kept by the scoreboard handlers."""

    def __init__(self) -> None:
        self.total = 0
        self.games_started = 0
        self.history: list[int] = []
        self._lock = threading.Lock()

    def record_points(self, points: int) -> int:
        with self._lock:
            self.total += points
            self.history.append(points)
            return self.total

    def record_game_start(self) -> None:
        with self._lock:
            self.games_started += 1
