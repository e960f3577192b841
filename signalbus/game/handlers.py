"""Scoreboard handlers: subscribed when enabled, unsubscribed when disabled."""

from __future__ import annotations

import logging

from signalbus.domain.bus import EventBus
from signalbus.domain.models import SubscriptionHandle
from signalbus.game.events import (
    GAME_STARTED,
    PLAYER_DATA_UPDATED,
    PLAYER_SCORED,
    PlayerDataUpdate,
)
from signalbus.repos.memory import PlayerRepository, ScoreLedger

LOGGER = logging.getLogger(__name__)


class GameHandlerRegistry:
    """Wires scoreboard handlers to a bus and keeps their handles."""

    def __init__(
        self,
        bus: EventBus,
        player_repo: PlayerRepository,
        ledger: ScoreLedger,
        enable: bool = True,
    ) -> None:
        self.bus = bus
        self.player_repo = player_repo
        self.ledger = ledger
        self._handles: list[SubscriptionHandle] = []
        if enable:
            self.enable()

    @property
    def enabled(self) -> bool:
        return bool(self._handles)

    def enable(self) -> None:
        if self.enabled:
            return
        self._handles.append(self.bus.subscribe(GAME_STARTED, self.on_game_started))
        self._handles.append(self.bus.subscribe(PLAYER_SCORED, self.on_player_scored))
        self._handles.append(
            self.bus.subscribe(PLAYER_DATA_UPDATED, self.on_player_data_updated)
        )

    def disable(self) -> None:
        for handle in self._handles:
            self.bus.unsubscribe(handle)
        self._handles = []

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_game_started(self) -> None:
        self.ledger.record_game_start()
        LOGGER.info("The game has started!")

    def on_player_scored(self, points: int) -> None:
        total = self.ledger.record_points(points)
        LOGGER.info("Player scored %d points (total %d)", points, total)

    def on_player_data_updated(self, update: PlayerDataUpdate) -> None:
        stored = self.player_repo.get(update.player_id)
        if stored is None:
            return

        LOGGER.info("Player id %d player name is %s", stored.id, stored.name)
        stored.score += update.score
