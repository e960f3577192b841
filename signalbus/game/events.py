"""Events published by the scoreboard game loop."""

from __future__ import annotations

from pydantic import BaseModel

from signalbus.domain.keys import EventKey


class PlayerDataUpdate(BaseModel):
    """Fired when a specific player's score changes."""

    player_id: int
    score: int


GAME_STARTED: EventKey[None] = EventKey("game.started", None)
PLAYER_SCORED: EventKey[int] = EventKey("player.scored", int)
PLAYER_DATA_UPDATED: EventKey[PlayerDataUpdate] = EventKey(
    "player.data_updated", PlayerDataUpdate
)
