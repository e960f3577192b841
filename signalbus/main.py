"""FastAPI application: scoreboard service publishing game events on a bus."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException

from signalbus.config import BusSettings
from signalbus.domain.bus import EventBus
from signalbus.domain.errors import BusClosedError
from signalbus.domain.keys import EventKey
from signalbus.domain.models import PublishSummary
from signalbus.game.events import (
    GAME_STARTED,
    PLAYER_DATA_UPDATED,
    PLAYER_SCORED,
    PlayerDataUpdate,
)
from signalbus.game.handlers import GameHandlerRegistry
from signalbus.game.models import (
    CreatePlayerRequest,
    Player,
    PlayerScoreRequest,
    ScoreboardResponse,
    ScoreRequest,
)
from signalbus.logging_utils import configure_logging
from signalbus.repos.memory import PlayerRepository, ScoreLedger

settings = BusSettings.from_env()
configure_logging(settings)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus.from_settings(settings, name="scoreboard")
player_repo = PlayerRepository()
ledger = ScoreLedger()

handler_registry = GameHandlerRegistry(
    bus=event_bus,
    player_repo=player_repo,
    ledger=ledger,
)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    event_bus.shutdown()


app = FastAPI(title="Scoreboard Service", lifespan=lifespan)


def _publish(key: EventKey[Any], *payload: Any) -> PublishSummary:
    try:
        result = event_bus.publish(key, *payload)
    except BusClosedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return result.summary()


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/game/start", response_model=PublishSummary)
def start_game() -> PublishSummary:
    """Announce that a game has started."""
    return _publish(GAME_STARTED)


@app.post("/players", response_model=Player, status_code=201)
def create_player(body: CreatePlayerRequest) -> Player:
    if player_repo.get(body.id) is not None:
        raise HTTPException(status_code=409, detail="Player already exists")
    player = Player(id=body.id, name=body.name)
    player_repo.add(player)
    return player


@app.get("/players/{player_id}", response_model=Player)
def get_player(player_id: int) -> Player:
    player = player_repo.get(player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


@app.post("/scores", response_model=PublishSummary)
def score(body: ScoreRequest) -> PublishSummary:
    """Publish a scoring event for the running total."""
    return _publish(PLAYER_SCORED, body.points)


@app.post("/players/{player_id}/score", response_model=PublishSummary)
def score_player(player_id: int, body: PlayerScoreRequest) -> PublishSummary:
    """Publish a score update for one player."""
    player = player_repo.get(player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return _publish(PLAYER_DATA_UPDATED, PlayerDataUpdate(player_id=player.id, score=body.score))


@app.get("/scoreboard", response_model=ScoreboardResponse)
def scoreboard() -> ScoreboardResponse:
    return ScoreboardResponse(
        total=ledger.total,
        games_started=ledger.games_started,
        handlers_enabled=handler_registry.enabled,
        players=player_repo.list_all(),
    )


@app.post("/handlers/enable")
def enable_handlers() -> dict:
    handler_registry.enable()
    return {"handlers_enabled": handler_registry.enabled}


@app.post("/handlers/disable")
def disable_handlers() -> dict:
    handler_registry.disable()
    return {"handlers_enabled": handler_registry.enabled}
