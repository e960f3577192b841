"""Scoreboard domain models and request/response DTOs."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Player(BaseModel):
    id: int
    name: str = Field(min_length=1)
    score: int = 0


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CreatePlayerRequest(BaseModel):
    id: int
    name: str = Field(min_length=1)


class ScoreRequest(BaseModel):
    points: int


class PlayerScoreRequest(BaseModel):
    score: int


class ScoreboardResponse(BaseModel):
    total: int
    games_started: int
    handlers_enabled: bool
    players: list[Player] = Field(default_factory=list)
