"""
Player registration.

Standings (points/wins/losses) are read-only here; only the engine moves them.
"""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, ConfigDict, Field

from swiss_bracket.dependencies import get_engine
from swiss_bracket.services.errors import TournamentError
from swiss_bracket.services.tournament_engine import TournamentEngine
from swiss_bracket.utils.http_errors import to_http_exception

router = APIRouter()


class PlayerCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    department_id: int = Field(gt=0)


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    department_id: int
    points: int
    wins: int
    losses: int
    created_at: datetime


@router.get("/players", response_model=List[PlayerResponse])
def list_players(engine: TournamentEngine = Depends(get_engine)):
    """All registered players, by id."""
    return [PlayerResponse.model_validate(p) for p in engine.list_players()]


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(request: PlayerCreateRequest, engine: TournamentEngine = Depends(get_engine)):
    try:
        player = engine.register_player(request.name, request.department_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return PlayerResponse.model_validate(player)


@router.delete("/players/{player_id}", status_code=204)
def delete_player(player_id: int = Path(gt=0), engine: TournamentEngine = Depends(get_engine)):
    """
    Delete a player.

    Refused while any match references the player (start a new Swiss stage first).
    """
    try:
        engine.remove_player(player_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return None
