"""
Match listing and result entry.

PATCH records (or corrects) a winner; for SWISS matches standings follow the
correction exactly and the next round is generated once the current one is
complete. DELETE reverses a recorded Swiss outcome before removing the match.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, ConfigDict, Field

from swiss_bracket.dependencies import get_engine
from swiss_bracket.models.match import PHASES, Match
from swiss_bracket.models.player import Player
from swiss_bracket.routes.swiss import RoundOutcomeResponse
from swiss_bracket.services.errors import TournamentError
from swiss_bracket.services.tournament_engine import TournamentEngine
from swiss_bracket.utils.http_errors import to_http_exception

router = APIRouter()


class PlayerRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    department_id: int


class MatchResponse(BaseModel):
    id: int
    round_number: int
    phase: str
    player1_id: int
    player2_id: Optional[int] = None
    winner_id: Optional[int] = None
    created_at: datetime
    player1: Optional[PlayerRef] = None
    player2: Optional[PlayerRef] = None
    winner: Optional[PlayerRef] = None


class RecordResultRequest(BaseModel):
    winner_id: int = Field(gt=0)


class RecordResultResponse(BaseModel):
    match: MatchResponse
    advancement: Optional[RoundOutcomeResponse] = None


class DeleteMatchResponse(BaseModel):
    success: bool = True
    deleted_match_id: int


def _player_ref(p: Optional[Player]) -> Optional[PlayerRef]:
    return PlayerRef.model_validate(p) if p is not None else None


def match_to_response(m: Match) -> MatchResponse:
    return MatchResponse(
        id=m.id,
        round_number=m.round_number,
        phase=m.phase,
        player1_id=m.player1_id,
        player2_id=m.player2_id,
        winner_id=m.winner_id,
        created_at=m.created_at,
        player1=_player_ref(m.player1),
        player2=_player_ref(m.player2),
        winner=_player_ref(m.winner),
    )


@router.get("/matches", response_model=List[MatchResponse])
def list_matches(
    phase: Optional[str] = Query(default=None),
    engine: TournamentEngine = Depends(get_engine),
) -> List[MatchResponse]:
    """All matches ordered by round, then creation. Optional phase filter."""
    if phase is not None and phase not in PHASES:
        raise HTTPException(status_code=422, detail=f"Invalid phase: {phase}")
    return [match_to_response(m) for m in engine.list_matches(phase=phase)]


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(match_id: int = Path(gt=0), engine: TournamentEngine = Depends(get_engine)) -> MatchResponse:
    try:
        match = engine.get_match(match_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return match_to_response(match)


@router.patch("/matches/{match_id}", response_model=RecordResultResponse)
def record_result(
    payload: RecordResultRequest,
    match_id: int = Path(gt=0),
    engine: TournamentEngine = Depends(get_engine),
) -> RecordResultResponse:
    """Record or correct the winner of a match. Bye matches are not editable."""
    try:
        recorded = engine.record_result(match_id, payload.winner_id)
    except TournamentError as e:
        raise to_http_exception(e)

    advancement = None
    if recorded.advancement is not None:
        advancement = RoundOutcomeResponse.model_validate(recorded.advancement)
    return RecordResultResponse(match=match_to_response(recorded.match), advancement=advancement)


@router.delete("/matches/{match_id}", response_model=DeleteMatchResponse)
def delete_match(match_id: int = Path(gt=0), engine: TournamentEngine = Depends(get_engine)) -> DeleteMatchResponse:
    """Administrative removal; a recorded Swiss outcome is reversed first."""
    try:
        engine.delete_match(match_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return DeleteMatchResponse(deleted_match_id=match_id)
