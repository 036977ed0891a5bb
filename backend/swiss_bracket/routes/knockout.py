"""
Knockout stage commands and bracket view.

POST /knockout/start either seeds the bracket or, when the qualified field is
short of a valid bracket size, creates the last-chance play-in round. Call it
again once the last-chance round is decided.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from swiss_bracket.dependencies import get_engine
from swiss_bracket.routes.matches import MatchResponse, match_to_response
from swiss_bracket.routes.swiss import RoundOutcomeResponse
from swiss_bracket.services.errors import TournamentError
from swiss_bracket.services.tournament_engine import TournamentEngine
from swiss_bracket.utils.http_errors import to_http_exception

router = APIRouter()


class KnockoutStartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool = True
    status: str  # KNOCKOUT_CREATED | LAST_CHANCE_CREATED
    bracket_size: int
    matches_created: int
    participant_ids: List[int]
    message: str = ""


class BracketRound(BaseModel):
    round_number: int
    matches: List[MatchResponse]


class BracketResponse(BaseModel):
    rounds: List[BracketRound]
    champion_id: Optional[int] = None


@router.post("/knockout/start", response_model=KnockoutStartResponse)
def start_knockout(engine: TournamentEngine = Depends(get_engine)) -> KnockoutStartResponse:
    try:
        result = engine.start_knockout()
    except TournamentError as e:
        raise to_http_exception(e)
    return KnockoutStartResponse.model_validate(result)


@router.post("/knockout/next", response_model=RoundOutcomeResponse)
def next_knockout_round(engine: TournamentEngine = Depends(get_engine)) -> RoundOutcomeResponse:
    """Manually run round generation (repair after a conflicted write). Idempotent."""
    try:
        outcome = engine.advance_knockout_round()
    except TournamentError as e:
        raise to_http_exception(e)
    return RoundOutcomeResponse.model_validate(outcome)


@router.get("/knockout/bracket", response_model=BracketResponse)
def get_bracket(engine: TournamentEngine = Depends(get_engine)) -> BracketResponse:
    rounds = [
        BracketRound(round_number=i + 1, matches=[match_to_response(m) for m in matches])
        for i, matches in enumerate(engine.knockout_bracket())
    ]
    return BracketResponse(rounds=rounds, champion_id=engine.champion_id())
