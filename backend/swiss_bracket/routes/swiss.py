"""
Swiss stage commands.

POST /swiss/start resets standings, deletes every match and pairs round 1.
POST /swiss/next is idempotent: it only creates a round when the current one
is fully decided and the next one does not exist yet.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from swiss_bracket.dependencies import get_engine
from swiss_bracket.services.errors import TournamentError
from swiss_bracket.services.tournament_engine import TournamentEngine
from swiss_bracket.utils.http_errors import to_http_exception

router = APIRouter()


class RoundOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool = True
    status: str  # CREATED | EXISTS | ROUND_OPEN | STAGE_COMPLETE
    round_number: Optional[int] = None
    matches_created: int = 0
    bye_player_id: Optional[int] = None
    message: str = ""


@router.post("/swiss/start", response_model=RoundOutcomeResponse)
def start_swiss(engine: TournamentEngine = Depends(get_engine)) -> RoundOutcomeResponse:
    try:
        outcome = engine.start_swiss()
    except TournamentError as e:
        raise to_http_exception(e)
    return RoundOutcomeResponse.model_validate(outcome)


@router.post("/swiss/next", response_model=RoundOutcomeResponse)
def next_swiss_round(engine: TournamentEngine = Depends(get_engine)) -> RoundOutcomeResponse:
    try:
        outcome = engine.advance_swiss_round()
    except TournamentError as e:
        raise to_http_exception(e)
    return RoundOutcomeResponse.model_validate(outcome)
