from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from swiss_bracket.dependencies import get_engine
from swiss_bracket.services.tournament_engine import TournamentEngine

router = APIRouter()


class TournamentStateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    phase: Optional[str] = None  # None until Swiss round 1 exists
    swiss_round: Optional[int] = None
    knockout_round: Optional[int] = None
    player_count: int
    active_count: int
    qualified_count: int
    champion_id: Optional[int] = None


@router.get("/tournament/state", response_model=TournamentStateResponse)
def get_tournament_state(engine: TournamentEngine = Depends(get_engine)) -> TournamentStateResponse:
    """Derived stage snapshot; the phase is computed from match records on every call."""
    return TournamentStateResponse.model_validate(engine.state())
