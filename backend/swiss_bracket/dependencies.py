import random

from fastapi import Depends
from sqlmodel import Session

from swiss_bracket.database import get_rng, get_session
from swiss_bracket.services.tournament_engine import TournamentEngine


def get_engine(
    session: Session = Depends(get_session),
    rng: random.Random = Depends(get_rng),
) -> TournamentEngine:
    """Request-scoped engine: one session, one transaction per command."""
    return TournamentEngine(session, rng)
