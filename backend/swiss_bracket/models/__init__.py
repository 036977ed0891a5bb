from swiss_bracket.models.match import PHASE_KNOCKOUT, PHASE_LAST_CHANCE, PHASE_SWISS, PHASES, Match
from swiss_bracket.models.player import Player
from swiss_bracket.models.round_lock import RoundLock

__all__ = [
    "Player",
    "Match",
    "RoundLock",
    "PHASE_SWISS",
    "PHASE_LAST_CHANCE",
    "PHASE_KNOCKOUT",
    "PHASES",
]
