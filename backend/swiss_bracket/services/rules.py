"""
Tournament rules shared by the stage controllers and the result ledger.
"""
from typing import Tuple

POINTS_PER_WIN = 3

# Swiss exit thresholds: 3 wins qualifies, 3 losses eliminates
ADVANCE_WINS = 3
ELIMINATION_LOSSES = 3

MIN_SWISS_PLAYERS = 4

BRACKET_SIZES: Tuple[int, ...] = (4, 8, 16, 32)


def ranking_key(player) -> Tuple[int, int, int, int]:
    """Seeding order: points desc, wins desc, losses asc, id asc."""
    return (-player.points, -player.wins, player.losses, player.id)
