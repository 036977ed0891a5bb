"""
Swiss standings arithmetic.

points == POINTS_PER_WIN * wins is preserved by only ever moving wins and
points together. Callers stage these changes and commit them with the match
write in one transaction.
"""
from typing import Optional

from swiss_bracket.services.errors import DataConsistencyError
from swiss_bracket.services.record_store import TournamentStore
from swiss_bracket.services.rules import POINTS_PER_WIN


def credit_outcome(store: TournamentStore, winner_id: int, loser_id: Optional[int]) -> None:
    """Winner +1 win / +3 points, loser (absent for a bye) +1 loss."""
    winner = store.lock_player(winner_id)
    winner.wins += 1
    winner.points += POINTS_PER_WIN
    store.session.add(winner)

    if loser_id is not None:
        loser = store.lock_player(loser_id)
        loser.losses += 1
        store.session.add(loser)


def reverse_outcome(store: TournamentStore, winner_id: int, loser_id: Optional[int]) -> None:
    """Exact inverse of credit_outcome."""
    winner = store.lock_player(winner_id)
    if winner.wins < 1 or winner.points < POINTS_PER_WIN:
        raise DataConsistencyError(
            f"Player {winner_id} has no recorded win to reverse (wins={winner.wins}, points={winner.points})"
        )
    winner.wins -= 1
    winner.points -= POINTS_PER_WIN
    store.session.add(winner)

    if loser_id is not None:
        loser = store.lock_player(loser_id)
        if loser.losses < 1:
            raise DataConsistencyError(f"Player {loser_id} has no recorded loss to reverse")
        loser.losses -= 1
        store.session.add(loser)
