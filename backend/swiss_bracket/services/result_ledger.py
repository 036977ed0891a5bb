"""
Result ledger: writes match winners and keeps Swiss standings in step.

A SWISS result first reverses whatever outcome the match already carried, then
applies the new one, so re-recording or correcting a result is always safe.
LAST_CHANCE and KNOCKOUT results only set winner_id; standings are Swiss-only.
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from swiss_bracket.models.match import PHASE_KNOCKOUT, PHASE_LAST_CHANCE, PHASE_SWISS, Match
from swiss_bracket.services import bracket_builder, swiss_stage
from swiss_bracket.services.errors import InvalidInputError, PreconditionError, TournamentError
from swiss_bracket.services.outcomes import RoundOutcome
from swiss_bracket.services.record_store import TournamentStore
from swiss_bracket.services.standings import credit_outcome, reverse_outcome

logger = logging.getLogger(__name__)


@dataclass
class RecordedResult:
    match: Match
    advancement: Optional[RoundOutcome] = None


def require_id(value, label: str) -> int:
    """Reject malformed identifiers before touching stored state."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"Invalid {label}: {value!r}")
    return value


def _guard_bracket_correction(store: TournamentStore, match: Match, winner_id: int) -> None:
    """Once a winner has been fed forward, changing it would leave the bracket inconsistent."""
    if match.winner_id is None or match.winner_id == winner_id:
        return
    if match.phase == PHASE_LAST_CHANCE and store.count_matches(PHASE_KNOCKOUT) > 0:
        raise PreconditionError("Knockout already started; last-chance results can no longer change")
    if match.phase == PHASE_KNOCKOUT and store.round_exists(PHASE_KNOCKOUT, match.round_number + 1):
        raise PreconditionError(
            f"Knockout round {match.round_number + 1} already exists; result of match {match.id} can no longer change"
        )


def _advance_after(store: TournamentStore, phase: str, rng: random.Random) -> Optional[RoundOutcome]:
    try:
        if phase == PHASE_SWISS:
            return swiss_stage.advance_round(store, rng)
        if phase == PHASE_KNOCKOUT:
            return bracket_builder.advance_knockout(store)
    except TournamentError as exc:
        # The result is already committed; /next regenerates the round idempotently
        store.rollback()
        logger.warning("Round generation after result failed, result kept: %s", exc)
    except SQLAlchemyError as exc:
        error = store.fail(exc)
        logger.warning("Round generation after result failed, result kept: %s", error)
    return None


def record_result(store: TournamentStore, match_id: int, winner_id: int, rng: random.Random) -> RecordedResult:
    require_id(match_id, "match id")
    require_id(winner_id, "winner id")

    match = store.require_match(match_id)
    if match.player1_id is None or match.player2_id is None:
        raise InvalidInputError("Cannot set winner on bye/TBA match")
    if winner_id not in (match.player1_id, match.player2_id):
        raise InvalidInputError("Winner must be one of the players in the match")

    loser_id = match.player2_id if winner_id == match.player1_id else match.player1_id
    phase = match.phase

    if phase == PHASE_SWISS:
        previous_winner = match.winner_id
        if previous_winner is not None:
            reverse_outcome(store, previous_winner, match.loser_id)
        credit_outcome(store, winner_id, loser_id)
        if previous_winner is not None and previous_winner != winner_id:
            logger.info("Swiss match %d corrected: winner %d -> %d", match_id, previous_winner, winner_id)
    else:
        _guard_bracket_correction(store, match, winner_id)

    match.winner_id = winner_id
    store.session.add(match)
    store.commit()
    logger.info("Result recorded: %s match %d won by player %d", phase, match_id, winner_id)

    advancement = _advance_after(store, phase, rng)
    return RecordedResult(match=match, advancement=advancement)


def delete_match(store: TournamentStore, match_id: int) -> None:
    """Remove a match, first reversing any Swiss outcome it credited."""
    require_id(match_id, "match id")
    match = store.require_match(match_id)

    if match.phase == PHASE_SWISS and match.winner_id is not None:
        # A bye credited only its winner; loser_id is None there
        reverse_outcome(store, match.winner_id, match.loser_id)

    phase, round_number = match.phase, match.round_number
    store.delete_match(match)
    store.flush()
    if store.count_round_matches(phase, round_number) == 0:
        store.drop_round_lock(phase, round_number)
    store.commit()
    logger.info("Match %d deleted (%s round %d)", match_id, phase, round_number)
