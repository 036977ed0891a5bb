"""
Swiss stage controller.

Round 1 pairs the whole field; every later round groups the still-active
players by exact (wins, losses) record and pairs each group on its own, an odd
player out being carried into the next group down. The last carry receives a
bye, credited as a win in the same transaction that creates the round.
"""
import logging
import random
from itertools import groupby
from typing import List, Optional, Tuple

from swiss_bracket.models.match import PHASE_SWISS
from swiss_bracket.services.errors import PreconditionError
from swiss_bracket.services.outcomes import (
    ROUND_CREATED,
    ROUND_EXISTS,
    ROUND_OPEN,
    STAGE_COMPLETE,
    RoundOutcome,
)
from swiss_bracket.services.pairing import PairingPlayer, build_pairs
from swiss_bracket.services.record_store import TournamentStore
from swiss_bracket.services.rules import MIN_SWISS_PLAYERS
from swiss_bracket.services.standings import credit_outcome

logger = logging.getLogger(__name__)


def _to_pairing_player(player) -> PairingPlayer:
    return PairingPlayer(id=player.id, department_id=player.department_id)


def _stage_round(
    store: TournamentStore,
    round_number: int,
    pairs: List[Tuple[int, int]],
    carry: Optional[PairingPlayer],
) -> int:
    """Stage a full round (lock, matches, bye credit). Returns number of matches staged."""
    store.add_round_lock(PHASE_SWISS, round_number)
    for player1_id, player2_id in pairs:
        store.add_match(PHASE_SWISS, round_number, player1_id, player2_id)

    if carry is None:
        return len(pairs)

    store.add_match(PHASE_SWISS, round_number, carry.id, None)
    credit_outcome(store, carry.id, None)
    return len(pairs) + 1


def start_swiss(store: TournamentStore, rng: random.Random) -> RoundOutcome:
    """Reset the tournament and create Swiss round 1 from every registered player."""
    players = store.list_players()
    if len(players) < MIN_SWISS_PLAYERS:
        raise PreconditionError(f"Minimum {MIN_SWISS_PLAYERS} players required (registered: {len(players)})")

    deleted = store.reset_tournament()
    result = build_pairs([_to_pairing_player(p) for p in players], {}, rng)
    created = _stage_round(store, 1, result.pairs, result.carry)
    store.commit()

    bye_id = result.carry.id if result.carry else None
    logger.info(
        "Swiss started: %d players, %d round-1 matches (bye: %s), %d old matches removed",
        len(players),
        created,
        bye_id,
        deleted,
    )
    return RoundOutcome(
        status=ROUND_CREATED,
        round_number=1,
        matches_created=created,
        bye_player_id=bye_id,
        message="Swiss round 1 started",
    )


def advance_round(store: TournamentStore, rng: random.Random) -> RoundOutcome:
    """
    Create the next Swiss round if the current one is fully decided.

    Idempotent: an unfinished round, a finished stage, or an already generated
    next round all return without writing anything.
    """
    current_round = store.max_round(PHASE_SWISS)
    if current_round is None:
        raise PreconditionError("Swiss stage has not started")

    open_matches = store.count_open_matches(PHASE_SWISS)
    if open_matches > 0:
        return RoundOutcome(
            status=ROUND_OPEN,
            round_number=current_round,
            message=f"Current Swiss round is not finished ({open_matches} open matches)",
        )

    active = store.find_active_players()
    if len(active) < 2:
        logger.info("Swiss stage finished after round %d (%d active players left)", current_round, len(active))
        return RoundOutcome(status=STAGE_COMPLETE, round_number=current_round, message="Swiss stage finished")

    next_round = current_round + 1
    if store.round_exists(PHASE_SWISS, next_round):
        return RoundOutcome(status=ROUND_EXISTS, round_number=next_round, message="Round already exists")

    opponents = store.swiss_opponent_map()
    pairs: List[Tuple[int, int]] = []
    carry: Optional[PairingPlayer] = None

    # find_active_players() is ordered wins desc, losses asc, so records come out grouped and in order
    for _record, members in groupby(active, key=lambda p: (p.wins, p.losses)):
        group = [_to_pairing_player(p) for p in members]
        if carry is not None:
            group.insert(0, carry)
        result = build_pairs(group, opponents, rng)
        pairs.extend(result.pairs)
        carry = result.carry

    created = _stage_round(store, next_round, pairs, carry)
    store.commit()

    bye_id = carry.id if carry else None
    logger.info("Swiss round %d created: %d matches (bye: %s)", next_round, created, bye_id)
    return RoundOutcome(
        status=ROUND_CREATED,
        round_number=next_round,
        matches_created=created,
        bye_player_id=bye_id,
        message=f"Swiss round {next_round} created",
    )
