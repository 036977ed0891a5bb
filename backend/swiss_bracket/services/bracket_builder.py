"""
Knockout bracket construction.

Start (one-shot):
  - Swiss must have no open match and no KNOCKOUT match may exist yet.
  - Bracket size = smallest of BRACKET_SIZES with qualified <= size <= total players.
  - Short of that size, the best non-qualified players contest a LAST_CHANCE
    round (1v2, 3v4, ...). Its winners join the qualified players on the next
    start call.
  - Seeding is a snake: rank 1 v rank N, rank 2 v rank N-1, ...

Later rounds pair the previous round's winners in match order; an odd winner
out gets a trailing bye.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from swiss_bracket.models.match import PHASE_KNOCKOUT, PHASE_LAST_CHANCE, PHASE_SWISS, Match
from swiss_bracket.models.player import Player
from swiss_bracket.services.errors import DataConsistencyError, PreconditionError
from swiss_bracket.services.outcomes import (
    KNOCKOUT_CREATED,
    LAST_CHANCE_CREATED,
    ROUND_CREATED,
    ROUND_EXISTS,
    ROUND_OPEN,
    STAGE_COMPLETE,
    KnockoutStart,
    RoundOutcome,
)
from swiss_bracket.services.record_store import TournamentStore
from swiss_bracket.services.rules import BRACKET_SIZES, ranking_key

logger = logging.getLogger(__name__)

Pairing = Tuple[int, Optional[int]]


def select_bracket_size(qualified_count: int, total_players: int) -> Optional[int]:
    """Smallest allowed bracket size that fits every qualified player and the field."""
    for size in BRACKET_SIZES:
        if qualified_count <= size <= total_players:
            return size
    return None


def snake_pairs(seeded_ids: Sequence[int]) -> List[Tuple[int, int]]:
    """(1,N), (2,N-1), ... for an even-sized seed list."""
    n = len(seeded_ids)
    if n % 2:
        raise DataConsistencyError(f"Snake seeding needs an even field, got {n} players")
    return [(seeded_ids[i], seeded_ids[n - 1 - i]) for i in range(n // 2)]


def sequential_pairs(ids: Sequence[int]) -> List[Pairing]:
    """(1,2), (3,4), ...; a trailing odd entry gets a bye (None)."""
    pairs: List[Pairing] = []
    for i in range(0, len(ids), 2):
        pairs.append((ids[i], ids[i + 1] if i + 1 < len(ids) else None))
    return pairs


def last_chance_pairs(candidate_ids: Sequence[int], extra_slots: int) -> List[Pairing]:
    """
    Play-in pairings producing exactly *extra_slots* winners.

    The top 2*extra_slots candidates are paired sequentially. When fewer
    candidates exist, the highest ranked ones get byes so the winner count
    still matches the open slots.
    """
    contenders = list(candidate_ids[: extra_slots * 2])
    bye_count = extra_slots * 2 - len(contenders)
    byes: List[Pairing] = [(pid, None) for pid in contenders[:bye_count]]
    return byes + sequential_pairs(contenders[bye_count:])


def match_winner(match: Match) -> Optional[int]:
    """Decided winner; a bye's lone player counts as its own winner."""
    if match.winner_id is not None:
        return match.winner_id
    if match.player2_id is None:
        return match.player1_id
    return None


def _stage_pairings(store: TournamentStore, phase: str, round_number: int, pairings: Sequence[Pairing]) -> int:
    store.add_round_lock(phase, round_number)
    for player1_id, player2_id in pairings:
        store.add_match(phase, round_number, player1_id, player2_id)
    return len(pairings)


def _seed_knockout(store: TournamentStore, participants: List[Player]) -> KnockoutStart:
    seeded = sorted(participants, key=ranking_key)
    seeded_ids = [p.id for p in seeded]
    created = _stage_pairings(store, PHASE_KNOCKOUT, 1, snake_pairs(seeded_ids))
    store.commit()

    logger.info("Knockout started: %d-player bracket, %d matches", len(seeded_ids), created)
    return KnockoutStart(
        status=KNOCKOUT_CREATED,
        bracket_size=len(seeded_ids),
        matches_created=created,
        participant_ids=seeded_ids,
        message=f"Knockout started with {len(seeded_ids)} players",
    )


def _last_chance_winners(store: TournamentStore, matches: List[Match]) -> List[Player]:
    seen: Dict[int, Player] = {}
    for match in matches:
        winner_id = match_winner(match)
        if winner_id is None or winner_id in seen:
            continue
        player = store.get_player(winner_id)
        if player is None:
            raise DataConsistencyError(f"Last-chance match {match.id} references missing player {winner_id}")
        seen[winner_id] = player
    return list(seen.values())


def start_knockout(store: TournamentStore) -> KnockoutStart:
    if store.count_matches(PHASE_SWISS) == 0:
        raise PreconditionError("Swiss stage has not started")
    if store.count_open_matches(PHASE_SWISS) > 0:
        raise PreconditionError("Swiss is not finished yet")
    if store.count_matches(PHASE_KNOCKOUT) > 0:
        raise PreconditionError("Knockout already started")

    qualified = store.find_qualified_players()

    last_chance = store.list_matches(phase=PHASE_LAST_CHANCE)
    if last_chance:
        if any(m.is_open for m in last_chance):
            raise PreconditionError("Last-chance round is not finished")

        field: Dict[int, Player] = {p.id: p for p in qualified}
        for winner in _last_chance_winners(store, last_chance):
            field.setdefault(winner.id, winner)
        if len(field) not in BRACKET_SIZES:
            raise PreconditionError(
                f"Qualified players plus last-chance winners total {len(field)}, "
                f"which is not a valid bracket size {list(BRACKET_SIZES)}"
            )
        return _seed_knockout(store, list(field.values()))

    total = store.count_players()
    target = select_bracket_size(len(qualified), total)
    if target is None:
        raise PreconditionError(
            f"No valid bracket size for {len(qualified)} qualified players out of {total} "
            f"(allowed: {list(BRACKET_SIZES)})"
        )

    if len(qualified) == target:
        return _seed_knockout(store, qualified)

    extra_slots = target - len(qualified)
    candidates = store.find_unqualified_players()
    if len(candidates) < extra_slots:
        raise PreconditionError(
            f"Not enough players for a {target}-player bracket: need {extra_slots} more, "
            f"only {len(candidates)} candidates"
        )

    pairings = last_chance_pairs([p.id for p in candidates], extra_slots)
    created = _stage_pairings(store, PHASE_LAST_CHANCE, 1, pairings)
    store.commit()

    contender_ids = [pid for pair in pairings for pid in pair if pid is not None]
    logger.info(
        "Last-chance round created: %d contenders for %d open slots in a %d-player bracket",
        len(contender_ids),
        extra_slots,
        target,
    )
    return KnockoutStart(
        status=LAST_CHANCE_CREATED,
        bracket_size=target,
        matches_created=created,
        participant_ids=contender_ids,
        message=f"Last-chance round created for {extra_slots} open slots",
    )


def advance_knockout(store: TournamentStore) -> RoundOutcome:
    """Create the next knockout round once the latest one is fully decided. Idempotent."""
    current_round = store.max_round(PHASE_KNOCKOUT)
    if current_round is None:
        raise PreconditionError("Knockout has not started")

    matches = store.list_matches(phase=PHASE_KNOCKOUT, round_number=current_round)
    if any(m.is_open for m in matches):
        return RoundOutcome(status=ROUND_OPEN, round_number=current_round, message="Knockout round is not finished")

    winners = [w for w in (match_winner(m) for m in matches) if w is not None]
    if len(winners) <= 1:
        return RoundOutcome(status=STAGE_COMPLETE, round_number=current_round, message="Knockout finished")

    next_round = current_round + 1
    if store.round_exists(PHASE_KNOCKOUT, next_round):
        return RoundOutcome(status=ROUND_EXISTS, round_number=next_round, message="Round already exists")

    pairings = sequential_pairs(winners)
    created = _stage_pairings(store, PHASE_KNOCKOUT, next_round, pairings)
    store.commit()

    bye_id = pairings[-1][0] if pairings[-1][1] is None else None
    logger.info("Knockout round %d created: %d matches", next_round, created)
    return RoundOutcome(
        status=ROUND_CREATED,
        round_number=next_round,
        matches_created=created,
        bye_player_id=bye_id,
        message=f"Knockout round {next_round} created",
    )


def champion_id(store: TournamentStore) -> Optional[int]:
    """Winner of a decided single-match final round, else None."""
    last_round = store.max_round(PHASE_KNOCKOUT)
    if last_round is None:
        return None
    final = store.list_matches(phase=PHASE_KNOCKOUT, round_number=last_round)
    if len(final) != 1:
        return None
    return final[0].winner_id
