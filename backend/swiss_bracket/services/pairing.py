"""
Swiss pairing: greedy partner search with rematch and same-department avoidance.

The queue is shuffled once, then the head player repeatedly takes the first
candidate that satisfies the strongest preference still available:

  1. not played before AND from another department
  2. not played before
  3. from another department
  4. whoever is first in the queue

This is a heuristic, not an optimal matching. The cascade order is the
contract: given the same shuffle, the same pairs come out.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

OpponentMap = Dict[int, Set[int]]


@dataclass(frozen=True)
class PairingPlayer:
    """Lightweight struct for pairing input."""
    id: int
    department_id: int


@dataclass
class PairingResult:
    pairs: List[Tuple[int, int]] = field(default_factory=list)
    carry: Optional[PairingPlayer] = None


def build_opponent_map(matches: Iterable) -> OpponentMap:
    """Who has played whom, from matches with both seats filled (byes are skipped)."""
    opponents: OpponentMap = {}
    for match in matches:
        if match.player1_id is None or match.player2_id is None:
            continue
        opponents.setdefault(match.player1_id, set()).add(match.player2_id)
        opponents.setdefault(match.player2_id, set()).add(match.player1_id)
    return opponents


def has_played(opponents: OpponentMap, a: int, b: int) -> bool:
    return b in opponents.get(a, ())


def pick_partner_index(queue: Sequence[PairingPlayer], player: PairingPlayer, opponents: OpponentMap) -> int:
    """Index into *queue* of the partner chosen for *player* by the preference cascade."""
    for i, candidate in enumerate(queue):
        if not has_played(opponents, player.id, candidate.id) and candidate.department_id != player.department_id:
            return i

    for i, candidate in enumerate(queue):
        if not has_played(opponents, player.id, candidate.id):
            return i

    for i, candidate in enumerate(queue):
        if candidate.department_id != player.department_id:
            return i

    return 0


def build_pairs(
    players: Iterable[PairingPlayer],
    opponents: OpponentMap,
    rng: random.Random,
) -> PairingResult:
    """Pair *players* after a uniform shuffle. An odd player out is returned as carry."""
    queue = list(players)
    rng.shuffle(queue)

    result = PairingResult()
    while len(queue) > 1:
        player1 = queue.pop(0)
        player2 = queue.pop(pick_partner_index(queue, player1, opponents))
        result.pairs.append((player1.id, player2.id))

    result.carry = queue[0] if queue else None
    return result
