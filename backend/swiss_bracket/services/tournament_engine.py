"""
Tournament aggregate root.

One TournamentEngine wraps one session (one command = one transaction) and is
the only entry point the HTTP layer uses. There is exactly one tournament per
database; StartSwiss begins a new one by wiping matches and standings.

Stage is never stored: current_phase() derives it from the match records on
every call, so corrections and deletions can't leave it stale.
"""
import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from swiss_bracket.models.match import PHASE_KNOCKOUT, PHASE_LAST_CHANCE, PHASE_SWISS, Match
from swiss_bracket.models.player import Player
from swiss_bracket.services import bracket_builder, result_ledger, swiss_stage
from swiss_bracket.services.errors import InvalidInputError, NotFoundError, PreconditionError, TournamentError
from swiss_bracket.services.outcomes import KnockoutStart, RoundOutcome
from swiss_bracket.services.record_store import TournamentStore
from swiss_bracket.services.result_ledger import RecordedResult, require_id

logger = logging.getLogger(__name__)

# An open match in a later stage outranks one in an earlier stage
PHASE_PRIORITY = (PHASE_KNOCKOUT, PHASE_LAST_CHANCE, PHASE_SWISS)


@dataclass
class TournamentState:
    phase: Optional[str]
    swiss_round: Optional[int]
    knockout_round: Optional[int]
    player_count: int
    active_count: int
    qualified_count: int
    champion_id: Optional[int]


class TournamentEngine:
    def __init__(self, session: Session, rng: Optional[random.Random] = None):
        self.store = TournamentStore(session)
        self.rng = rng if rng is not None else random.Random()

    def _run(self, command, *args):
        """Run a command; on rejection drop anything it staged so no partial write survives."""
        name = getattr(command, "__name__", "command")
        try:
            return command(*args)
        except TournamentError as exc:
            self.store.rollback()
            logger.warning("%s rejected: %s", name, exc)
            raise
        except SQLAlchemyError as exc:
            # Locking reads and autoflush can fail before commit() is reached
            raise self.store.fail(exc) from exc

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_swiss(self) -> RoundOutcome:
        return self._run(swiss_stage.start_swiss, self.store, self.rng)

    def advance_swiss_round(self) -> RoundOutcome:
        return self._run(swiss_stage.advance_round, self.store, self.rng)

    def start_knockout(self) -> KnockoutStart:
        return self._run(bracket_builder.start_knockout, self.store)

    def advance_knockout_round(self) -> RoundOutcome:
        return self._run(bracket_builder.advance_knockout, self.store)

    def record_result(self, match_id: int, winner_id: int) -> RecordedResult:
        return self._run(result_ledger.record_result, self.store, match_id, winner_id, self.rng)

    def delete_match(self, match_id: int) -> None:
        self._run(result_ledger.delete_match, self.store, match_id)

    def register_player(self, name: str, department_id: int) -> Player:
        return self._run(self._register_player, name, department_id)

    def _register_player(self, name: str, department_id: int) -> Player:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Player name is required")
        require_id(department_id, "department id")

        player = Player(name=name, department_id=department_id)
        self.store.session.add(player)
        self.store.commit()
        self.store.session.refresh(player)
        logger.info("Player registered: %s (id=%d, department=%d)", player.name, player.id, department_id)
        return player

    def remove_player(self, player_id: int) -> None:
        def _remove():
            require_id(player_id, "player id")
            player = self.store.get_player(player_id)
            if player is None:
                raise NotFoundError("Player not found")
            if self.store.is_player_referenced(player_id):
                raise PreconditionError("Player is referenced by existing matches; start a new tournament first")
            self.store.session.delete(player)
            self.store.commit()

        self._run(_remove)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_match(self, match_id: int) -> Match:
        require_id(match_id, "match id")
        match = self.store.get_match(match_id)
        if match is None:
            raise NotFoundError("Match not found")
        return match

    def list_players(self) -> List[Player]:
        return self.store.list_players()

    def list_matches(self, phase: Optional[str] = None) -> List[Match]:
        return self.store.list_matches(phase=phase)

    def current_phase(self) -> Optional[str]:
        for phase in PHASE_PRIORITY:
            if self.store.count_open_matches(phase) > 0:
                return phase
        latest = self.store.latest_match()
        return latest.phase if latest else None

    def knockout_bracket(self) -> List[List[Match]]:
        """Knockout matches grouped by round, in match order."""
        rounds: List[List[Match]] = []
        for match in self.store.list_matches(phase=PHASE_KNOCKOUT):
            while len(rounds) < match.round_number:
                rounds.append([])
            rounds[match.round_number - 1].append(match)
        return rounds

    def champion_id(self) -> Optional[int]:
        return bracket_builder.champion_id(self.store)

    def state(self) -> TournamentState:
        return TournamentState(
            phase=self.current_phase(),
            swiss_round=self.store.max_round(PHASE_SWISS),
            knockout_round=self.store.max_round(PHASE_KNOCKOUT),
            player_count=self.store.count_players(),
            active_count=len(self.store.find_active_players()),
            qualified_count=len(self.store.find_qualified_players()),
            champion_id=self.champion_id(),
        )
