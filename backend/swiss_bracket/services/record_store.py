"""
Record store: typed queries over Player / Match / RoundLock.

Every stage controller and the result ledger go through this class instead of
building ad hoc filters. Mutations are staged on the session and only become
visible through commit(), which is the single transaction boundary of a command.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from sqlmodel import Session, func, select

from swiss_bracket.models.match import PHASE_SWISS, Match
from swiss_bracket.models.player import Player
from swiss_bracket.models.round_lock import RoundLock
from swiss_bracket.services.errors import (
    DataConsistencyError,
    NotFoundError,
    TournamentError,
    TransactionConflictError,
)
from swiss_bracket.services.pairing import OpponentMap, build_opponent_map
from swiss_bracket.services.rules import ADVANCE_WINS, ELIMINATION_LOSSES
from swiss_bracket.utils.sql import scalar_int, scalar_optional_int

logger = logging.getLogger(__name__)


def translate_store_error(exc: SQLAlchemyError) -> TournamentError:
    """Map a failed flush, read or commit to the engine error the caller should see."""
    if isinstance(exc, IntegrityError):
        if "roundlock" in str(exc.orig).lower():
            logger.warning("Round generation raced with another writer: %s", exc.orig)
            return TransactionConflictError("Round was generated concurrently; retry the command")
        logger.error("Integrity violation, rolled back: %s", exc.orig)
        return DataConsistencyError(f"Write rejected by store constraints: {exc.orig}")
    if isinstance(exc, (OperationalError, StaleDataError)):
        logger.warning("Transaction conflict, rolled back: %s", exc)
        return TransactionConflictError("Concurrent update detected; retry the command")
    logger.error("Store failure, rolled back: %s", exc)
    return DataConsistencyError(f"Store failure: {exc}")


class TournamentStore:
    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def list_players(self) -> List[Player]:
        return list(self.session.exec(select(Player).order_by(Player.id)).all())

    def count_players(self) -> int:
        return scalar_int(self.session.exec(select(func.count()).select_from(Player)).one())

    def get_player(self, player_id: int) -> Optional[Player]:
        return self.session.get(Player, player_id)

    def lock_player(self, player_id: int) -> Player:
        """Load a player row for update. A missing row means a match points at nothing."""
        player = self.session.get(Player, player_id, with_for_update=True)
        if player is None:
            raise DataConsistencyError(f"Match references missing player {player_id}")
        return player

    def find_active_players(self) -> List[Player]:
        """Players still in the Swiss stage, ordered wins desc, losses asc, id asc."""
        return list(
            self.session.exec(
                select(Player)
                .where(Player.wins < ADVANCE_WINS, Player.losses < ELIMINATION_LOSSES)
                .order_by(Player.wins.desc(), Player.losses, Player.id)
            ).all()
        )

    def find_qualified_players(self) -> List[Player]:
        """Players with enough Swiss wins, in seeding order."""
        return list(
            self.session.exec(
                select(Player)
                .where(Player.wins >= ADVANCE_WINS)
                .order_by(Player.points.desc(), Player.wins.desc(), Player.losses, Player.id)
            ).all()
        )

    def find_unqualified_players(self) -> List[Player]:
        """Last-chance candidates, in seeding order."""
        return list(
            self.session.exec(
                select(Player)
                .where(Player.wins < ADVANCE_WINS)
                .order_by(Player.points.desc(), Player.wins.desc(), Player.losses, Player.id)
            ).all()
        )

    def is_player_referenced(self, player_id: int) -> bool:
        count = self.session.exec(
            select(func.count())
            .select_from(Match)
            .where(
                (Match.player1_id == player_id)
                | (Match.player2_id == player_id)
                | (Match.winner_id == player_id)
            )
        ).one()
        return scalar_int(count) > 0

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def get_match(self, match_id: int) -> Optional[Match]:
        return self.session.get(Match, match_id)

    def require_match(self, match_id: int) -> Match:
        match = self.session.get(Match, match_id, with_for_update=True)
        if match is None:
            raise NotFoundError("Match not found")
        return match

    def list_matches(self, phase: Optional[str] = None, round_number: Optional[int] = None) -> List[Match]:
        """Matches in creation order (round, created_at, id)."""
        query = select(Match)
        if phase is not None:
            query = query.where(Match.phase == phase)
        if round_number is not None:
            query = query.where(Match.round_number == round_number)
        query = query.order_by(Match.round_number, Match.created_at, Match.id)
        return list(self.session.exec(query).all())

    def count_matches(self, phase: str) -> int:
        return scalar_int(
            self.session.exec(select(func.count()).select_from(Match).where(Match.phase == phase)).one()
        )

    def count_open_matches(self, phase: str, round_number: Optional[int] = None) -> int:
        """Matches with both seats filled and no winner."""
        query = (
            select(func.count())
            .select_from(Match)
            .where(
                Match.phase == phase,
                Match.player2_id.is_not(None),
                Match.winner_id.is_(None),
            )
        )
        if round_number is not None:
            query = query.where(Match.round_number == round_number)
        return scalar_int(self.session.exec(query).one())

    def count_round_matches(self, phase: str, round_number: int) -> int:
        return scalar_int(
            self.session.exec(
                select(func.count())
                .select_from(Match)
                .where(Match.phase == phase, Match.round_number == round_number)
            ).one()
        )

    def max_round(self, phase: str) -> Optional[int]:
        return scalar_optional_int(
            self.session.exec(select(func.max(Match.round_number)).where(Match.phase == phase)).first()
        )

    def latest_match(self) -> Optional[Match]:
        return self.session.exec(select(Match).order_by(Match.created_at.desc(), Match.id.desc())).first()

    def swiss_opponent_map(self) -> OpponentMap:
        """Past SWISS opponents, recomputed from stored matches on every call."""
        return build_opponent_map(self.list_matches(phase=PHASE_SWISS))

    def add_match(
        self,
        phase: str,
        round_number: int,
        player1_id: int,
        player2_id: Optional[int],
        winner_id: Optional[int] = None,
    ) -> Match:
        if player2_id is None:
            # Bye: the lone player wins automatically
            winner_id = player1_id
        match = Match(
            phase=phase,
            round_number=round_number,
            player1_id=player1_id,
            player2_id=player2_id,
            winner_id=winner_id,
        )
        self.session.add(match)
        return match

    def delete_match(self, match: Match) -> None:
        self.session.delete(match)

    # ------------------------------------------------------------------
    # Round locks
    # ------------------------------------------------------------------

    def has_round_lock(self, phase: str, round_number: int) -> bool:
        lock = self.session.exec(
            select(RoundLock).where(RoundLock.phase == phase, RoundLock.round_number == round_number)
        ).first()
        return lock is not None

    def add_round_lock(self, phase: str, round_number: int) -> None:
        self.session.add(RoundLock(phase=phase, round_number=round_number))

    def drop_round_lock(self, phase: str, round_number: int) -> None:
        lock = self.session.exec(
            select(RoundLock).where(RoundLock.phase == phase, RoundLock.round_number == round_number)
        ).first()
        if lock is not None:
            self.session.delete(lock)

    def round_exists(self, phase: str, round_number: int) -> bool:
        return self.count_round_matches(phase, round_number) > 0 or self.has_round_lock(phase, round_number)

    # ------------------------------------------------------------------
    # Bulk / transaction
    # ------------------------------------------------------------------

    def reset_tournament(self) -> int:
        """Delete every match and round lock, zero all standings. Returns deleted match count."""
        matches = self.session.exec(select(Match)).all()
        for match in matches:
            self.session.delete(match)
        for lock in self.session.exec(select(RoundLock)).all():
            self.session.delete(lock)
        # Matches must be gone before players are touched (FK seats)
        self.flush()
        for player in self.session.exec(select(Player)).all():
            player.points = 0
            player.wins = 0
            player.losses = 0
            self.session.add(player)
        return len(matches)

    def fail(self, exc: SQLAlchemyError) -> TournamentError:
        """Roll back the staged command and return the engine error for *exc*."""
        self.session.rollback()
        return translate_store_error(exc)

    def flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise self.fail(exc) from exc

    def commit(self) -> None:
        """Commit the staged command atomically, mapping store failures to engine errors."""
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self.fail(exc) from exc

    def rollback(self) -> None:
        self.session.rollback()
