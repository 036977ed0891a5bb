from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from swiss_bracket.models.player import Player

PHASE_SWISS = "SWISS"
PHASE_LAST_CHANCE = "LAST_CHANCE"
PHASE_KNOCKOUT = "KNOCKOUT"

PHASES = (PHASE_SWISS, PHASE_LAST_CHANCE, PHASE_KNOCKOUT)


class Match(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("round_number >= 1", name="ck_match_round_positive"),
        CheckConstraint(
            "winner_id IS NULL OR winner_id = player1_id OR winner_id = player2_id",
            name="ck_match_winner_seated",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    round_number: int = Field(index=True)  # Stage-relative (1..N within its phase)
    phase: str = Field(index=True)  # "SWISS" | "LAST_CHANCE" | "KNOCKOUT"

    player1_id: int = Field(foreign_key="player.id", index=True)
    # Null seat = bye (auto-won by player1 at creation)
    player2_id: Optional[int] = Field(default=None, foreign_key="player.id", index=True)
    winner_id: Optional[int] = Field(default=None, foreign_key="player.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships (read-only views used for responses)
    player1: Optional["Player"] = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.player1_id"})
    player2: Optional["Player"] = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.player2_id"})
    winner: Optional["Player"] = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.winner_id"})

    @property
    def is_bye(self) -> bool:
        return self.player2_id is None

    @property
    def is_open(self) -> bool:
        """Both seats filled and no winner yet."""
        return self.player2_id is not None and self.winner_id is None

    @property
    def loser_id(self) -> Optional[int]:
        if self.winner_id is None:
            return None
        return self.player2_id if self.winner_id == self.player1_id else self.player1_id
