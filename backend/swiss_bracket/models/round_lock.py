from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class RoundLock(SQLModel, table=True):
    """
    One row per generated (phase, round_number).

    Written in the same transaction as the round's matches, so two racing
    generators of the same round cannot both commit.
    """

    __table_args__ = (SAUniqueConstraint("phase", "round_number", name="uq_roundlock_phase_round"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    phase: str
    round_number: int
    created_at: datetime = Field(default_factory=datetime.utcnow)
