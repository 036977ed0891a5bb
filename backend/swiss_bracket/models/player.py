from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


class Player(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("wins >= 0", name="ck_player_wins_nonneg"),
        CheckConstraint("losses >= 0", name="ck_player_losses_nonneg"),
        CheckConstraint("points >= 0", name="ck_player_points_nonneg"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    department_id: int = Field(index=True)

    # Swiss standings: written only by the result ledger and bye credits (points == 3 * wins)
    points: int = Field(default=0)
    wins: int = Field(default=0)
    losses: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
