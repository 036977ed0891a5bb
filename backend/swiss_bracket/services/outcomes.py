"""
Result objects returned by the stage controllers.

Idempotent no-ops are reported through `status`, never raised.
"""
from dataclasses import dataclass, field
from typing import List, Optional

ROUND_CREATED = "CREATED"
ROUND_EXISTS = "EXISTS"
ROUND_OPEN = "ROUND_OPEN"
STAGE_COMPLETE = "STAGE_COMPLETE"

KNOCKOUT_CREATED = "KNOCKOUT_CREATED"
LAST_CHANCE_CREATED = "LAST_CHANCE_CREATED"


@dataclass
class RoundOutcome:
    status: str
    round_number: Optional[int] = None
    matches_created: int = 0
    bye_player_id: Optional[int] = None
    message: str = ""

    @property
    def created(self) -> bool:
        return self.status == ROUND_CREATED


@dataclass
class KnockoutStart:
    status: str  # KNOCKOUT_CREATED | LAST_CHANCE_CREATED
    bracket_size: int
    matches_created: int
    participant_ids: List[int] = field(default_factory=list)
    message: str = ""
