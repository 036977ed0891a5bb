# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from swiss_bracket.models.match import Match  # noqa: F401
from swiss_bracket.models.player import Player  # noqa: F401
from swiss_bracket.models.round_lock import RoundLock  # noqa: F401
