"""
Engine error kinds.

Routes translate these into HTTP responses (see utils/http_errors.py); services
never raise HTTPException themselves.
"""


class TournamentError(Exception):
    """Base class for all engine failures"""

    pass


class PreconditionError(TournamentError):
    """Command rejected because the tournament is not in a state that allows it. No state change."""

    pass


class InvalidInputError(TournamentError):
    """Malformed identifiers or arguments that contradict the referenced records."""

    pass


class NotFoundError(InvalidInputError):
    """Referenced match or player does not exist."""

    pass


class TransactionConflictError(TournamentError):
    """A concurrent writer won the race. Retrying the same command is safe."""

    pass


class DataConsistencyError(TournamentError):
    """Stored records contradict each other (e.g. a match seat points at a missing player)."""

    pass
