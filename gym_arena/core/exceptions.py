"""
Domain errors for the tournament arena.

Every error also derives from the builtin that best describes it
(ValueError for rejected input or state, PermissionError for organizer-only
actions, LookupError for missing records) so callers that only know the
builtins can still handle them. ``status_code`` is the HTTP status the API
layer answers with.
"""


class ArenaError(Exception):
    """Base exception for all arena errors."""
    status_code = 400


class InvalidConfiguration(ArenaError, ValueError):
    """Raised when a bracket size is not one of the supported powers of two."""
    pass


class TournamentNotFound(ArenaError, LookupError):
    status_code = 404

    def __init__(self, tournament_id: str):
        self.tournament_id = tournament_id
        super().__init__(f"Tournament {tournament_id} not found.")


class MatchNotFound(ArenaError, LookupError):
    status_code = 404

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found.")


class NotAuthorized(ArenaError, PermissionError):
    """Raised when a non-organizer attempts an organizer-only action."""
    status_code = 403


# Join-time errors
class TournamentNotOpen(ArenaError, ValueError):
    pass


class TournamentFull(ArenaError, ValueError):
    pass


class AlreadyJoined(ArenaError, ValueError):
    pass


class JoinConflict(ArenaError, ValueError):
    """Raised when a concurrent join claimed the same seed number."""
    status_code = 409


# Lifecycle errors
class TournamentNotActive(ArenaError, ValueError):
    pass


class BracketIncomplete(ArenaError, ValueError):
    """Raised when starting a tournament that has open seeds."""
    pass


# Match errors
class IllegalWinner(ArenaError, ValueError):
    """Raised when the winner is not an occupant, or the match is not fully populated."""
    pass


class MatchAlreadyComplete(ArenaError, ValueError):
    status_code = 409


class IllegalPrediction(ArenaError, ValueError):
    pass


class BracketInconsistent(ArenaError):
    """Raised when a downstream match shell is missing; repair_bracket rebuilds it."""
    status_code = 409
