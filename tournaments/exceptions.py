"""Typed errors raised by the tournament engine."""


class TournamentError(Exception):
    """Base class for tournament engine failures."""

    kind = "tournament_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, **self.details}


class NotFoundError(TournamentError):
    """Tournament or match does not exist."""

    kind = "not_found"


class InvalidStateError(TournamentError):
    """Tournament status does not allow the requested operation."""

    kind = "invalid_state"


class InsufficientEntrantsError(InvalidStateError):
    """Fewer than two registrations at start time."""

    kind = "insufficient_entrants"


class AlreadyFinishedError(TournamentError):
    """Match result was already recorded."""

    kind = "already_finished"


class InvalidWinnerError(TournamentError):
    """Winner is not one of the match's competitors."""

    kind = "invalid_winner"


class AlreadyRegisteredError(TournamentError):
    """Competitor or club already holds a registration in the tournament."""

    kind = "already_registered"


class RegistrationBlockedError(TournamentError):
    """Competitor is inside the post-tournament cool-down window."""

    kind = "registration_blocked"


class StorageUnavailableError(TournamentError):
    """Storage could not complete the unit of work; safe to retry."""

    kind = "storage_unavailable"


class RobotOwnershipError(TournamentError):
    """Robot belongs to a different competitor."""

    kind = "robot_not_owned"
