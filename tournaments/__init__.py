"""Tournament system for single-elimination robot combat."""

from .api import TournamentAPI
from .bracket import BracketGenerator
from .database import TournamentDatabaseManager
from .exceptions import (
    AlreadyFinishedError,
    AlreadyRegisteredError,
    InsufficientEntrantsError,
    InvalidStateError,
    InvalidWinnerError,
    NotFoundError,
    RegistrationBlockedError,
    RobotOwnershipError,
    StorageUnavailableError,
    TournamentError,
)
from .manager import TournamentManager
from .models import (
    BracketData,
    MatchOutcome,
    MatchStatus,
    Registration,
    RoundStatus,
    StartResult,
    Tournament,
    TournamentCreateRequest,
    TournamentMatch,
    TournamentStatus,
)
from .results import ResultProcessor
from .scoring import ScoringLedger

__all__ = [
    "TournamentAPI",
    "BracketGenerator",
    "TournamentDatabaseManager",
    "TournamentManager",
    "ResultProcessor",
    "ScoringLedger",
    "TournamentError",
    "NotFoundError",
    "InvalidStateError",
    "InsufficientEntrantsError",
    "AlreadyFinishedError",
    "InvalidWinnerError",
    "AlreadyRegisteredError",
    "RegistrationBlockedError",
    "RobotOwnershipError",
    "StorageUnavailableError",
    "BracketData",
    "MatchOutcome",
    "MatchStatus",
    "Registration",
    "RoundStatus",
    "StartResult",
    "Tournament",
    "TournamentCreateRequest",
    "TournamentMatch",
    "TournamentStatus",
]
