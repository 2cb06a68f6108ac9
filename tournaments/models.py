"""Tournament system data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class TournamentStatus(Enum):
    """Tournament lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class MatchStatus(Enum):
    """Individual match status."""

    PENDING = "pending"
    FINISHED = "finished"


class ScoreSubject(Enum):
    """Kinds of score ledger entries."""

    COMPETITOR = "competitor"
    CLUB = "club"


class TournamentCreateRequest(BaseModel):
    """Request to create a new tournament."""

    name: str = Field(..., min_length=3, max_length=255, description="Tournament name")
    description: str | None = Field(default=None, max_length=5000)
    category_id: int = Field(..., gt=0, description="Robot category")
    max_participants: int = Field(
        default=8, description="Entrant capacity (8, 12 or 16)"
    )
    judge_id: int | None = Field(
        default=None, gt=0, description="Default judge for generated matches"
    )
    combat_duration_sec: int | None = Field(
        default=None, gt=0, description="Default combat duration in seconds"
    )

    @field_validator("max_participants")
    @classmethod
    def validate_max_participants(cls, v):
        if v < 8 or v > 16 or v % 4 != 0:
            raise ValueError("max_participants must be a multiple of 4 between 8 and 16")
        return v


class Tournament(BaseModel):
    """Complete tournament information."""

    id: int | None = None
    name: str
    description: str | None = None
    category_id: int
    max_participants: int
    status: TournamentStatus = TournamentStatus.DRAFT
    judge_id: int | None = None
    combat_duration_sec: int | None = None
    winner_competitor_id: int | None = None
    winner_club_id: int | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


class Registration(BaseModel):
    """An approved entrant bound to one tournament."""

    id: int | None = None
    tournament_id: int
    competitor_id: int
    club_id: int
    robot_id: int
    category_id: int
    created_at: datetime | None = None


class RegistrationRequest(BaseModel):
    """Request to register an entrant in a draft tournament."""

    competitor_id: int = Field(..., gt=0)
    club_id: int = Field(..., gt=0)
    robot_id: int = Field(..., gt=0)


class TournamentMatch(BaseModel):
    """Individual tournament match."""

    id: int | None = None
    tournament_id: int
    round_number: int = Field(..., ge=1)
    competitor_a: int
    competitor_b: int
    judge_id: int
    duration_sec: int
    status: MatchStatus = MatchStatus.PENDING
    winner_id: int | None = None  # NULL until the result is recorded
    victory_type: str | None = None
    finished_at: datetime | None = None

    @property
    def competitors(self) -> tuple[int, int]:
        return (self.competitor_a, self.competitor_b)

    def opponent_of(self, competitor_id: int) -> int:
        """Return the other competitor of this match."""
        if competitor_id == self.competitor_a:
            return self.competitor_b
        if competitor_id == self.competitor_b:
            return self.competitor_a
        raise ValueError(f"Competitor {competitor_id} is not in match {self.id}")


class RoundBye(BaseModel):
    """An entrant advanced through a round without a match."""

    tournament_id: int
    round_number: int
    competitor_id: int


class MatchResultRequest(BaseModel):
    """Result submitted for a match."""

    winner_id: int = Field(..., gt=0)
    victory_type: str | None = Field(default=None, max_length=100)


class StartTournamentRequest(BaseModel):
    """Optional overrides when starting a tournament."""

    judge_id: int | None = Field(default=None, gt=0)
    duration_sec: int | None = Field(default=None, gt=0)


class StartResult(BaseModel):
    """Outcome of bracket generation."""

    tournament_id: int
    matches: list[TournamentMatch]
    total_paired: int
    byes: list[int] = Field(default_factory=list)
    dropped: list[int] = Field(default_factory=list)


class TournamentPrize(BaseModel):
    """Championship prize record."""

    id: int | None = None
    tournament_id: int
    competitor_id: int
    club_id: int | None = None
    prize: str
    victory_type: str
    created_at: datetime | None = None


class MatchOutcome(BaseModel):
    """Everything a recorded result changed."""

    match: TournamentMatch
    loser_id: int
    round_completed: bool = False
    next_round_matches: list[TournamentMatch] = Field(default_factory=list)
    champion_id: int | None = None
    tournament_status: TournamentStatus


class RoundStatus(BaseModel):
    """Status of all matches in a round."""

    round_number: int
    total_matches: int
    finished_matches: int
    pending_matches: int

    @property
    def all_finished(self) -> bool:
        return self.total_matches > 0 and self.pending_matches == 0


class ScoreRecord(BaseModel):
    """Accumulated points for a competitor or club."""

    subject_id: int
    kind: ScoreSubject
    total_points: int


class RankingEntry(BaseModel):
    """One row of a ranking table."""

    position: int
    subject_id: int
    total_points: int


class Ranking(BaseModel):
    """A page of a ranking table."""

    kind: ScoreSubject
    total: int
    rankings: list[RankingEntry]


class BracketData(BaseModel):
    """Tournament bracket visualization data."""

    tournament: Tournament
    registrations: list[Registration]
    matches: list[TournamentMatch]
    byes: list[RoundBye]
    prize: TournamentPrize | None = None


class TournamentSummary(BaseModel):
    """Tournament summary for listing."""

    id: int
    name: str
    category_id: int
    status: TournamentStatus
    max_participants: int
    created_at: datetime | None = None
    winner_competitor_id: int | None = None
