from datetime import datetime, UTC
from typing import Optional
from sqlmodel import SQLModel, Field


class MatchStatus:
    UPCOMING = "upcoming"
    LIVE = "live"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Match(SQLModel, table=True):
    __tablename__ = "matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    player1_name: str
    player2_name: str

    # Decimal odds, one per side (supplied by the odds feed)
    odds_a: float = Field(default=1.0)
    odds_b: float = Field(default=1.0)

    match_format: str = Field(default="standard")  # standard, amateur_super_tiebreak
    status: str = Field(default=MatchStatus.UPCOMING, index=True)
    start_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    lock_time: Optional[datetime] = Field(default=None)

    # Actual result (filled on settlement)
    winner_name: Optional[str] = Field(default=None)
    match_result: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def title(self) -> str:
        return f"{self.player1_name} vs {self.player2_name}"

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """Predictions close once the match leaves 'upcoming' or its lock/start time passes."""
        if self.status != MatchStatus.UPCOMING:
            return True
        now = as_utc(now or datetime.now(UTC))
        cutoff = self.lock_time or self.start_time
        return as_utc(cutoff) <= now
