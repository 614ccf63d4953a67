from datetime import datetime, UTC
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class WagerStatus(str, Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"
    CANCELLED = "cancelled"


class Bet(SQLModel, table=True):
    __tablename__ = "bets"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    match_id: Optional[int] = Field(default=None, foreign_key="matches.id", index=True)

    # Structured prediction as JSON; legacy rows may hold free text
    prediction: str
    description: Optional[str] = Field(default=None)

    # Fixed when the bet is placed
    bet_amount: int
    multiplier: float
    potential_winnings: int

    status: str = Field(default=WagerStatus.ACTIVE.value, index=True)
    winnings_paid: int = Field(default=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    resolved_at: Optional[datetime] = Field(default=None)
