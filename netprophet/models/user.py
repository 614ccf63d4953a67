from datetime import datetime, UTC
from typing import Optional
from sqlmodel import SQLModel, Field

from ..config import STARTING_BALANCE


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    is_admin: bool = Field(default=False)

    # Coin wallet
    balance: int = Field(default=STARTING_BALANCE)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
