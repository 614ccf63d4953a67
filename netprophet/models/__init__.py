from .user import User
from .session import Session
from .match import Match, MatchStatus
from .bet import Bet, WagerStatus
from .wallet_transaction import WalletTransaction

__all__ = [
    "User",
    "Session",
    "Match",
    "MatchStatus",
    "Bet",
    "WagerStatus",
    "WalletTransaction",
]
