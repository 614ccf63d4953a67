"""
Coin wallet operations.

Neither function commits: callers add their own rows to the same session and
commit once, so a debit and the bet it pays for land together or not at all.
Balances are updated in SQL, so loaded User objects are stale until that commit.
"""
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session

from ..errors import InsufficientFunds
from ..logging_config import get_logger
from ..models.user import User
from ..models.wallet_transaction import WalletTransaction

logger = get_logger(__name__)


def debit(db: Session, user_id: int, amount: int, description: Optional[str] = None) -> WalletTransaction:
    """Take coins from a balance, refusing to go below zero."""
    # Conditional update acts as a compare-and-swap on the balance
    statement = (
        update(User)
        .where(User.id == user_id, User.balance >= amount)
        .values(balance=User.balance - amount)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(statement)
    if result.rowcount != 1:
        raise InsufficientFunds(user_id, amount)

    transaction = WalletTransaction(
        user_id=user_id,
        type="bet",
        amount=-amount,
        description=description
    )
    db.add(transaction)
    logger.debug("wallet_debited", user_id=user_id, amount=amount)
    return transaction


def credit(
    db: Session,
    user_id: int,
    amount: int,
    kind: str,
    description: Optional[str] = None
) -> WalletTransaction:
    """Add coins to a balance (winnings or refunds)."""
    statement = (
        update(User)
        .where(User.id == user_id)
        .values(balance=User.balance + amount)
        .execution_options(synchronize_session=False)
    )
    db.execute(statement)

    transaction = WalletTransaction(
        user_id=user_id,
        type=kind,
        amount=amount,
        description=description
    )
    db.add(transaction)
    logger.debug("wallet_credited", user_id=user_id, amount=amount, kind=kind)
    return transaction
