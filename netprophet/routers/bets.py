from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session, func, select

from ..database import get_session
from ..dependencies import require_user
from ..errors import NetProphetError
from ..logging_config import get_logger, log_rejection
from ..models.bet import Bet
from ..models.match import Match
from ..models.user import User
from ..services.predictions import PredictionOptions
from ..services.wagers import (
    BetHistoryItem,
    BetSummary,
    build_history_item,
    partition_bets,
    place_bet,
    summarize_bets,
)

router = APIRouter(prefix="/api/bets", tags=["bets"])
logger = get_logger(__name__)


class BetCreate(BaseModel):
    """Schema for submitting a prediction slip."""
    match_id: int
    bet_amount: int
    prediction: PredictionOptions


class BetResponse(BaseModel):
    """Schema for a stored bet."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    match_id: Optional[int]
    prediction: str
    description: Optional[str]
    bet_amount: int
    multiplier: float
    potential_winnings: int
    status: str
    winnings_paid: int
    created_at: datetime
    resolved_at: Optional[datetime] = None


class BetHistoryResponse(BaseModel):
    active: List[BetHistoryItem]
    resolved: List[BetHistoryItem]
    summary: BetSummary
    total: int
    page: int
    limit: int


PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def bet_page(db: Session, page: int, limit: int, user_id: Optional[int] = None) -> tuple[list[Bet], int]:
    """One page of bets, newest first, and the total number of bets."""
    statement = select(Bet)
    count_statement = select(func.count(Bet.id))
    if user_id is not None:
        statement = statement.where(Bet.user_id == user_id)
        count_statement = count_statement.where(Bet.user_id == user_id)

    offset = (page - 1) * limit
    statement = statement.order_by(Bet.created_at.desc(), Bet.id.desc()).offset(offset).limit(limit)
    bets = list(db.exec(statement).all())
    total = db.exec(count_statement).one()
    return bets, total


def _user_bets(db: Session, user_id: int) -> list[Bet]:
    statement = select(Bet).where(Bet.user_id == user_id).order_by(Bet.created_at.desc())
    return list(db.exec(statement).all())


@router.post("", response_model=BetResponse)
async def create_bet(
    bet_data: BetCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Place a bet on an upcoming match."""
    match = db.get(Match, bet_data.match_id)
    if not match:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Match not found")

    try:
        bet = place_bet(db, current_user, match, bet_data.prediction, bet_data.bet_amount)
    except NetProphetError as e:
        log_rejection(logger, e, user_id=current_user.id, match_id=match.id)
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return bet


@router.get("", response_model=BetHistoryResponse)
async def get_bet_history(
    page: int = Query(1, ge=1),
    limit: int = Query(PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """One page of the current user's bet history, split into active and resolved."""
    bets, total = bet_page(db, page, limit, user_id=current_user.id)
    matches = {bet.match_id: db.get(Match, bet.match_id) for bet in bets if bet.match_id}
    active, resolved = partition_bets(bets)

    return BetHistoryResponse(
        active=[build_history_item(bet, matches.get(bet.match_id)) for bet in active],
        resolved=[build_history_item(bet, matches.get(bet.match_id)) for bet in resolved],
        summary=summarize_bets(_user_bets(db, current_user.id)),
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=BetSummary)
async def get_bet_stats(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return summarize_bets(_user_bets(db, current_user.id))
