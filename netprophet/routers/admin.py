from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from ..database import get_session
from ..dependencies import require_admin
from ..errors import NetProphetError
from ..logging_config import get_logger
from ..models.bet import Bet, WagerStatus
from ..models.match import Match, MatchStatus
from ..models.user import User
from ..services.predictions import MatchFormat
from ..services.wagers import (
    BetSummary,
    MatchOutcome,
    cancel_match,
    partition_bets,
    resolve_bet,
    settle_match,
    summarize_bets,
)
from .bets import MAX_PAGE_SIZE, PAGE_SIZE, BetResponse, bet_page
from .matches import MatchResponse, get_match_or_404, match_response

router = APIRouter(prefix="/admin", tags=["admin"])
logger = get_logger(__name__)


class MatchCreate(BaseModel):
    player1_name: str
    player2_name: str
    odds_a: float = Field(ge=1.0, allow_inf_nan=False)
    odds_b: float = Field(ge=1.0, allow_inf_nan=False)
    match_format: MatchFormat = MatchFormat.STANDARD
    start_time: datetime
    lock_time: Optional[datetime] = None


class OddsUpdate(BaseModel):
    odds_a: float = Field(ge=1.0, allow_inf_nan=False)
    odds_b: float = Field(ge=1.0, allow_inf_nan=False)


class BetResolve(BaseModel):
    status: WagerStatus
    winnings_paid: Optional[int] = None


class SettlementResponse(BaseModel):
    match_id: int
    settled: int
    won: int
    lost: int
    cancelled: int
    winnings_paid: int
    refunded: int


class AdminBetsResponse(BaseModel):
    active: List[BetResponse]
    resolved: List[BetResponse]
    summary: BetSummary
    total: int
    page: int
    limit: int


def _settlement_response(match: Match, summary) -> SettlementResponse:
    return SettlementResponse(
        match_id=match.id,
        settled=summary.settled,
        won=summary.won,
        lost=summary.lost,
        cancelled=summary.cancelled,
        winnings_paid=summary.winnings_paid,
        refunded=summary.refunded,
    )


@router.post("/matches", response_model=MatchResponse)
async def create_match(
    match_data: MatchCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Create a match open for predictions."""
    match = Match(
        player1_name=match_data.player1_name,
        player2_name=match_data.player2_name,
        odds_a=match_data.odds_a,
        odds_b=match_data.odds_b,
        match_format=match_data.match_format.value,
        start_time=match_data.start_time,
        lock_time=match_data.lock_time,
    )
    db.add(match)
    db.commit()
    db.refresh(match)
    logger.info("match_created", match_id=match.id, admin_id=admin.id)
    return match_response(match)


@router.patch("/matches/{match_id}/odds", response_model=MatchResponse)
async def update_odds(
    match_id: int,
    odds: OddsUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Update odds. Bets already placed keep their multiplier."""
    match = get_match_or_404(db, match_id)
    match.odds_a = odds.odds_a
    match.odds_b = odds.odds_b
    db.add(match)
    db.commit()
    db.refresh(match)
    return match_response(match)


@router.post("/matches/{match_id}/settle", response_model=SettlementResponse)
async def settle(
    match_id: int,
    outcome: MatchOutcome,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Record the final result and settle all active bets on the match."""
    match = get_match_or_404(db, match_id)
    if match.status == MatchStatus.CANCELLED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Match was cancelled")
    if match.status == MatchStatus.FINISHED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Match already settled")

    try:
        summary = settle_match(db, match, outcome)
    except NetProphetError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return _settlement_response(match, summary)


@router.post("/matches/{match_id}/cancel", response_model=SettlementResponse)
async def cancel(
    match_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Void a match and refund every active bet on it."""
    match = get_match_or_404(db, match_id)
    if match.status == MatchStatus.FINISHED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Match already finished")

    try:
        summary = cancel_match(db, match)
    except NetProphetError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return _settlement_response(match, summary)


@router.get("/bets", response_model=AdminBetsResponse)
async def list_bets(
    page: int = Query(1, ge=1),
    limit: int = Query(PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """One page of all bets, split into active and resolved, with totals over every bet."""
    bets, total = bet_page(db, page, limit)
    active, resolved = partition_bets(bets)
    return AdminBetsResponse(
        active=[BetResponse.model_validate(bet) for bet in active],
        resolved=[BetResponse.model_validate(bet) for bet in resolved],
        summary=summarize_bets(db.exec(select(Bet)).all()),
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/bets/{bet_id}/resolve", response_model=BetResponse)
async def resolve(
    bet_id: int,
    resolution: BetResolve,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Mark a single bet as won, lost or cancelled."""
    bet = db.get(Bet, bet_id)
    if not bet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bet not found")

    try:
        bet = resolve_bet(db, bet, resolution.status, resolution.winnings_paid)
    except NetProphetError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return bet
