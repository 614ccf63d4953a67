from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from ..database import get_session
from ..errors import NetProphetError
from ..models.match import Match
from ..services.multiplier import (
    MultiplierOption,
    PlayerOdds,
    calculate_multiplier,
    get_multiplier_options,
)
from ..services.predictions import (
    MatchFormat,
    PredictionOptions,
    clear_inapplicable_fields,
    get_prediction_count,
    get_set_winners_from_result,
    get_sets_to_show_from_result,
    with_derived_set_winners,
)
from ..services.serializer import build_prediction_text
from ..services.wagers import match_player_odds

router = APIRouter(prefix="/api/matches", tags=["matches"])


class MatchResponse(BaseModel):
    """Schema for match response."""
    id: int
    title: str
    player1: PlayerOdds
    player2: PlayerOdds
    match_format: MatchFormat
    status: str
    start_time: datetime
    lock_time: Optional[datetime] = None
    is_locked: bool
    winner_name: Optional[str] = None
    match_result: Optional[str] = None


class PredictionPreview(BaseModel):
    """What a draft prediction would be worth if submitted now."""
    sets_to_show: int
    set_winners: List[str]
    prediction_count: int
    multiplier: Optional[float] = None
    prediction_text: str
    prediction: PredictionOptions


def match_response(match: Match) -> MatchResponse:
    player1, player2 = match_player_odds(match)
    return MatchResponse(
        id=match.id,
        title=match.title,
        player1=player1,
        player2=player2,
        match_format=MatchFormat(match.match_format),
        status=match.status,
        start_time=match.start_time,
        lock_time=match.lock_time,
        is_locked=match.is_locked(),
        winner_name=match.winner_name,
        match_result=match.match_result,
    )


def get_match_or_404(db: Session, match_id: int) -> Match:
    match = db.get(Match, match_id)
    if not match:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Match not found")
    return match


@router.get("", response_model=List[MatchResponse])
async def list_matches(db: Session = Depends(get_session)):
    """All matches, soonest first."""
    statement = select(Match).order_by(Match.start_time)
    return [match_response(match) for match in db.exec(statement).all()]


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(match_id: int, db: Session = Depends(get_session)):
    return match_response(get_match_or_404(db, match_id))


@router.get("/{match_id}/multiplier-options", response_model=List[MultiplierOption])
async def multiplier_options(match_id: int, db: Session = Depends(get_session)):
    """Multiplier hints shown next to the betting slip."""
    match = get_match_or_404(db, match_id)
    return get_multiplier_options(*match_player_odds(match))


@router.post("/{match_id}/preview", response_model=PredictionPreview)
async def preview_prediction(
    match_id: int,
    prediction: PredictionOptions,
    db: Session = Depends(get_session)
):
    """Recalculate the betting slip for a draft prediction. Nothing is stored."""
    match = get_match_or_404(db, match_id)
    match_format = MatchFormat(match.match_format)
    player1, player2 = match_player_odds(match)

    try:
        options = clear_inapplicable_fields(prediction, match_format)
        options = with_derived_set_winners(options, player1.name, player2.name)
        count = get_prediction_count(options)
        multiplier = None
        if options.winner:
            multiplier = calculate_multiplier(options.winner, player1, player2, count)

        return PredictionPreview(
            sets_to_show=get_sets_to_show_from_result(options.match_result, match_format),
            set_winners=get_set_winners_from_result(
                options.match_result, options.winner, player1.name, player2.name
            ),
            prediction_count=count,
            multiplier=multiplier,
            prediction_text=build_prediction_text(options),
            prediction=options,
        )
    except NetProphetError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
