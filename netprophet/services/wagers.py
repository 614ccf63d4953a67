"""
Wager lifecycle: placing bets, settling them and summarising history.

A bet is created once, as 'active', and moves to exactly one of won, lost
or cancelled. Resolved bets never change again.
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel
from sqlmodel import Session, select

from ..config import MAX_BET_AMOUNT, MIN_BET_AMOUNT
from ..errors import (
    EmptyPrediction,
    ImmutableWager,
    InvalidBetAmount,
    InvalidResult,
    InvalidWagerStatus,
    MatchClosed,
    MatchLocked,
    UnknownPlayer,
)
from ..logging_config import get_logger
from ..models.bet import Bet, WagerStatus
from ..models.match import Match, MatchStatus
from ..models.user import User
from . import wallet
from .multiplier import (
    PlayerOdds,
    calculate_multiplier,
    calculate_potential_winnings,
    validate_odds,
)
from .predictions import (
    MatchFormat,
    PredictionOptions,
    clear_inapplicable_fields,
    get_prediction_count,
    has_predictions,
    parse_match_result,
    with_derived_set_winners,
)
from .serializer import (
    build_prediction_text,
    dump_prediction,
    normalize_prediction,
    parse_stored_prediction,
    prediction_fields,
)

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    WagerStatus.ACTIVE: {WagerStatus.WON, WagerStatus.LOST, WagerStatus.CANCELLED},
}


class MatchOutcome(BaseModel):
    """Authoritative result of a finished match."""
    winner: str
    match_result: str = ""


Matcher = Callable[[PredictionOptions, MatchOutcome], bool]


@dataclass
class SettlementSummary:
    settled: int = 0
    won: int = 0
    lost: int = 0
    cancelled: int = 0
    winnings_paid: int = 0
    refunded: int = 0
    bet_ids: list[int] = field(default_factory=list)


class BetSummary(BaseModel):
    total_bets: int
    total_bet_amount: int
    total_winnings_paid: int
    total_losses: int
    active_bets: int
    won_bets: int
    lost_bets: int
    cancelled_bets: int
    win_rate: float


class BetHistoryItem(BaseModel):
    id: int
    match_id: Optional[int]
    match_title: str
    date: str
    time: str
    prediction: PredictionOptions
    prediction_text: str
    status: WagerStatus
    points_earned: int
    bet_amount: int
    potential_winnings: int
    multiplier: float
    created_at: datetime


def _wager_status(value: Any) -> WagerStatus:
    try:
        return WagerStatus(value)
    except ValueError:
        raise InvalidWagerStatus(value) from None


def transition(current: Any, target: Any, bet_id: Optional[int] = None) -> WagerStatus:
    """Validate a status change; only active bets can move, and only to a terminal state."""
    current = _wager_status(current)
    target = _wager_status(target)
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ImmutableWager(bet_id, current.value)
    return target


def match_player_odds(match: Match) -> tuple[PlayerOdds, PlayerOdds]:
    return (
        PlayerOdds(name=match.player1_name, odds=match.odds_a),
        PlayerOdds(name=match.player2_name, odds=match.odds_b),
    )


def place_bet(
    db: Session,
    user: User,
    match: Match,
    options: PredictionOptions,
    bet_amount: int,
    now: Optional[datetime] = None
) -> Bet:
    """
    Create an active bet and take the stake from the user's wallet.

    Every check runs before anything is written. The multiplier is fixed from
    the match's odds at this moment; later odds changes do not affect the bet.
    The debit and the bet row are committed together.
    """
    if isinstance(bet_amount, bool) or not isinstance(bet_amount, int):
        raise InvalidBetAmount(bet_amount)
    if not max(1, MIN_BET_AMOUNT) <= bet_amount <= MAX_BET_AMOUNT:
        raise InvalidBetAmount(bet_amount)

    if not has_predictions(options):
        raise EmptyPrediction()

    if match.is_locked(now):
        raise MatchLocked(match.id)

    validate_odds(match.odds_a, match.odds_b)

    player1, player2 = match_player_odds(match)
    options = clear_inapplicable_fields(options, MatchFormat(match.match_format))
    options = with_derived_set_winners(options, player1.name, player2.name)
    prediction_count = get_prediction_count(options)
    multiplier = calculate_multiplier(options.winner, player1, player2, prediction_count)
    potential_winnings = calculate_potential_winnings(bet_amount, multiplier)

    bet = Bet(
        user_id=user.id,
        match_id=match.id,
        prediction=dump_prediction(normalize_prediction(options)),
        description=build_prediction_text(options),
        bet_amount=bet_amount,
        multiplier=multiplier,
        potential_winnings=potential_winnings,
        status=WagerStatus.ACTIVE.value,
    )

    try:
        wallet.debit(db, user.id, bet_amount, description=f"Bet on {match.title}")
        db.add(bet)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(bet)
    logger.info(
        "bet_placed",
        bet_id=bet.id,
        user_id=user.id,
        match_id=match.id,
        bet_amount=bet_amount,
        multiplier=multiplier,
        prediction_count=prediction_count,
    )
    return bet


def _apply_resolution(
    db: Session,
    bet: Bet,
    status: Any,
    winnings_paid: Optional[int],
    now: datetime
) -> WagerStatus:
    target = transition(bet.status, status, bet.id)

    if target == WagerStatus.WON:
        paid = bet.potential_winnings if winnings_paid is None else winnings_paid
        if paid < 0:
            raise InvalidBetAmount(paid)
        bet.winnings_paid = paid
        if paid:
            wallet.credit(db, bet.user_id, paid, "win", description=f"Winnings for bet {bet.id}")
    elif target == WagerStatus.LOST:
        bet.winnings_paid = 0
    else:
        # Voided: full stake back, never partial
        bet.winnings_paid = 0
        wallet.credit(db, bet.user_id, bet.bet_amount, "refund", description=f"Refund for bet {bet.id}")

    bet.status = target.value
    bet.resolved_at = now
    db.add(bet)
    return target


def resolve_bet(
    db: Session,
    bet: Bet,
    status: Any,
    winnings_paid: Optional[int] = None,
    now: Optional[datetime] = None
) -> Bet:
    """Resolve a single active bet as won, lost or cancelled."""
    try:
        target = _apply_resolution(db, bet, status, winnings_paid, now or datetime.now(UTC))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(bet)
    logger.info("bet_resolved", bet_id=bet.id, status=target.value, winnings_paid=bet.winnings_paid)
    return bet


def winner_matcher(options: PredictionOptions, outcome: MatchOutcome) -> bool:
    """
    Default settlement rule: the predicted winner must be right, and when a
    result was predicted it must agree with the actual one.
    """
    if not options.winner or options.winner != outcome.winner:
        return False
    if options.match_result and outcome.match_result:
        try:
            predicted = sorted(parse_match_result(options.match_result), reverse=True)
        except InvalidResult:
            return False
        actual = sorted(parse_match_result(outcome.match_result), reverse=True)
        return predicted == actual
    return True


def classify_wager(prediction: Any, outcome: MatchOutcome, matcher: Matcher = winner_matcher) -> WagerStatus:
    """Won or lost for a stored (or structured) prediction against a final result."""
    options = prediction_fields(parse_stored_prediction(prediction))
    return WagerStatus.WON if matcher(options, outcome) else WagerStatus.LOST


def _active_bets_for_match(db: Session, match_id: int) -> list[Bet]:
    statement = select(Bet).where(
        Bet.match_id == match_id,
        Bet.status == WagerStatus.ACTIVE.value
    )
    return list(db.exec(statement).all())


def settle_match(
    db: Session,
    match: Match,
    outcome: MatchOutcome,
    matcher: Matcher = winner_matcher,
    now: Optional[datetime] = None
) -> SettlementSummary:
    """
    Record a match result and settle every active bet on it.
    Called when an admin enters the final result.
    """
    if match.status in (MatchStatus.FINISHED, MatchStatus.CANCELLED):
        raise MatchClosed(match.id, match.status)
    if outcome.match_result:
        parse_match_result(outcome.match_result)
    if outcome.winner not in (match.player1_name, match.player2_name):
        raise UnknownPlayer(outcome.winner)

    now = now or datetime.now(UTC)
    summary = SettlementSummary()

    try:
        match.status = MatchStatus.FINISHED
        match.winner_name = outcome.winner
        match.match_result = outcome.match_result or None
        db.add(match)

        for bet in _active_bets_for_match(db, match.id):
            status = classify_wager(bet.prediction, outcome, matcher)
            _apply_resolution(db, bet, status, None, now)
            summary.settled += 1
            summary.bet_ids.append(bet.id)
            if status == WagerStatus.WON:
                summary.won += 1
                summary.winnings_paid += bet.winnings_paid
            else:
                summary.lost += 1

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "match_settled",
        match_id=match.id,
        winner=outcome.winner,
        settled=summary.settled,
        won=summary.won,
        lost=summary.lost,
    )
    return summary


def cancel_match(db: Session, match: Match, now: Optional[datetime] = None) -> SettlementSummary:
    """Void a match and refund every active bet on it in full."""
    if match.status == MatchStatus.FINISHED:
        raise MatchClosed(match.id, match.status)
    now = now or datetime.now(UTC)
    summary = SettlementSummary()

    try:
        match.status = MatchStatus.CANCELLED
        db.add(match)

        for bet in _active_bets_for_match(db, match.id):
            _apply_resolution(db, bet, WagerStatus.CANCELLED, None, now)
            summary.settled += 1
            summary.cancelled += 1
            summary.refunded += bet.bet_amount
            summary.bet_ids.append(bet.id)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("match_cancelled", match_id=match.id, cancelled=summary.cancelled, refunded=summary.refunded)
    return summary


def partition_bets(bets: Iterable[Bet]) -> tuple[list[Bet], list[Bet]]:
    """Split into (active, resolved)."""
    active, resolved = [], []
    for bet in bets:
        (active if bet.status == WagerStatus.ACTIVE.value else resolved).append(bet)
    return active, resolved


def summarize_bets(bets: Iterable[Bet]) -> BetSummary:
    bets = list(bets)
    counts = {status: 0 for status in WagerStatus}
    for bet in bets:
        counts[WagerStatus(bet.status)] += 1

    settled = counts[WagerStatus.WON] + counts[WagerStatus.LOST]
    win_rate = round(counts[WagerStatus.WON] / settled * 100, 2) if settled else 0.0

    return BetSummary(
        total_bets=len(bets),
        total_bet_amount=sum(bet.bet_amount for bet in bets),
        total_winnings_paid=sum(bet.winnings_paid for bet in bets),
        total_losses=sum(bet.bet_amount for bet in bets if bet.status == WagerStatus.LOST.value),
        active_bets=counts[WagerStatus.ACTIVE],
        won_bets=counts[WagerStatus.WON],
        lost_bets=counts[WagerStatus.LOST],
        cancelled_bets=counts[WagerStatus.CANCELLED],
        win_rate=win_rate,
    )


def build_history_item(bet: Bet, match: Optional[Match]) -> BetHistoryItem:
    options = prediction_fields(parse_stored_prediction(bet.prediction))
    when = match.start_time if match else bet.created_at

    return BetHistoryItem(
        id=bet.id,
        match_id=bet.match_id,
        match_title=match.title if match else "Unknown Match",
        date=when.strftime("%Y-%m-%d"),
        time=when.strftime("%H:%M"),
        prediction=options,
        prediction_text=build_prediction_text(options),
        status=WagerStatus(bet.status),
        points_earned=bet.winnings_paid,
        bet_amount=bet.bet_amount,
        potential_winnings=bet.potential_winnings,
        multiplier=bet.multiplier,
        created_at=bet.created_at,
    )
