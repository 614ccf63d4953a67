import math
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel

from ..errors import InvalidOdds, UnknownPlayer

TWO_PLACES = Decimal("0.01")

# (minimum prediction count, bonus) - highest applicable threshold wins
COMPLEXITY_BONUSES = [
    (8, Decimal("0.30")),
    (6, Decimal("0.20")),
    (4, Decimal("0.15")),
    (2, Decimal("0.10")),
]

PREVIEW_COUNTS = [
    (1, "Base odds (1 prediction)"),
    (2, "2+ predictions"),
    (4, "4+ predictions"),
    (6, "6+ predictions"),
    (8, "8+ predictions"),
]


class PlayerOdds(BaseModel):
    name: str
    odds: float


class MultiplierOption(BaseModel):
    value: float
    label: str
    description: str


def _round_half_up(value: Decimal) -> float:
    return float(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def complexity_bonus(prediction_count: int) -> Decimal:
    """Bonus added to the odds for making more predictions (not cumulative)."""
    for threshold, bonus in COMPLEXITY_BONUSES:
        if prediction_count >= threshold:
            return bonus
    return Decimal("0")


def calculate_multiplier(
    selected_winner: str,
    player1: PlayerOdds,
    player2: PlayerOdds,
    prediction_count: int
) -> float:
    """
    Payout multiplier for a prediction.

    Base is the decimal odds of the selected winner, plus a small bonus for
    prediction complexity, rounded half-up to 2 decimal places. Odds are not
    validated here; see validate_odds.
    """
    if selected_winner == player1.name:
        winner_odds = player1.odds
    elif selected_winner == player2.name:
        winner_odds = player2.odds
    else:
        raise UnknownPlayer(selected_winner)

    multiplier = Decimal(str(winner_odds)) + complexity_bonus(prediction_count)
    return _round_half_up(multiplier)


def get_multiplier_options(player1: PlayerOdds, player2: PlayerOdds) -> list[MultiplierOption]:
    """
    Multiplier preview at 1/2/4/6/8 predictions using the shorter odds.

    For UI hints only; actual payouts always use the selected winner's odds.
    """
    base = Decimal(str(min(player1.odds, player2.odds)))
    options = []
    for count, description in PREVIEW_COUNTS:
        value = _round_half_up(base + complexity_bonus(count))
        options.append(MultiplierOption(value=value, label=f"{value:.2f}x", description=description))
    return options


def validate_odds(*odds: float) -> None:
    for value in odds:
        if value is None or not math.isfinite(value) or value < 1.0:
            raise InvalidOdds(value)


def calculate_potential_winnings(bet_amount: int, multiplier: float) -> int:
    """round(bet_amount * multiplier), rounding halves up."""
    winnings = Decimal(bet_amount) * Decimal(str(multiplier))
    return int(winnings.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
