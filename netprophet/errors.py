"""Domain errors raised by the prediction and wager services."""


class NetProphetError(Exception):
    """Base class for all domain errors. Carries the HTTP status the API maps it to."""

    status_code = 400


class InvalidResult(NetProphetError):
    """A match result is not of the form "<sets>-<sets>"."""

    def __init__(self, match_result: str):
        self.match_result = match_result
        super().__init__(f"Invalid match result: {match_result!r}")


class UnknownPlayer(NetProphetError):
    """The selected winner matches neither player of the match."""

    def __init__(self, selected_winner: str):
        self.selected_winner = selected_winner
        super().__init__(f"Selected winner {selected_winner!r} is not a player in this match")


class InvalidOdds(NetProphetError):
    def __init__(self, odds: float):
        self.odds = odds
        super().__init__(f"Odds must be a finite number of at least 1.0, got {odds}")


class InvalidBetAmount(NetProphetError):
    def __init__(self, bet_amount):
        self.bet_amount = bet_amount
        super().__init__(f"Invalid bet amount: {bet_amount!r}")


class EmptyPrediction(NetProphetError):
    def __init__(self):
        super().__init__("At least one prediction is required")


class InsufficientFunds(NetProphetError):
    status_code = 402

    def __init__(self, user_id: int, amount: int):
        self.user_id = user_id
        self.amount = amount
        super().__init__(f"Insufficient balance to wager {amount} coins")


class MatchLocked(NetProphetError):
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__("Match is locked for predictions")


class ImmutableWager(NetProphetError):
    """A resolved wager cannot change state again, and an active one can only be resolved."""

    status_code = 409

    def __init__(self, bet_id, status: str):
        self.bet_id = bet_id
        self.status = status
        bet = "Bet" if bet_id is None else f"Bet {bet_id}"
        if status == "active":
            message = f"{bet} is active and can only be resolved as won, lost or cancelled"
        else:
            message = f"{bet} is already {status} and cannot be changed"
        super().__init__(message)


class InvalidWagerStatus(NetProphetError):
    def __init__(self, status):
        self.status = status
        super().__init__(f"Unknown bet status: {status!r}")


class MatchClosed(NetProphetError):
    """A finished or cancelled match cannot be settled again."""

    status_code = 409

    def __init__(self, match_id, status: str):
        self.match_id = match_id
        self.status = status
        super().__init__(f"Match {match_id} is already {status}")
