"""
Prediction model for a single tennis match.

A prediction is a flat set of string fields, "" meaning not chosen. Which
per-set fields apply depends on the predicted match result and the match
format; per-set winners are derived from result + winner and never chosen
directly.
"""
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import InvalidResult, UnknownPlayer

SET_COUNT = 5
TIE_BREAK_SETS = 2
SUPER_TIEBREAK_RESULTS = {(2, 1), (1, 2)}

_RESULT_PATTERN = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


class MatchFormat(str, Enum):
    STANDARD = "standard"
    AMATEUR_SUPER_TIEBREAK = "amateur_super_tiebreak"


class PredictionOptions(BaseModel):
    """Everything a user can predict for one match. JSON keys are camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    winner: str = ""
    match_result: str = Field(default="", alias="matchResult")
    set1_score: str = Field(default="", alias="set1Score")
    set2_score: str = Field(default="", alias="set2Score")
    set3_score: str = Field(default="", alias="set3Score")
    set4_score: str = Field(default="", alias="set4Score")
    set5_score: str = Field(default="", alias="set5Score")
    set1_winner: str = Field(default="", alias="set1Winner")
    set2_winner: str = Field(default="", alias="set2Winner")
    set3_winner: str = Field(default="", alias="set3Winner")
    set4_winner: str = Field(default="", alias="set4Winner")
    set5_winner: str = Field(default="", alias="set5Winner")
    tie_break: str = Field(default="", alias="tieBreak")
    total_games: str = Field(default="", alias="totalGames")
    aces_leader: str = Field(default="", alias="acesLeader")
    double_faults: str = Field(default="", alias="doubleFaults")
    break_points: str = Field(default="", alias="breakPoints")
    set1_tie_break: str = Field(default="", alias="set1TieBreak")  # yes / no
    set2_tie_break: str = Field(default="", alias="set2TieBreak")  # yes / no
    set1_tie_break_score: str = Field(default="", alias="set1TieBreakScore")
    set2_tie_break_score: str = Field(default="", alias="set2TieBreakScore")
    super_tie_break: str = Field(default="", alias="superTieBreak")  # yes / no
    super_tie_break_score: str = Field(default="", alias="superTieBreakScore")
    super_tie_break_winner: str = Field(default="", alias="superTieBreakWinner")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_str(cls, value):
        if value is None:
            return ""
        if isinstance(value, bool):
            return "yes" if value else "no"
        if isinstance(value, (int, float)):
            return str(value)
        return value


# Computed from result + winner, so they never count as user effort
DERIVED_FIELDS = frozenset(f"set{i}_winner" for i in range(1, SET_COUNT + 1))


def create_empty_predictions() -> PredictionOptions:
    return PredictionOptions()


def parse_match_result(match_result: str) -> tuple[int, int]:
    """Split "a-b" into its two set counts, raising InvalidResult when malformed."""
    match = _RESULT_PATTERN.match(match_result or "")
    if not match:
        raise InvalidResult(match_result)
    return int(match.group(1)), int(match.group(2))


def get_sets_to_show_from_result(
    match_result: str,
    match_format: MatchFormat = MatchFormat.STANDARD
) -> int:
    """
    Number of regular sets the user should score for a predicted result.

    In the amateur format a 2-1 / 1-2 match is decided by a super tie-break
    instead of a third set, so only two sets are shown.
    """
    if not match_result:
        return 0

    sets1, sets2 = parse_match_result(match_result)

    if match_format == MatchFormat.AMATEUR_SUPER_TIEBREAK and (sets1, sets2) in SUPER_TIEBREAK_RESULTS:
        return 2

    return sets1 + sets2


def get_set_winners_from_result(
    match_result: str,
    winner: str,
    player1_name: str,
    player2_name: str
) -> list[str]:
    """
    Per-set winners for display: the winner's sets first, then the loser's.

    This is an aggregate, not the chronological order of sets. The winner
    always takes the larger side of the result, so "2-1" and "1-2" read the same.
    """
    if not match_result or not winner:
        return []

    sets1, sets2 = parse_match_result(match_result)
    if winner == player1_name:
        loser = player2_name
    elif winner == player2_name:
        loser = player1_name
    else:
        raise UnknownPlayer(winner)

    winner_sets, loser_sets = max(sets1, sets2), min(sets1, sets2)

    return [winner] * winner_sets + [loser] * loser_sets


def with_derived_set_winners(
    options: PredictionOptions,
    player1_name: str,
    player2_name: str
) -> PredictionOptions:
    """Return a copy with set1..set5 winners filled in from result and winner."""
    winners = get_set_winners_from_result(
        options.match_result, options.winner, player1_name, player2_name
    )
    updates = {
        f"set{i}_winner": winners[i - 1] if i <= len(winners) else ""
        for i in range(1, SET_COUNT + 1)
    }
    return options.model_copy(update=updates)


def applicable_fields(options: PredictionOptions, match_format: MatchFormat) -> set[str]:
    """Names of the fields that mean something for this prediction's result and format."""
    fields = set(PredictionOptions.model_fields) - DERIVED_FIELDS
    sets_to_show = get_sets_to_show_from_result(options.match_result, match_format)

    for i in range(sets_to_show + 1, SET_COUNT + 1):
        fields.discard(f"set{i}_score")

    for i in range(1, TIE_BREAK_SETS + 1):
        if i > sets_to_show:
            fields.discard(f"set{i}_tie_break")
        if i > sets_to_show or getattr(options, f"set{i}_tie_break") != "yes":
            fields.discard(f"set{i}_tie_break_score")

    has_super_tiebreak = (
        match_format == MatchFormat.AMATEUR_SUPER_TIEBREAK
        and bool(options.match_result)
        and parse_match_result(options.match_result) in SUPER_TIEBREAK_RESULTS
    )
    if not has_super_tiebreak:
        fields -= {"super_tie_break", "super_tie_break_score", "super_tie_break_winner"}

    return fields


def clear_inapplicable_fields(
    options: PredictionOptions,
    match_format: MatchFormat = MatchFormat.STANDARD
) -> PredictionOptions:
    """Blank out choices left over from a different result (e.g. a set 3 score on a 2-0)."""
    keep = applicable_fields(options, match_format)
    updates = {
        name: ""
        for name in PredictionOptions.model_fields
        if name not in keep and name not in DERIVED_FIELDS
    }
    return options.model_copy(update=updates)


def _counted_values(options: PredictionOptions):
    for name in PredictionOptions.model_fields:
        if name not in DERIVED_FIELDS:
            yield getattr(options, name)


def get_prediction_count(options: PredictionOptions) -> int:
    return sum(1 for value in _counted_values(options) if value != "")


def has_predictions(options: PredictionOptions) -> bool:
    return any(value != "" for value in _counted_values(options))


def set_scores(options: PredictionOptions) -> list[str]:
    return [getattr(options, f"set{i}_score") for i in range(1, SET_COUNT + 1)]
