"""
Prediction text and storage formats.

New bets store the structured prediction as JSON. Older rows may hold the
pipe-delimited display text ("Winner: A | Result: 2-0 | ...") or other free
text, so reading is best-effort and never raises.
"""
import json
from dataclasses import dataclass
from typing import Any, Union

from .predictions import PredictionOptions, SET_COUNT, set_scores

SEPARATOR = " | "

# Display label -> field, for reading pipe-delimited text back
_LABEL_FIELDS = {
    "Winner": "winner",
    "Result": "match_result",
    "Set 1 TB": "set1_tie_break",
    "Set 1 TB Score": "set1_tie_break_score",
    "Set 2 TB": "set2_tie_break",
    "Set 2 TB Score": "set2_tie_break_score",
    "Super TB Winner": "super_tie_break_winner",
    "Super TB Score": "super_tie_break_score",
    "Tie-break": "tie_break",
    "Total Games": "total_games",
    "Most Aces": "aces_leader",
    "Double Faults": "double_faults",
    "Break Points": "break_points",
    # older history-page labels
    "Set 1": "set1_score",
    "Set 2": "set2_score",
    "Set 3": "set3_score",
    "Super TB": "super_tie_break_score",
}

# JSON keys written by older clients
_LEGACY_KEYS = {
    "superTiebreakScore": "super_tie_break_score",
    "tiebreak": "tie_break",
}


@dataclass(frozen=True)
class StructuredPrediction:
    options: PredictionOptions


@dataclass(frozen=True)
class LegacyTextPrediction:
    text: str


Prediction = Union[StructuredPrediction, LegacyTextPrediction]


def build_prediction_text(options: PredictionOptions) -> str:
    """Canonical display text. Segment order is fixed; empty fields are skipped."""
    parts = []

    if options.winner:
        parts.append(f"Winner: {options.winner}")

    if options.match_result:
        parts.append(f"Result: {options.match_result}")

    scores = [score for score in set_scores(options) if score != ""]
    if scores:
        parts.append(f"Sets: {', '.join(scores)}")

    for i in (1, 2):
        tie_break = getattr(options, f"set{i}_tie_break")
        tie_break_score = getattr(options, f"set{i}_tie_break_score")
        if tie_break:
            parts.append(f"Set {i} TB: {tie_break}")
            if tie_break == "yes" and tie_break_score:
                parts.append(f"Set {i} TB Score: {tie_break_score}")

    if options.super_tie_break_winner:
        parts.append(f"Super TB Winner: {options.super_tie_break_winner}")
        if options.super_tie_break_score:
            parts.append(f"Super TB Score: {options.super_tie_break_score}")

    if options.tie_break:
        parts.append(f"Tie-break: {options.tie_break}")

    if options.total_games:
        parts.append(f"Total Games: {options.total_games}")

    if options.aces_leader:
        parts.append(f"Most Aces: {options.aces_leader}")

    if options.double_faults:
        parts.append(f"Double Faults: {options.double_faults}")

    if options.break_points:
        parts.append(f"Break Points: {options.break_points}")

    return SEPARATOR.join(parts)


def _field_names() -> dict[str, str]:
    names = {}
    for name, field in PredictionOptions.model_fields.items():
        names[name] = name
        if field.alias:
            names[field.alias] = name
    names.update(_LEGACY_KEYS)
    return names


def _options_from_mapping(data: dict[str, Any]) -> PredictionOptions:
    names = _field_names()
    values = {}
    for key, value in data.items():
        name = names.get(key)
        if name is None or name in values:
            continue
        if not isinstance(value, (str, bool, int, float)) and value is not None:
            value = str(value)
        values[name] = value
    return PredictionOptions(**values)


def _options_from_text(text: str) -> PredictionOptions:
    values: dict[str, str] = {}
    for segment in text.split("|"):
        label, sep, value = segment.partition(":")
        value = value.strip()
        if not sep or not value:
            continue
        label = label.strip()
        if label == "Sets":
            scores = [score.strip() for score in value.split(",") if score.strip()]
            for i, score in enumerate(scores[:SET_COUNT], start=1):
                values.setdefault(f"set{i}_score", score)
            continue
        name = _LABEL_FIELDS.get(label)
        if name:
            values.setdefault(name, value)
    return PredictionOptions(**values)


def parse_stored_prediction(raw: Any) -> Prediction:
    """Classify a stored prediction value. Total: unknown shapes become legacy text."""
    if isinstance(raw, PredictionOptions):
        return StructuredPrediction(raw)
    if isinstance(raw, dict):
        return StructuredPrediction(_options_from_mapping(raw))
    if raw is None:
        return LegacyTextPrediction("")

    text = raw if isinstance(raw, str) else str(raw)
    try:
        decoded = json.loads(text)
    except (ValueError, RecursionError):
        # Deeply nested junk overflows the decoder; still just text
        return LegacyTextPrediction(text)

    if isinstance(decoded, dict):
        return StructuredPrediction(_options_from_mapping(decoded))
    if isinstance(decoded, str):
        return LegacyTextPrediction(decoded)
    return LegacyTextPrediction(text)


def prediction_fields(prediction: Prediction) -> PredictionOptions:
    """Whatever fields can be recovered; missing ones stay empty."""
    if isinstance(prediction, StructuredPrediction):
        return prediction.options
    return _options_from_text(prediction.text)


def normalize_prediction(value: Any) -> StructuredPrediction:
    """Storage boundary: everything written from now on is structured."""
    prediction = parse_stored_prediction(value)
    if isinstance(prediction, StructuredPrediction):
        return prediction
    return StructuredPrediction(prediction_fields(prediction))


def dump_prediction(prediction: StructuredPrediction) -> str:
    return prediction.options.model_dump_json(by_alias=True)
