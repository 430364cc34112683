"""Building and re-scoring rounds.

These are pure functions: they take a game and inputs and return a Round,
leaving persistence to the caller. A round is self-contained; it keeps
the point value it was first saved with, so later changes to the game's
point value never reprice history.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from marriage.game.models import Game, Round, RoundInput
from marriage.game.scoring import parse_number, score_round
from marriage.utils.constants import FIELD_HANDS, FIELD_POWER


def parse_count(raw: Any) -> float:
    """Parse a power/hands value for storage. Empty or unparsable is 0, never negative."""
    return max(0.0, parse_number(raw))


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def normalize_inputs(
    player_names: list[str],
    inactive_players: Iterable[str],
    raw_inputs: Mapping[str, Any],
) -> dict[str, RoundInput]:
    """Numeric inputs for every player on the roster.

    Inactive and missing players are recorded as 0/0.
    """
    inactive = set(inactive_players)
    details = {}
    for name in player_names:
        entry = raw_inputs.get(name)
        if name in inactive or entry is None:
            details[name] = RoundInput()
            continue
        details[name] = RoundInput(
            power=parse_count(_field(entry, FIELD_POWER)),
            hands=parse_count(_field(entry, FIELD_HANDS)),
        )
    return details


def round_player_names(game: Game, round_: Round) -> list[str]:
    """Roster a saved round was played with, in game order.

    Players added to the game after the round was saved are not part of it.
    """
    names = [name for name in game.player_names if name in round_.round_details]
    return names or list(game.player_names)


def _showed_player(game: Game, showed_index: int) -> str:
    if not 0 <= showed_index < len(game.player_names):
        raise ValueError(f"Showed player index out of range: {showed_index}")
    return game.player_names[showed_index]


def new_round(
    game: Game,
    showed_index: int,
    inactive_players: Iterable[str],
    raw_inputs: Mapping[str, Any],
    saved_by: str = "",
    now: str = "",
) -> Round:
    """Score a fresh round at the game's current point value."""
    showed = _showed_player(game, showed_index)
    names = list(game.player_names)
    sitting_out = set(inactive_players)
    inactive = [name for name in names if name in sitting_out]
    details = normalize_inputs(names, inactive, raw_inputs)
    scores = score_round(names, showed, inactive, game.per_point_value, details)
    return Round(
        round_id=Round.new_round_id(),
        game_id=game.game_id,
        showed_player=showed,
        inactive_players=inactive,
        per_point_value=game.per_point_value,
        round_details=details,
        scores=scores,
        saved_by=saved_by,
        created_at=now,
        updated_at=now,
    )


def edit_round(
    game: Game,
    existing_round: Round,
    showed_index: int,
    inactive_players: Iterable[str],
    raw_inputs: Mapping[str, Any],
    now: str = "",
) -> Round:
    """Re-score a saved round from edited inputs.

    Uses the round's own point value and roster. The round id, order key
    and creation time are kept, so the round stays where it was in history.
    """
    showed = _showed_player(game, showed_index)
    names = round_player_names(game, existing_round)
    sitting_out = set(inactive_players)
    inactive = [name for name in names if name in sitting_out]
    details = normalize_inputs(names, inactive, raw_inputs)
    scores = score_round(
        names, showed, inactive, existing_round.per_point_value, details
    )
    return replace(
        existing_round,
        showed_player=showed,
        inactive_players=inactive,
        round_details=details,
        scores=scores,
        updated_at=now or existing_round.updated_at,
    )
