"""Validation logic for Marriage games.

Validates game names, rosters, new players, point values and round
configurations before anything reaches the scorer or the repository.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from marriage.game.models import Game
from marriage.game.scoring import is_valid_round_config
from marriage.utils.constants import MAX_PLAYERS, MIN_PLAYERS


@dataclass
class ValidationResult:
    valid: bool
    error: str | None = None


OK = ValidationResult(True)


def validate_game_name(name: str) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult(False, error="Game name cannot be empty")
    return OK


def validate_player_name(name: str) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult(False, error="Player name cannot be empty")
    return OK


def validate_roster(player_names: list[str]) -> ValidationResult:
    """Roster for a new game: 2-8 non-empty names, unique ignoring case."""
    if len(player_names) < MIN_PLAYERS:
        return ValidationResult(
            False, error=f"A game needs at least {MIN_PLAYERS} players"
        )
    if len(player_names) > MAX_PLAYERS:
        return ValidationResult(
            False, error=f"A game can have at most {MAX_PLAYERS} players"
        )
    seen: set[str] = set()
    for name in player_names:
        result = validate_player_name(name)
        if not result.valid:
            return result
        key = name.strip().lower()
        if key in seen:
            return ValidationResult(
                False, error=f'Player "{name.strip()}" already exists'
            )
        seen.add(key)
    return OK


def validate_new_player(game: Game, name: str) -> ValidationResult:
    """Adding a player mid-game: same name rules, roster only grows to 8."""
    result = validate_player_name(name)
    if not result.valid:
        return result
    if game.has_player(name):
        return ValidationResult(
            False, error=f'Player "{name.strip()}" already exists'
        )
    if len(game.player_names) >= MAX_PLAYERS:
        return ValidationResult(
            False, error=f"A game can have at most {MAX_PLAYERS} players"
        )
    return OK


def validate_point_value(value: Any) -> ValidationResult:
    """Point value must be a positive, finite number."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ValidationResult(False, error=f"Invalid point value: {value}")
    if not math.isfinite(number) or number <= 0:
        return ValidationResult(False, error="Point value must be greater than 0")
    return OK


def validate_round_config(
    player_names: list[str],
    showed_index: int,
    inactive_players: Iterable[str],
) -> ValidationResult:
    """Check who showed and who sat out before a round is saved."""
    if not 0 <= showed_index < len(player_names):
        return ValidationResult(False, error="Choose the player who showed")
    inactive = list(inactive_players)
    unknown = [name for name in inactive if name not in player_names]
    if unknown:
        return ValidationResult(
            False, error=f"Unknown player: {', '.join(unknown)}"
        )
    if not is_valid_round_config(player_names[showed_index], inactive):
        return ValidationResult(
            False,
            error="The showed player cannot be marked as inactive for the round",
        )
    return OK
