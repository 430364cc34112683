"""State integrity checker for Marriage games and round history."""

from __future__ import annotations

from decimal import Decimal

from marriage.game.models import Game, Round
from marriage.utils.constants import GAME_STATUSES, MAX_PLAYERS, MIN_PLAYERS, STATUS_DONE


def validate_round_integrity(game: Game, round_: Round) -> list[str]:
    """Check one saved round. Returns list of errors (empty = OK)."""
    errors: list[str] = []
    label = f"Round {round_.round_id[:8]}"

    if round_.game_id != game.game_id:
        errors.append(f"{label} belongs to game {round_.game_id}")

    if round_.per_point_value <= 0:
        errors.append(f"{label} has point value {round_.per_point_value}")

    if round_.showed_player not in game.player_names:
        errors.append(f"{label}: showed player {round_.showed_player} not in game")
    if round_.showed_player in round_.inactive_players:
        errors.append(f"{label}: showed player {round_.showed_player} is inactive")

    for name in round_.scores:
        if name not in game.player_names:
            errors.append(f"{label}: score for unknown player {name}")

    for name in round_.inactive_players:
        if round_.scores.get(name, 0) != 0:
            errors.append(
                f"{label}: inactive player {name} scored {round_.scores[name]}"
            )

    # Sum in Decimal so float noise does not hide or fake a residual
    total = sum((Decimal(str(s)) for s in round_.scores.values()), Decimal(0))
    if total != 0:
        errors.append(f"{label}: scores sum to {total}, expected 0")

    return errors


def validate_game_integrity(game: Game, rounds: list[Round]) -> list[str]:
    """Validate all game and history invariants. Returns list of errors (empty = OK).

    Checks:
    1. Roster has 2-8 players, unique ignoring case
    2. Point value is positive
    3. Status is known; final leaderboard exists iff the game is done
    4. Every round is zero-sum, inactive players score 0, showed player active
    5. Order keys are unique and strictly increasing
    """
    errors: list[str] = []

    # 1. Roster
    count = len(game.player_names)
    if not MIN_PLAYERS <= count <= MAX_PLAYERS:
        errors.append(f"Game has {count} players, expected {MIN_PLAYERS}-{MAX_PLAYERS}")
    lowered = [name.lower() for name in game.player_names]
    if len(set(lowered)) != len(lowered):
        errors.append("Duplicate player names in roster")

    # 2. Point value
    if game.per_point_value <= 0:
        errors.append(f"Point value must be positive, got {game.per_point_value}")

    # 3. Status and final snapshot
    if game.status not in GAME_STATUSES:
        errors.append(f"Unknown game status: {game.status}")
    if game.status == STATUS_DONE and game.final_leaderboard is None:
        errors.append("Finished game has no final leaderboard")
    if game.status != STATUS_DONE and game.final_leaderboard is not None:
        errors.append("Active game has a final leaderboard")

    # 4. Rounds
    for round_ in rounds:
        errors.extend(validate_round_integrity(game, round_))

    # 5. Ordering
    keys = [round_.order_key for round_ in rounds]
    if any(a >= b for a, b in zip(keys, keys[1:])):
        errors.append("Round order keys are not strictly increasing")

    return errors
