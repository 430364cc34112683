"""Round scoring for Marriage.

A round is a closed money transfer among its active players. Every active
player other than the one who showed pays into (or draws from) a pool:

    points = -(total_power * 20 * ppv)
             - (hands * 10 * ppv)
             + (power * 20 * num_active * ppv)

and the showed player collects the negated sum of those amounts. Inactive
players neither pay nor receive. All arithmetic is done in Decimal and
every stored amount is rounded to cents, half away from zero.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

from marriage.utils.constants import (
    FIELD_HANDS,
    FIELD_POWER,
    HANDS_MULTIPLIER,
    POWER_MULTIPLIER,
    SCORE_DECIMALS,
)

_CENT = Decimal(1).scaleb(-SCORE_DECIMALS)
_ZERO = Decimal(0)


def parse_number(raw: Any) -> float:
    """Leniently parse a numeric input. Missing, unparsable or non-finite is 0."""
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float, Decimal)):
        value = float(raw)
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def _to_decimal(raw: Any) -> Decimal:
    return Decimal(str(parse_number(raw)))


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _to_float(value: Decimal) -> float:
    if value == 0:
        return 0.0
    return float(value)


def round_money(value: Any) -> float:
    """Round an amount to cents, half away from zero (2.675 -> 2.68)."""
    return _to_float(_quantize(_to_decimal(value)))


def _input_value(inputs: Mapping[str, Any], name: str, field: str) -> Decimal:
    entry = inputs.get(name)
    if entry is None:
        return _ZERO
    if isinstance(entry, Mapping):
        return _to_decimal(entry.get(field))
    return _to_decimal(getattr(entry, field, None))


def is_valid_round_config(showed_player: str, inactive_players: Iterable[str]) -> bool:
    """A round can only be saved if the showed player took part in it."""
    return showed_player not in set(inactive_players)


def score_round(
    player_names: list[str],
    showed_player: str,
    inactive_players: Iterable[str],
    per_point_value: Any,
    inputs: Mapping[str, Any],
) -> dict[str, float]:
    """Compute the per-player money deltas for one round.

    ``inputs`` maps a player name to its power/hands, either as a
    RoundInput or as a mapping with "power"/"hands" keys; values may be raw
    strings. Players missing from ``inputs`` count as 0/0.

    If the showed player is inactive the round is degenerate and every
    player scores 0. Raises ValueError if ``showed_player`` is not on the
    roster at all.
    """
    if showed_player not in player_names:
        raise ValueError(f"Showed player {showed_player!r} is not in the game")

    inactive = set(inactive_players)
    if showed_player in inactive:
        return {name: 0.0 for name in player_names}

    active = [name for name in player_names if name not in inactive]
    num_active = len(active)
    ppv = _to_decimal(per_point_value)
    total_power = sum(
        (_input_value(inputs, name, FIELD_POWER) for name in active), _ZERO
    )

    scores: dict[str, Decimal] = {}
    net_loss = _ZERO
    for name in player_names:
        if name in inactive:
            scores[name] = _ZERO
            continue
        if name == showed_player:
            # Filled in once every other active player is scored
            scores[name] = _ZERO
            continue
        power = _input_value(inputs, name, FIELD_POWER)
        hands = _input_value(inputs, name, FIELD_HANDS)
        points = (
            -(total_power * POWER_MULTIPLIER * ppv)
            - (hands * HANDS_MULTIPLIER * ppv)
            + (power * POWER_MULTIPLIER * num_active * ppv)
        )
        points = _quantize(points)
        scores[name] = points
        net_loss += points

    scores[showed_player] = _quantize(-net_loss)
    return {name: _to_float(value) for name, value in scores.items()}
