"""Cumulative leaderboard over a game's round history."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from marriage.game.models import LeaderboardEntry, Round
from marriage.game.scoring import round_money


def aggregate(player_names: list[str], rounds: Iterable[Round]) -> list[LeaderboardEntry]:
    """Fold round scores into per-player totals, highest first.

    Players missing from a round's scores (e.g. added later) count 0 for
    that round. Equal totals keep roster order.
    """
    totals = {name: Decimal(0) for name in player_names}
    for round_ in rounds:
        for name in player_names:
            totals[name] += Decimal(str(round_.scores.get(name) or 0))

    entries = [
        (index, LeaderboardEntry(name=name, score=round_money(totals[name])))
        for index, name in enumerate(player_names)
    ]
    entries.sort(key=lambda item: (-item[1].score, item[0]))
    return [entry for _, entry in entries]
