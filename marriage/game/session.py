"""A game together with its round history."""

from __future__ import annotations

from dataclasses import dataclass, field

from marriage.game.leaderboard import aggregate
from marriage.game.models import Game, LeaderboardEntry, Round


@dataclass
class GameSession:
    """Explicit context for one game: the game record plus its rounds in order."""

    game: Game
    rounds: list[Round] = field(default_factory=list)

    @property
    def live_leaderboard(self) -> list[LeaderboardEntry]:
        return aggregate(self.game.player_names, self.rounds)

    @property
    def leaderboard(self) -> list[LeaderboardEntry]:
        """The frozen snapshot for a finished game, the live totals otherwise."""
        if self.game.is_done and self.game.final_leaderboard is not None:
            return list(self.game.final_leaderboard)
        return self.live_leaderboard

    def round_number(self, round_id: str) -> int | None:
        for i, round_ in enumerate(self.rounds, 1):
            if round_.round_id == round_id:
                return i
        return None

    def get_round_by_number(self, number: int) -> Round | None:
        """1-based lookup in history order."""
        if 1 <= number <= len(self.rounds):
            return self.rounds[number - 1]
        return None
