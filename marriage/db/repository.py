"""Repository protocol interfaces for Marriage persistence."""

from __future__ import annotations

from typing import Protocol

from marriage.game.models import Game, Round


class GameRepository(Protocol):
    def get_game(self, game_id: str) -> Game | None:
        ...

    def save_game(self, game: Game) -> None:
        ...

    def delete_game(self, game_id: str) -> None:
        ...

    def get_game_by_code(self, code: str) -> Game | None:
        ...

    def list_games(self) -> list[Game]:
        ...


class RoundRepository(Protocol):
    def append_round(self, round_: Round) -> Round:
        """Store a new round at the end of its game's history.

        Assigns the order key and returns the stored round.
        """
        ...

    def update_round(self, round_: Round) -> None:
        """Replace an existing round in place; its order key is kept."""
        ...

    def get_round(self, game_id: str, round_id: str) -> Round | None:
        ...

    def list_rounds(self, game_id: str) -> list[Round]:
        """All rounds of a game in append order."""
        ...


class UserRepository(Protocol):
    def get_user(self, user_id: str) -> dict | None:
        ...

    def save_user(self, user: dict) -> None:
        ...
