"""In-memory repository implementations for testing and local CLI."""

from __future__ import annotations

import copy
from dataclasses import replace

from marriage.game.models import Game, Round


class InMemoryGameRepository:
    def __init__(self) -> None:
        self._games: dict[str, Game] = {}

    def get_game(self, game_id: str) -> Game | None:
        game = self._games.get(game_id)
        if game is None:
            return None
        return copy.deepcopy(game)

    def save_game(self, game: Game) -> None:
        existing = self._games.get(game.game_id)
        if existing is not None and existing.version != game.version:
            raise ValueError(
                f"Version conflict: expected {game.version}, found {existing.version}"
            )
        saved = copy.deepcopy(game)
        saved.version = game.version + 1
        self._games[game.game_id] = saved

    def delete_game(self, game_id: str) -> None:
        self._games.pop(game_id, None)

    def get_game_by_code(self, code: str) -> Game | None:
        for game in self._games.values():
            if game.code.upper() == code.upper():
                return copy.deepcopy(game)
        return None

    def list_games(self) -> list[Game]:
        return [copy.deepcopy(g) for g in self._games.values()]


class InMemoryRoundRepository:
    def __init__(self) -> None:
        self._rounds: dict[str, list[Round]] = {}
        self._sequence = 0

    def append_round(self, round_: Round) -> Round:
        self._sequence += 1
        stored = replace(copy.deepcopy(round_), order_key=f"{self._sequence:010d}")
        self._rounds.setdefault(round_.game_id, []).append(stored)
        return copy.deepcopy(stored)

    def update_round(self, round_: Round) -> None:
        rounds = self._rounds.get(round_.game_id, [])
        for i, existing in enumerate(rounds):
            if existing.round_id == round_.round_id:
                rounds[i] = replace(copy.deepcopy(round_), order_key=existing.order_key)
                return
        raise ValueError(f"Round not found: {round_.round_id}")

    def get_round(self, game_id: str, round_id: str) -> Round | None:
        for round_ in self._rounds.get(game_id, []):
            if round_.round_id == round_id:
                return copy.deepcopy(round_)
        return None

    def list_rounds(self, game_id: str) -> list[Round]:
        return [copy.deepcopy(r) for r in self._rounds.get(game_id, [])]


class InMemoryUserRepository:
    def __init__(self) -> None:
        self._users: dict[str, dict] = {}

    def get_user(self, user_id: str) -> dict | None:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None

    def save_user(self, user: dict) -> None:
        self._users[user["userId"]] = copy.deepcopy(user)
