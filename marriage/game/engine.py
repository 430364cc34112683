"""Game engine for Marriage: orchestrates games, rounds and edits."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from marriage.db.repository import GameRepository, RoundRepository
from marriage.game.leaderboard import aggregate
from marriage.game.models import Game, LeaderboardEntry, Round
from marriage.game.rounds import edit_round, new_round, round_player_names
from marriage.game.session import GameSession
from marriage.game.validator import (
    validate_game_name,
    validate_new_player,
    validate_point_value,
    validate_roster,
    validate_round_config,
)
from marriage.utils.constants import STATUS_ACTIVE, STATUS_DONE
from marriage.utils.crypto import create_rng, generate_game_code

logger = logging.getLogger("marriage.engine")


@dataclass
class ActionResult:
    success: bool
    game: Game | None
    error: str | None = None
    round: Round | None = None
    events: list[dict] = field(default_factory=list)


class GameEngine:
    """Stateless game engine. All state lives in the repositories."""

    def __init__(
        self,
        game_repo: GameRepository,
        round_repo: RoundRepository,
        rng: random.Random | None = None,
    ) -> None:
        self._games = game_repo
        self._rounds = round_repo
        self._rng = rng or create_rng()

    # --- Games ---

    def create_game(
        self,
        name: str,
        player_names: list[str],
        per_point_value: Any,
        created_by: str = "",
    ) -> ActionResult:
        """Create a new active game with a fresh share code."""
        names = [n.strip() for n in player_names]
        for result in (
            validate_game_name(name),
            validate_roster(names),
            validate_point_value(per_point_value),
        ):
            if not result.valid:
                return ActionResult(success=False, game=None, error=result.error)

        now = self._now()
        game = Game(
            game_id=Game.new_game_id(),
            name=name.strip(),
            code=self._unique_code(),
            player_names=names,
            per_point_value=float(per_point_value),
            status=STATUS_ACTIVE,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self._games.save_game(game)
        game = self._games.get_game(game.game_id)

        event = {
            "event": "game_created",
            "game_id": game.game_id,
            "code": game.code,
            "players": game.player_names,
            "per_point_value": game.per_point_value,
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def get_game(self, game_id: str) -> Game | None:
        return self._games.get_game(game_id)

    def find_game_by_code(self, code: str) -> Game | None:
        return self._games.get_game_by_code(code.strip().upper())

    def list_games(self, status: str | None = None, query: str = "") -> list[Game]:
        """Games filtered by status and a name/code search, most recently updated first."""
        needle = query.strip().lower()
        games = [
            g
            for g in self._games.list_games()
            if (status is None or g.status == status)
            and (needle in g.name.lower() or needle in g.code.lower())
        ]
        games.sort(key=lambda g: g.updated_at, reverse=True)
        return games

    def add_player(self, game_id: str, name: str) -> ActionResult:
        """Add a player; they take part from the next round on."""
        game, error = self._load_active(game_id)
        if error:
            return ActionResult(success=False, game=game, error=error)

        result = validate_new_player(game, name)
        if not result.valid:
            return ActionResult(success=False, game=game, error=result.error)

        game.player_names.append(name.strip())
        game.updated_at = self._now()
        self._games.save_game(game)
        game = self._games.get_game(game_id)

        event = {
            "event": "player_added",
            "game_id": game_id,
            "player": name.strip(),
            "players_count": len(game.player_names),
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def update_point_value(self, game_id: str, value: Any) -> ActionResult:
        """Change the point value for future rounds. Saved rounds keep theirs."""
        game, error = self._load_active(game_id)
        if error:
            return ActionResult(success=False, game=game, error=error)

        result = validate_point_value(value)
        if not result.valid:
            return ActionResult(success=False, game=game, error=result.error)

        previous = game.per_point_value
        game.per_point_value = float(value)
        game.updated_at = self._now()
        self._games.save_game(game)
        game = self._games.get_game(game_id)

        event = {
            "event": "point_value_updated",
            "game_id": game_id,
            "previous": previous,
            "per_point_value": game.per_point_value,
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def mark_done(self, game_id: str) -> ActionResult:
        """Finish the game and freeze its leaderboard."""
        game, error = self._load_active(game_id)
        if error:
            return ActionResult(success=False, game=game, error=error)

        leaderboard = aggregate(game.player_names, self._rounds.list_rounds(game_id))
        now = self._now()
        game.status = STATUS_DONE
        game.final_leaderboard = leaderboard
        game.finished_at = now
        game.updated_at = now
        self._games.save_game(game)
        game = self._games.get_game(game_id)

        event = {
            "event": "game_done",
            "game_id": game_id,
            "final_leaderboard": [e.to_dict() for e in leaderboard],
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def watch(self, game_id: str, chat_id: str) -> ActionResult:
        """Subscribe a chat to pushed updates for a game."""
        game = self._games.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")
        if chat_id not in game.watchers:
            game.watchers.append(chat_id)
            self._games.save_game(game)
            game = self._games.get_game(game_id)
        return ActionResult(success=True, game=game)

    def unwatch(self, game_id: str, chat_id: str) -> ActionResult:
        game = self._games.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")
        if chat_id in game.watchers:
            game.watchers.remove(chat_id)
            self._games.save_game(game)
            game = self._games.get_game(game_id)
        return ActionResult(success=True, game=game)

    # --- Rounds ---

    def save_round(
        self,
        game_id: str,
        showed_index: int,
        inactive_players: Iterable[str],
        raw_inputs: Mapping[str, Any],
        saved_by: str = "",
    ) -> ActionResult:
        """Score and append a new round at the game's current point value."""
        game, error = self._load_active(game_id)
        if error:
            return ActionResult(success=False, game=game, error=error)

        inactive = list(inactive_players)
        result = validate_round_config(game.player_names, showed_index, inactive)
        if not result.valid:
            return ActionResult(success=False, game=game, error=result.error)

        now = self._now()
        round_ = new_round(
            game, showed_index, inactive, raw_inputs, saved_by=saved_by, now=now
        )
        round_ = self._rounds.append_round(round_)
        game = self._touch(game, now)

        event = {
            "event": "round_saved",
            "game_id": game_id,
            "round_id": round_.round_id,
            "showed": round_.showed_player,
            "inactive": round_.inactive_players,
            "per_point_value": round_.per_point_value,
            "scores": round_.scores,
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, round=round_, events=[event])

    def edit_round(
        self,
        game_id: str,
        round_id: str,
        showed_index: int,
        inactive_players: Iterable[str],
        raw_inputs: Mapping[str, Any],
        edited_by: str = "",
    ) -> ActionResult:
        """Re-score a saved round in place. History order never changes."""
        game, error = self._load_active(game_id)
        if error:
            return ActionResult(success=False, game=game, error=error)

        existing = self._rounds.get_round(game_id, round_id)
        if existing is None:
            return ActionResult(success=False, game=game, error="Round not found")

        names = round_player_names(game, existing)
        inactive = list(inactive_players)
        result = validate_round_config(game.player_names, showed_index, inactive)
        if not result.valid:
            return ActionResult(success=False, game=game, error=result.error)
        if game.player_names[showed_index] not in names:
            return ActionResult(
                success=False,
                game=game,
                error=f"{game.player_names[showed_index]} did not play this round",
            )

        now = self._now()
        updated = edit_round(game, existing, showed_index, inactive, raw_inputs, now=now)
        self._rounds.update_round(updated)
        game = self._touch(game, now)

        event = {
            "event": "round_edited",
            "game_id": game_id,
            "round_id": round_id,
            "edited_by": edited_by,
            "showed": updated.showed_player,
            "previous_scores": existing.scores,
            "scores": updated.scores,
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, round=updated, events=[event])

    def get_rounds(self, game_id: str) -> list[Round]:
        return self._rounds.list_rounds(game_id)

    def get_session(self, game_id: str) -> GameSession | None:
        game = self._games.get_game(game_id)
        if game is None:
            return None
        return GameSession(game=game, rounds=self._rounds.list_rounds(game_id))

    def get_leaderboard(self, game_id: str) -> list[LeaderboardEntry]:
        """Frozen snapshot for finished games, live totals otherwise."""
        session = self.get_session(game_id)
        if session is None:
            return []
        return session.leaderboard

    # --- Helpers ---

    def _load_active(self, game_id: str) -> tuple[Game | None, str | None]:
        game = self._games.get_game(game_id)
        if game is None:
            return None, "Game not found"
        if game.is_done:
            return game, "The game is done and can no longer be changed"
        return game, None

    def _touch(self, game: Game, now: str) -> Game:
        # Parent "lastUpdated" marker for pollers; retry once on a racing writer
        game.updated_at = now
        try:
            self._games.save_game(game)
        except ValueError:
            fresh = self._games.get_game(game.game_id)
            if fresh is None:
                raise
            fresh.updated_at = now
            self._games.save_game(fresh)
        return self._games.get_game(game.game_id)

    def _unique_code(self) -> str:
        while True:
            code = generate_game_code(self._rng)
            if self._games.get_game_by_code(code) is None:
                return code

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
