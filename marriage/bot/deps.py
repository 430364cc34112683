"""Dependency container for bot handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from marriage.db.repository import (
        GameRepository,
        RoundRepository,
        UserRepository,
    )
    from marriage.game.engine import GameEngine
    from marriage.utils.telegram import TelegramClient


@dataclass
class Deps:
    """Bundles all dependencies for handler functions."""

    engine: GameEngine
    game_repo: GameRepository
    round_repo: RoundRepository
    user_repo: UserRepository
    telegram: TelegramClient
