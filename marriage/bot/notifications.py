"""Game update notifications: messages pushed after state-changing actions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from marriage.bot.messages import format_game, format_leaderboard
from marriage.game.models import Game

if TYPE_CHECKING:
    from marriage.bot.deps import Deps

logger = logging.getLogger("marriage.notifications")


def notify_watchers(
    game: Game,
    text: str,
    deps: Deps,
    exclude_chat: str | None = None,
) -> int:
    """Send ``text`` to every chat following the game. Returns the number sent."""
    sent = 0
    for chat_id in game.watchers:
        if chat_id == exclude_chat:
            continue
        deps.telegram.send_message(chat_id, text)
        sent += 1
    if sent:
        logger.info("Pushed update for game %s to %d chats", game.game_id, sent)
    return sent


def notify_game_changed(
    game: Game, summary: str, deps: Deps, exclude_chat: str | None = None
) -> int:
    """Roster or point value changed: push the new game header."""
    return notify_watchers(
        game, f"{summary}\n\n{format_game(game)}", deps, exclude_chat=exclude_chat
    )


def notify_game_done(game: Game, deps: Deps, exclude_chat: str | None = None) -> int:
    """Push the frozen leaderboard of a finished game."""
    entries = game.final_leaderboard or []
    text = f"<b>Game over!</b>\n\n{format_leaderboard(game, entries)}"
    return notify_watchers(game, text, deps, exclude_chat=exclude_chat)
