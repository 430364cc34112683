"""Callback query handlers for Telegram bot."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from marriage.bot.commands import open_edit_draft
from marriage.bot.drafts import (
    get_user_game,
    load_draft,
    render_draft,
    store_draft,
    submit_draft,
)
from marriage.bot.messages import (
    build_games_filter_keyboard,
    format_games_list,
    format_leaderboard,
)
from marriage.bot.notifications import notify_game_done
from marriage.utils.constants import GAME_STATUSES, GAMES_LIST_LIMIT

if TYPE_CHECKING:
    from marriage.bot.deps import Deps

logger = logging.getLogger("marriage.callbacks")


def handle_callback(
    user_id: str,
    chat_id: str,
    message_id: int,
    data: str,
    cq_id: str,
    deps: Deps,
) -> None:
    """Dispatch callback query by prefix."""
    prefix = data.split(":")[0]

    dispatch = {
        "draft": _cb_draft,
        "edit": _cb_edit,
        "done": _cb_done,
        "games": _cb_games,
    }

    handler = dispatch.get(prefix)
    if handler is None:
        deps.telegram.answer_callback_query(cq_id, text="Invalid action")
        return

    handler(user_id, chat_id, message_id, data, cq_id, deps)


# --- Round draft ---


def _cb_draft(
    user_id: str,
    chat_id: str,
    message_id: int,
    data: str,
    cq_id: str,
    deps: Deps,
) -> None:
    parts = data.split(":")
    action = parts[1] if len(parts) > 1 else ""

    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.answer_callback_query(cq_id, text=error)
        return
    assert game is not None
    draft = load_draft(user_id, deps)
    if draft is None:
        deps.telegram.answer_callback_query(cq_id, text="No round in progress")
        return

    if action == "save":
        success, text = submit_draft(user_id, chat_id, deps)
        if not success:
            deps.telegram.answer_callback_query(cq_id, text=text, show_alert=True)
            return
        deps.telegram.answer_callback_query(cq_id, text="Saved")
        deps.telegram.edit_message(chat_id, message_id, text)
        return

    if action == "cancel":
        store_draft(user_id, None, deps)
        deps.telegram.answer_callback_query(cq_id)
        deps.telegram.edit_message(chat_id, message_id, "Round discarded.")
        return

    if action in ("show", "inact"):
        try:
            index = int(parts[2])
        except (IndexError, ValueError):
            index = -1
        if not 0 <= index < len(game.player_names):
            deps.telegram.answer_callback_query(cq_id, text="Invalid player")
            return
        name = game.player_names[index]
        if action == "show":
            draft.showed_index = index
        else:
            draft.toggle_inactive(name)
        store_draft(user_id, draft, deps)
    elif action != "refresh":
        deps.telegram.answer_callback_query(cq_id, text="Invalid action")
        return

    deps.telegram.answer_callback_query(cq_id)
    text, keyboard = render_draft(game, draft, deps)
    deps.telegram.edit_message(chat_id, message_id, text, reply_markup=keyboard)


# --- History ---


def _cb_edit(
    user_id: str,
    chat_id: str,
    message_id: int,
    data: str,
    cq_id: str,
    deps: Deps,
) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.answer_callback_query(cq_id, text=error)
        return
    assert game is not None
    deps.telegram.answer_callback_query(cq_id)
    open_edit_draft(game.game_id, data.partition(":")[2], user_id, chat_id, deps)


# --- Finish game ---


def _cb_done(
    user_id: str,
    chat_id: str,
    message_id: int,
    data: str,
    cq_id: str,
    deps: Deps,
) -> None:
    action = data.partition(":")[2]
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.answer_callback_query(cq_id, text=error)
        return
    assert game is not None

    if action == "cancel":
        deps.telegram.answer_callback_query(cq_id)
        deps.telegram.edit_message(chat_id, message_id, "The game goes on.")
        return
    if action != "confirm":
        deps.telegram.answer_callback_query(cq_id, text="Invalid action")
        return

    result = deps.engine.mark_done(game.game_id)
    if not result.success:
        deps.telegram.answer_callback_query(cq_id, text=result.error or "Error")
        return
    done_game = result.game
    assert done_game is not None
    store_draft(user_id, None, deps)
    deps.telegram.answer_callback_query(cq_id, text="Game finished")
    deps.telegram.edit_message(
        chat_id,
        message_id,
        format_leaderboard(done_game, done_game.final_leaderboard or []),
    )
    notify_game_done(done_game, deps, exclude_chat=chat_id)


# --- Games list ---


def _cb_games(
    user_id: str,
    chat_id: str,
    message_id: int,
    data: str,
    cq_id: str,
    deps: Deps,
) -> None:
    status = data.partition(":")[2]
    if status not in GAME_STATUSES:
        deps.telegram.answer_callback_query(cq_id, text="Invalid action")
        return
    games = deps.engine.list_games(status=status)[:GAMES_LIST_LIMIT]
    deps.telegram.answer_callback_query(cq_id)
    deps.telegram.edit_message(
        chat_id,
        message_id,
        format_games_list(games, status),
        reply_markup=build_games_filter_keyboard(status),
    )
