"""Per-user round drafts shared by command and callback handlers.

A user's current game and open draft are kept on their user record, so a
draft survives between webhook invocations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from marriage.bot.messages import (
    build_draft_keyboard,
    format_draft,
    format_leaderboard,
    format_round,
)
from marriage.bot.notifications import notify_watchers
from marriage.game.draft import RoundDraft
from marriage.game.models import Game, Round
from marriage.utils.constants import DRAFT_EDIT

if TYPE_CHECKING:
    from marriage.bot.deps import Deps

logger = logging.getLogger("marriage.drafts")


def ensure_user(user_id: str, chat_id: str, deps: Deps) -> dict:
    user = deps.user_repo.get_user(user_id)
    if user is None:
        user = {"userId": user_id, "chatId": chat_id}
        deps.user_repo.save_user(user)
    return user


def get_user_game(user_id: str, deps: Deps) -> tuple[Game | None, str | None]:
    """Look up the user's current game. Returns (game, error_msg)."""
    user = deps.user_repo.get_user(user_id)
    if user is None:
        return None, "Use /start first."
    game_id = user.get("currentGameId")
    if not game_id:
        return None, "You are not following a game. Use /newgame or /join."
    game = deps.engine.get_game(game_id)
    if game is None:
        return None, "Game not found."
    return game, None


def load_draft(user_id: str, deps: Deps) -> RoundDraft | None:
    user = deps.user_repo.get_user(user_id)
    if not user or not user.get("draft"):
        return None
    draft = RoundDraft.from_dict(user["draft"])
    # A draft only belongs to the game it was started for
    if draft.game_id != user.get("currentGameId"):
        return None
    return draft


def store_draft(user_id: str, draft: RoundDraft | None, deps: Deps) -> None:
    user = deps.user_repo.get_user(user_id)
    if user is None:
        return
    user["draft"] = draft.to_dict() if draft else None
    deps.user_repo.save_user(user)


def draft_round(game: Game, draft: RoundDraft, deps: Deps) -> tuple[Round | None, int | None]:
    """The saved round an edit draft refers to, with its 1-based number."""
    if not draft.round_id:
        return None, None
    session = deps.engine.get_session(game.game_id)
    if session is None:
        return None, None
    for i, round_ in enumerate(session.rounds, 1):
        if round_.round_id == draft.round_id:
            return round_, i
    return None, None


def render_draft(game: Game, draft: RoundDraft, deps: Deps) -> tuple[str, dict]:
    round_, number = draft_round(game, draft, deps)
    text = format_draft(game, draft, round_=round_, round_number=number)
    return text, build_draft_keyboard(game, draft)


def submit_draft(
    user_id: str, chat_id: str, deps: Deps
) -> tuple[bool, str]:
    """Save (or apply the edit of) the user's draft. Returns (success, message)."""
    game, error = get_user_game(user_id, deps)
    if error:
        return False, error
    assert game is not None
    draft = load_draft(user_id, deps)
    if draft is None:
        return False, "No round in progress. Use /round first."

    raw_inputs = draft.raw_inputs(game.player_names)
    if draft.round_id:
        result = deps.engine.edit_round(
            game.game_id,
            draft.round_id,
            draft.showed_index,
            draft.inactive_players,
            raw_inputs,
            edited_by=user_id,
        )
    else:
        result = deps.engine.save_round(
            game.game_id,
            draft.showed_index,
            draft.inactive_players,
            raw_inputs,
            saved_by=user_id,
        )
    if not result.success:
        return False, result.error or "Error"

    store_draft(user_id, None, deps)
    saved_game = result.game
    assert saved_game is not None and result.round is not None
    session = deps.engine.get_session(saved_game.game_id)
    assert session is not None
    number = session.round_number(result.round.round_id) or len(session.rounds)

    verb = "updated" if draft.mode == DRAFT_EDIT else "saved"
    text = (
        f"Round #{number} {verb}.\n"
        f"{format_round(saved_game, result.round, number)}\n\n"
        f"{format_leaderboard(saved_game, session.leaderboard)}"
    )
    notify_watchers(saved_game, text, deps, exclude_chat=chat_id)
    logger.info("Round %s %s by %s", result.round.round_id, verb, user_id)
    return True, text
