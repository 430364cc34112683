"""Update router: dispatches Telegram updates to handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from marriage.bot.deps import Deps

logger = logging.getLogger("marriage.router")

# my_chat_member statuses meaning the bot can no longer message the chat
GONE_STATUSES = ("kicked", "left")


def route_update(update: dict, deps: Deps) -> None:
    """Route a Telegram update to the appropriate handler."""
    from marriage.bot.callbacks import handle_callback
    from marriage.bot.commands import handle_command

    if "callback_query" in update:
        cq = update["callback_query"]
        handle_callback(
            str(cq["from"]["id"]),
            str(cq["message"]["chat"]["id"]),
            cq["message"]["message_id"],
            cq.get("data", ""),
            cq["id"],
            deps,
        )
        return

    if "my_chat_member" in update:
        _chat_member_changed(update["my_chat_member"], deps)
        return

    message = update.get("message")
    if message is None:
        return

    text = message.get("text", "")
    if not text.startswith("/"):
        return

    user_id = str(message["from"]["id"])
    chat_id = str(message["chat"]["id"])

    # "/set@MarriageBot Asha 3 1" -> "/set", "Asha 3 1"
    parts = text.split(None, 1)
    command = parts[0].split("@")[0].lower()
    args = parts[1] if len(parts) > 1 else ""

    logger.debug("Command %s from %s in %s", command, user_id, chat_id)
    handle_command(command, args, user_id, chat_id, deps)


def _chat_member_changed(member_update: dict, deps: Deps) -> None:
    """Stop pushing game updates to a chat that blocked the bot."""
    status = member_update.get("new_chat_member", {}).get("status")
    if status not in GONE_STATUSES:
        return
    chat_id = str(member_update["chat"]["id"])
    for game in deps.engine.list_games():
        if chat_id in game.watchers:
            deps.engine.unwatch(game.game_id, chat_id)
            logger.info("Chat %s stopped following game %s", chat_id, game.game_id)
