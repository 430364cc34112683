"""AWS Lambda entry point for the Marriage scorekeeper bot.

Receives Telegram webhook updates through API Gateway and hands them to
the bot router. Scoring lives in marriage/game/, chat handling in
marriage/bot/.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

logger = logging.getLogger("marriage.handler")
logger.setLevel(logging.INFO)

SECRET_HEADER = "x-telegram-bot-api-secret-token"

# Module-level deps for Lambda warm starts
_deps = None


def _init_deps(overrides: dict | None = None):
    """Wire repositories, engine and Telegram client once per container."""
    global _deps

    from marriage.bot.deps import Deps

    if overrides:
        _deps = Deps(**overrides)
        return _deps

    from marriage.db.dynamodb import (
        DynamoDBGameRepository,
        DynamoDBRoundRepository,
        DynamoDBUserRepository,
    )
    from marriage.game.engine import GameEngine
    from marriage.utils.telegram import TelegramClient

    game_repo = DynamoDBGameRepository()
    round_repo = DynamoDBRoundRepository()
    _deps = Deps(
        engine=GameEngine(game_repo, round_repo),
        game_repo=game_repo,
        round_repo=round_repo,
        user_repo=DynamoDBUserRepository(),
        telegram=TelegramClient(),
    )
    logger.info("Dependencies initialized")
    return _deps


def _secret_ok(headers: dict) -> bool:
    expected = os.environ.get("WEBHOOK_SECRET", "")
    if not expected:
        return True
    # REST APIs keep the sender's header casing, HTTP APIs lowercase it
    received = {k.lower(): v for k, v in headers.items()}.get(SECRET_HEADER, "")
    return received == expected


def lambda_handler(event: dict, context: Any = None) -> dict:
    """Handle one Telegram update. Telegram gets 200 unless the request is bogus."""
    if not _secret_ok(event.get("headers") or {}):
        logger.warning("Invalid webhook secret")
        return {"statusCode": 403, "body": "Forbidden"}

    try:
        update = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError:
        return {"statusCode": 400, "body": "Invalid JSON"}

    logger.info(
        json.dumps({"event": "webhook_received", "update_id": update.get("update_id")})
    )

    try:
        deps = _deps or _init_deps()

        from marriage.bot.router import route_update

        route_update(update, deps)
    except Exception:
        # A failing update must not make Telegram redeliver it forever
        logger.exception("Error processing update %s", update.get("update_id"))

    return {"statusCode": 200, "body": json.dumps({"ok": True})}
