"""Command handlers for Telegram bot."""

from __future__ import annotations

import logging
from html import escape
from typing import TYPE_CHECKING

from marriage.bot.drafts import (
    ensure_user,
    get_user_game,
    load_draft,
    render_draft,
    store_draft,
    submit_draft,
)
from marriage.bot.messages import (
    build_done_keyboard,
    build_games_filter_keyboard,
    build_history_keyboard,
    format_game,
    format_games_list,
    format_help,
    format_history,
    format_leaderboard,
    format_round_details,
    format_welcome,
)
from marriage.bot.notifications import notify_game_changed
from marriage.game.draft import RoundDraft
from marriage.utils.constants import (
    FIELD_HANDS,
    FIELD_POWER,
    GAME_STATUSES,
    GAMES_LIST_LIMIT,
    STATUS_ACTIVE,
)

if TYPE_CHECKING:
    from marriage.bot.deps import Deps

logger = logging.getLogger("marriage.commands")

NEWGAME_USAGE = "Usage: /newgame Name | point value | Player 1, Player 2, ..."
SET_USAGE = "Usage: /set &lt;player&gt; &lt;power&gt; &lt;hands&gt;"


def handle_command(
    command: str, args: str, user_id: str, chat_id: str, deps: Deps
) -> None:
    """Dispatch a slash command."""
    handlers = {
        "/start": _cmd_start,
        "/help": _cmd_help,
        "/newgame": _cmd_newgame,
        "/join": _cmd_join,
        "/games": _cmd_games,
        "/game": _cmd_game,
        "/addplayer": _cmd_addplayer,
        "/pointvalue": _cmd_pointvalue,
        "/round": _cmd_round,
        "/set": _cmd_set,
        "/edit": _cmd_edit,
        "/save": _cmd_save,
        "/cancel": _cmd_cancel,
        "/board": _cmd_board,
        "/history": _cmd_history,
        "/done": _cmd_done,
    }
    handler = handlers.get(command)
    if handler is None:
        deps.telegram.send_message(chat_id, "Unknown command. Use /help.")
        return
    handler(args, user_id, chat_id, deps)


def _follow_game(user_id: str, chat_id: str, game_id: str, deps: Deps) -> None:
    user = ensure_user(user_id, chat_id, deps)
    previous = user.get("currentGameId")
    if previous and previous != game_id:
        deps.engine.unwatch(previous, chat_id)
    user["currentGameId"] = game_id
    user["draft"] = None
    deps.user_repo.save_user(user)
    deps.engine.watch(game_id, chat_id)


def _cmd_start(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    ensure_user(user_id, chat_id, deps)
    deps.telegram.send_message(chat_id, format_welcome())


def _cmd_help(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    deps.telegram.send_message(chat_id, format_help())


def _cmd_newgame(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    parts = [p.strip() for p in args.split("|")]
    if len(parts) != 3:
        deps.telegram.send_message(chat_id, NEWGAME_USAGE)
        return
    name, point_value, players = parts
    player_names = [p for p in (s.strip() for s in players.split(",")) if p]

    result = deps.engine.create_game(
        name, player_names, point_value, created_by=user_id
    )
    if not result.success:
        deps.telegram.send_message(chat_id, f"Error: {result.error}")
        return
    game = result.game
    assert game is not None
    _follow_game(user_id, chat_id, game.game_id, deps)
    deps.telegram.send_message(
        chat_id,
        f"Game created! Share the code <code>{game.code}</code> "
        f"so others can /join.\n\n{format_game(game)}",
    )


def _cmd_join(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    code = args.strip().upper()
    if not code:
        deps.telegram.send_message(chat_id, "Usage: /join CODE")
        return
    game = deps.engine.find_game_by_code(code)
    if game is None:
        deps.telegram.send_message(chat_id, "Error: Game not found")
        return
    _follow_game(user_id, chat_id, game.game_id, deps)
    deps.telegram.send_message(
        chat_id,
        f"{format_game(game)}\n\n"
        f"{format_leaderboard(game, deps.engine.get_leaderboard(game.game_id))}",
    )


def _cmd_games(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    tokens = args.split()
    status = STATUS_ACTIVE
    if tokens and tokens[0].lower() in GAME_STATUSES:
        status = tokens.pop(0).lower()
    query = " ".join(tokens)
    games = deps.engine.list_games(status=status, query=query)[:GAMES_LIST_LIMIT]
    deps.telegram.send_message(
        chat_id,
        format_games_list(games, status),
        reply_markup=build_games_filter_keyboard(status),
    )


def _cmd_game(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    deps.telegram.send_message(
        chat_id,
        f"{format_game(game)}\n\n"
        f"{format_leaderboard(game, deps.engine.get_leaderboard(game.game_id))}",
    )


def _cmd_addplayer(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    name = args.strip()
    if not name:
        deps.telegram.send_message(chat_id, "Usage: /addplayer Name")
        return
    result = deps.engine.add_player(game.game_id, name)
    if not result.success:
        deps.telegram.send_message(chat_id, f"Error: {result.error}")
        return
    assert result.game is not None
    summary = f"Player {escape(name)} added. They can join from the next round."
    deps.telegram.send_message(chat_id, summary)
    notify_game_changed(result.game, summary, deps, exclude_chat=chat_id)


def _cmd_pointvalue(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    if not args.strip():
        deps.telegram.send_message(
            chat_id, f"Point value: {game.per_point_value:.2f}\nUsage: /pointvalue 0.25"
        )
        return
    result = deps.engine.update_point_value(game.game_id, args.strip())
    if not result.success:
        deps.telegram.send_message(chat_id, f"Error: {result.error}")
        return
    assert result.game is not None
    summary = (
        f"Point value is now {result.game.per_point_value:.2f} for new rounds."
    )
    deps.telegram.send_message(chat_id, summary)
    notify_game_changed(result.game, summary, deps, exclude_chat=chat_id)


def _cmd_round(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    if game.is_done:
        deps.telegram.send_message(chat_id, "Error: The game is done.")
        return
    draft = RoundDraft.for_new_round(game)
    store_draft(user_id, draft, deps)
    text, keyboard = render_draft(game, draft, deps)
    deps.telegram.send_message(chat_id, text, reply_markup=keyboard)


def _cmd_set(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    draft = load_draft(user_id, deps)
    if draft is None:
        deps.telegram.send_message(chat_id, "No round in progress. Use /round first.")
        return

    # Names may contain spaces: the last two tokens are power and hands
    tokens = args.split()
    if len(tokens) < 3:
        deps.telegram.send_message(chat_id, SET_USAGE)
        return
    power, hands = tokens[-2], tokens[-1]
    name = game.resolve_player(" ".join(tokens[:-2]))
    if name is None or (draft.round_id and name not in draft.inputs):
        deps.telegram.send_message(chat_id, f"Error: Unknown player {escape(' '.join(tokens[:-2]))}")
        return
    if draft.is_inactive(name):
        deps.telegram.send_message(chat_id, f"Error: {escape(name)} is sitting out this round")
        return
    if not (
        draft.set_input(name, FIELD_POWER, power)
        and draft.set_input(name, FIELD_HANDS, hands)
    ):
        deps.telegram.send_message(
            chat_id, "Error: Power and hands must be non-negative numbers"
        )
        return

    store_draft(user_id, draft, deps)
    text, keyboard = render_draft(game, draft, deps)
    deps.telegram.send_message(chat_id, text, reply_markup=keyboard)


def _cmd_edit(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    open_edit_draft(game.game_id, args.strip(), user_id, chat_id, deps)


def open_edit_draft(
    game_id: str, number_text: str, user_id: str, chat_id: str, deps: Deps
) -> None:
    """Start editing saved round ``number_text`` (1-based)."""
    session = deps.engine.get_session(game_id)
    if session is None:
        deps.telegram.send_message(chat_id, "Game not found.")
        return
    if session.game.is_done:
        deps.telegram.send_message(chat_id, "Error: The game is done.")
        return
    try:
        number = int(number_text)
    except ValueError:
        deps.telegram.send_message(chat_id, "Usage: /edit &lt;round number&gt;")
        return
    round_ = session.get_round_by_number(number)
    if round_ is None:
        deps.telegram.send_message(chat_id, f"Error: No round #{number}")
        return
    draft = RoundDraft.for_edit(session.game, round_)
    store_draft(user_id, draft, deps)
    text, keyboard = render_draft(session.game, draft, deps)
    deps.telegram.send_message(chat_id, text, reply_markup=keyboard)


def _cmd_save(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    success, text = submit_draft(user_id, chat_id, deps)
    deps.telegram.send_message(chat_id, text if success else f"Error: {text}")


def _cmd_cancel(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    if load_draft(user_id, deps) is None:
        deps.telegram.send_message(chat_id, "Nothing to cancel.")
        return
    store_draft(user_id, None, deps)
    deps.telegram.send_message(chat_id, "Round discarded.")


def _cmd_board(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    entries = deps.engine.get_leaderboard(game.game_id)
    deps.telegram.send_message(chat_id, format_leaderboard(game, entries))


def _cmd_history(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    session = deps.engine.get_session(game.game_id)
    assert session is not None

    if args.strip():
        try:
            number = int(args.strip())
        except ValueError:
            deps.telegram.send_message(chat_id, "Usage: /history [round number]")
            return
        round_ = session.get_round_by_number(number)
        if round_ is None:
            deps.telegram.send_message(chat_id, f"Error: No round #{number}")
            return
        deps.telegram.send_message(
            chat_id, format_round_details(session.game, round_, number)
        )
        return

    deps.telegram.send_message(
        chat_id,
        format_history(session),
        reply_markup=build_history_keyboard(session),
    )


def _cmd_done(args: str, user_id: str, chat_id: str, deps: Deps) -> None:
    game, error = get_user_game(user_id, deps)
    if error:
        deps.telegram.send_message(chat_id, error)
        return
    assert game is not None
    if game.is_done:
        deps.telegram.send_message(chat_id, "The game is already done.")
        return
    deps.telegram.send_message(
        chat_id,
        f"Finish <b>{escape(game.name)}</b>? The leaderboard will be final.",
        reply_markup=build_done_keyboard(),
    )
