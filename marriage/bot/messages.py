"""Message formatting and keyboard builders for Telegram."""

from __future__ import annotations

from html import escape

from marriage.game.draft import RoundDraft
from marriage.game.models import Game, LeaderboardEntry, Round
from marriage.game.rounds import round_player_names
from marriage.game.session import GameSession
from marriage.utils.constants import (
    FIELD_HANDS,
    FIELD_POWER,
    HANDS_MULTIPLIER,
    MAX_PLAYERS,
    POWER_MULTIPLIER,
    STATUS_ACTIVE,
    STATUS_DONE,
)

# --- Helpers ---


def format_money(value: float) -> str:
    """Signed amount with 2 decimals: +15.00, -5.50, 0.00."""
    if value > 0:
        return f"+{value:.2f}"
    if value < 0:
        return f"{value:.2f}"
    return "0.00"


def _count(value: float) -> str:
    return f"{value:g}"


def _raw(text: str) -> str:
    return escape(text) if text else "0"


# --- Text formatters ---


def format_welcome() -> str:
    return (
        "<b>Marriage Scorekeeper</b>\n\n"
        "Keep score of your Marriage games on Telegram!\n\n"
        "<b>Commands:</b>\n"
        "/newgame Name | 0.5 | A, B, C - Create a game\n"
        "/join &lt;CODE&gt; - Follow a game by its code\n"
        "/games [active|done] [search] - List games\n"
        "/game - Show the current game\n"
        "/round - Score a new round\n"
        "/set &lt;player&gt; &lt;power&gt; &lt;hands&gt; - Enter round inputs\n"
        "/save - Save the round\n"
        "/edit &lt;n&gt; - Edit round n\n"
        "/cancel - Discard the round being entered\n"
        "/board - Leaderboard\n"
        "/history - Round history\n"
        "/addplayer &lt;name&gt; - Add a player\n"
        "/pointvalue &lt;value&gt; - Change the point value\n"
        "/done - Finish the game\n"
        "/help - Scoring rules"
    )


def format_help() -> str:
    return (
        "<b>Marriage scoring</b>\n\n"
        "Each round one player <b>shows</b>. Players can sit a round out; "
        "they neither pay nor receive.\n\n"
        "Every other active player scores:\n"
        f"  - total power x {POWER_MULTIPLIER} x point value\n"
        f"  - own hands x {HANDS_MULTIPLIER} x point value\n"
        f"  + own power x {POWER_MULTIPLIER} x active players x point value\n\n"
        "The showed player collects what everyone else loses, "
        "so every round sums to zero.\n\n"
        f"A game has 2 to {MAX_PLAYERS} players. "
        "Each round keeps the point value it was saved with."
    )


def format_game(game: Game) -> str:
    status = "done" if game.status == STATUS_DONE else "active"
    lines = [
        f"<b>{escape(game.name)}</b> ({status})",
        f"Code: <code>{game.code}</code>",
        f"Point value: {game.per_point_value:.2f}",
        f"Players: {escape(', '.join(game.player_names))}",
    ]
    return "\n".join(lines)


def format_draft(
    game: Game,
    draft: RoundDraft,
    round_: Round | None = None,
    round_number: int | None = None,
) -> str:
    """Draft inputs with a live score preview."""
    if draft.round_id:
        title = f"<b>Editing round #{round_number or '?'}</b>"
    else:
        title = "<b>New round</b>"
    ppv = round_.per_point_value if round_ else game.per_point_value
    names = round_player_names(game, round_) if round_ else game.player_names
    showed = draft.showed_player(game)
    preview = draft.preview(game, round_)

    lines = [f"{title}: {escape(game.name)}", f"Point value: {ppv:.2f}\n"]
    for name in names:
        label = escape(name)
        if draft.is_inactive(name):
            lines.append(f"  {label}: sitting out")
            continue
        inp = draft.inputs.get(name)
        power = _raw(inp.get(FIELD_POWER)) if inp else "0"
        hands = _raw(inp.get(FIELD_HANDS)) if inp else "0"
        marker = " (showed)" if name == showed else ""
        score = format_money(preview.get(name, 0.0))
        lines.append(
            f"  {label}{marker}: power {power}, hands {hands} → {score}"
        )

    if showed is not None and draft.is_inactive(showed):
        lines.append("\nThe showed player cannot sit out the round.")
    lines.append("\nUse /set &lt;player&gt; &lt;power&gt; &lt;hands&gt;, then /save.")
    return "\n".join(lines)


def format_leaderboard(game: Game, entries: list[LeaderboardEntry]) -> str:
    title = "Final leaderboard" if game.status == STATUS_DONE else "Leaderboard"
    lines = [f"<b>{title}</b>: {escape(game.name)}"]
    for i, entry in enumerate(entries, 1):
        lines.append(f"  {i}. {escape(entry.name)}: {format_money(entry.score)}")
    return "\n".join(lines)


def format_round(game: Game, round_: Round, number: int) -> str:
    parts = []
    for name in game.player_names:
        if name not in round_.scores and name not in round_.round_details:
            continue
        if round_.is_inactive(name):
            parts.append(f"{escape(name)} N/A")
        else:
            parts.append(f"{escape(name)} {format_money(round_.scores.get(name, 0.0))}")
    return (
        f"#{number} {escape(round_.showed_player)} showed "
        f"(@{round_.per_point_value:.2f}): " + " | ".join(parts)
    )


def format_history(session: GameSession) -> str:
    if not session.rounds:
        return f"<b>{escape(session.game.name)}</b>: no rounds yet."
    lines = [f"<b>Rounds</b>: {escape(session.game.name)}"]
    for i, round_ in enumerate(session.rounds, 1):
        lines.append(format_round(session.game, round_, i))
    return "\n".join(lines)


def format_round_details(game: Game, round_: Round, number: int) -> str:
    lines = [format_round(game, round_, number)]
    for name, inp in round_.round_details.items():
        if round_.is_inactive(name):
            continue
        lines.append(
            f"  {escape(name)}: power {_count(inp.power)}, hands {_count(inp.hands)}"
        )
    return "\n".join(lines)


def format_games_list(games: list[Game], status: str | None = None) -> str:
    title = {STATUS_ACTIVE: "Active games", STATUS_DONE: "Finished games"}.get(
        status or "", "Games"
    )
    if not games:
        return f"<b>{title}</b>: none found."
    lines = [f"<b>{title}</b>"]
    for game in games:
        lines.append(
            f"  <code>{game.code}</code> {escape(game.name)} "
            f"({len(game.player_names)} players, {game.per_point_value:.2f})"
        )
    lines.append("\nUse /join &lt;CODE&gt; to follow a game.")
    return "\n".join(lines)


# --- Keyboard builders ---


def build_draft_keyboard(game: Game, draft: RoundDraft) -> dict:
    """Pick who showed and toggle who sits out, then save."""
    showed = draft.showed_player(game)
    rows: list[list[dict]] = []
    for i, name in enumerate(game.player_names):
        if draft.round_id and name not in draft.inputs:
            continue
        show_text = f"{'● ' if name == showed else ''}{name}"
        inact_text = "Sitting out" if draft.is_inactive(name) else "Playing"
        rows.append(
            [
                {"text": show_text, "callback_data": f"draft:show:{i}"},
                {"text": inact_text, "callback_data": f"draft:inact:{i}"},
            ]
        )
    rows.append(
        [
            {"text": "Save", "callback_data": "draft:save"},
            {"text": "Refresh", "callback_data": "draft:refresh"},
            {"text": "Cancel", "callback_data": "draft:cancel"},
        ]
    )
    return {"inline_keyboard": rows}


def build_history_keyboard(session: GameSession) -> dict | None:
    """One edit button per round, 4 per row. None when editing is closed."""
    if session.game.is_done or not session.rounds:
        return None
    rows: list[list[dict]] = []
    row: list[dict] = []
    for i in range(1, len(session.rounds) + 1):
        row.append({"text": f"Edit #{i}", "callback_data": f"edit:{i}"})
        if len(row) == 4:
            rows.append(row)
            row = []
    if row:
        rows.append(row)
    return {"inline_keyboard": rows}


def build_done_keyboard() -> dict:
    return {
        "inline_keyboard": [
            [
                {"text": "Yes, finish the game", "callback_data": "done:confirm"},
                {"text": "Cancel", "callback_data": "done:cancel"},
            ]
        ]
    }


def build_games_filter_keyboard(status: str | None) -> dict:
    buttons = []
    for value, label in ((STATUS_ACTIVE, "Active"), (STATUS_DONE, "Done")):
        marker = "● " if value == status else ""
        buttons.append({"text": f"{marker}{label}", "callback_data": f"games:{value}"})
    return {"inline_keyboard": [buttons]}
