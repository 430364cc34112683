"""Interactive CLI scorekeeper for Marriage.

Usage: python -m cli.play --players Asha Bikram Chandra [--point-value 0.5] [--name "Friday game"]
"""

from __future__ import annotations

import argparse

from marriage.db.memory import InMemoryGameRepository, InMemoryRoundRepository
from marriage.game.draft import RoundDraft
from marriage.game.engine import ActionResult, GameEngine
from marriage.game.integrity import validate_game_integrity
from marriage.game.models import Game, LeaderboardEntry, Round
from marriage.game.rounds import round_player_names
from marriage.game.session import GameSession
from marriage.utils.constants import DEFAULT_POINT_VALUE, FIELD_HANDS, FIELD_POWER
from marriage.utils.crypto import create_rng


def money(value: float) -> str:
    return f"{value:+.2f}" if value else "0.00"


def display_leaderboard(game: Game, entries: list[LeaderboardEntry]) -> str:
    title = "Final leaderboard" if game.is_done else "Leaderboard"
    lines = ["", f"  {title}: {game.name} (point value {game.per_point_value:.2f})"]
    for i, entry in enumerate(entries, 1):
        lines.append(f"    {i}. {entry.name:<16} {money(entry.score):>10}")
    lines.append("")
    return "\n".join(lines)


def display_history(session: GameSession) -> str:
    if not session.rounds:
        return "  (no rounds yet)"
    names = session.game.player_names
    header = "  #   " + "".join(f"{n[:10]:>12}" for n in names)
    lines = [header]
    for i, round_ in enumerate(session.rounds, 1):
        cells = []
        for name in names:
            if round_.is_inactive(name) or name not in round_.round_details:
                cells.append(f"{'N/A':>12}")
            else:
                cells.append(f"{money(round_.scores.get(name, 0.0)):>12}")
        lines.append(f"  {i:<3} " + "".join(cells) + f"   ({round_.showed_player} showed)")
    return "\n".join(lines)


def display_actions() -> str:
    return "\n".join(
        [
            "  Actions:",
            "    round <showed> [out <name,name>] - Score a new round",
            "    edit <n> <showed> [out <name,name>] - Re-enter round n",
            "    board      - Show the leaderboard",
            "    history    - Show all rounds",
            "    add <name> - Add a player",
            "    ppv <value> - Change the point value",
            "    done       - Finish the game",
            "    quit       - Exit",
            "",
        ]
    )


def parse_round_args(game: Game, parts: list[str]) -> tuple[int, list[str]] | str:
    """Parse "<showed> [out a,b]" into (showed_index, inactive) or an error."""
    if not parts:
        return "Who showed?"
    if "out" in parts:
        idx = parts.index("out")
        showed_str, out_str = " ".join(parts[:idx]), " ".join(parts[idx + 1:])
    else:
        showed_str, out_str = " ".join(parts), ""
    showed = game.resolve_player(showed_str)
    if showed is None:
        return f"Unknown player: {showed_str}"
    inactive = []
    for raw in out_str.split(","):
        if not raw.strip():
            continue
        name = game.resolve_player(raw)
        if name is None:
            return f"Unknown player: {raw.strip()}"
        inactive.append(name)
    return game.player_names.index(showed), inactive


def prompt_inputs(game: Game, draft: RoundDraft, names: list[str]) -> bool:
    """Ask power and hands for every active player. False if interrupted."""
    for name in names:
        if draft.is_inactive(name):
            continue
        current = draft.inputs.get(name)
        hint = f" [{current.power or 0} {current.hands or 0}]" if current else ""
        while True:
            try:
                answer = input(f"    {name} power hands{hint}> ").strip()
            except (EOFError, KeyboardInterrupt):
                return False
            if not answer and current:
                break
            values = answer.split()
            power = values[0] if values else ""
            hands = values[1] if len(values) > 1 else ""
            if draft.set_input(name, FIELD_POWER, power) and draft.set_input(
                name, FIELD_HANDS, hands
            ):
                break
            print("    ✗ Power and hands must be non-negative numbers")
    return True


def play_game(
    name: str, player_names: list[str], point_value: float, seed: int | None = None
) -> None:
    engine = GameEngine(
        InMemoryGameRepository(), InMemoryRoundRepository(), create_rng(seed)
    )
    result = engine.create_game(name, player_names, point_value, created_by="cli")
    if not result.success:
        print(f"  Error: {result.error}")
        return
    game = result.game
    assert game is not None

    print(f"\n  Welcome to Marriage! Game code: {game.code}")
    print(f"  Players: {', '.join(game.player_names)}")
    print(display_actions())

    while True:
        try:
            action_str = input(f"  {game.name}> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n  Bye.")
            return
        if not action_str:
            continue

        parts = action_str.split()
        cmd = parts[0].lower()
        result = None

        if cmd == "quit":
            return
        elif cmd == "board":
            print(display_leaderboard(game, engine.get_leaderboard(game.game_id)))
            continue
        elif cmd == "history":
            session = engine.get_session(game.game_id)
            assert session is not None
            print(display_history(session))
            continue
        elif cmd == "add":
            result = engine.add_player(game.game_id, " ".join(parts[1:]))
        elif cmd == "ppv":
            result = engine.update_point_value(game.game_id, " ".join(parts[1:]))
        elif cmd == "done":
            result = engine.mark_done(game.game_id)
        elif cmd == "round":
            parsed = parse_round_args(game, parts[1:])
            if isinstance(parsed, str):
                print(f"  ✗ {parsed}")
                continue
            draft = RoundDraft.for_new_round(game)
            draft.showed_index, draft.inactive_players = parsed
            if not prompt_inputs(game, draft, game.player_names):
                continue
            result = engine.save_round(
                game.game_id,
                draft.showed_index,
                draft.inactive_players,
                draft.raw_inputs(game.player_names),
                saved_by="cli",
            )
        elif cmd == "edit":
            result = _edit(engine, game, parts[1:])
            if result is None:
                continue
        else:
            print(f"  Unknown command: {cmd}")
            continue

        if not result.success:
            print(f"  ✗ {result.error}")
            continue

        assert result.game is not None
        game = result.game
        if result.round is not None:
            print("  " + " | ".join(f"{n} {money(s)}" for n, s in result.round.scores.items()))

        errors = validate_game_integrity(game, engine.get_rounds(game.game_id))
        if errors:
            print(f"\n  ⚠ INTEGRITY ERROR: {errors}")
            return

        if game.is_done:
            print(display_leaderboard(game, game.final_leaderboard or []))
            return


def _edit(engine: GameEngine, game: Game, parts: list[str]) -> ActionResult | None:
    session = engine.get_session(game.game_id)
    assert session is not None
    try:
        number = int(parts[0])
    except (IndexError, ValueError):
        print("  Usage: edit <n> <showed> [out <name,name>]")
        return None
    round_: Round | None = session.get_round_by_number(number)
    if round_ is None:
        print(f"  ✗ No round #{number}")
        return None
    draft = RoundDraft.for_edit(game, round_)
    if len(parts) > 1:
        parsed = parse_round_args(game, parts[1:])
        if isinstance(parsed, str):
            print(f"  ✗ {parsed}")
            return None
        draft.showed_index, inactive = parsed
        for name in set(inactive) ^ set(draft.inactive_players):
            draft.toggle_inactive(name)
    if not prompt_inputs(game, draft, round_player_names(game, round_)):
        return None
    return engine.edit_round(
        game.game_id,
        round_.round_id,
        draft.showed_index,
        draft.inactive_players,
        draft.raw_inputs(game.player_names),
        edited_by="cli",
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Marriage scorekeeper CLI")
    parser.add_argument("--name", default="Local game")
    parser.add_argument("--players", nargs="+", required=True)
    parser.add_argument("--point-value", type=float, default=DEFAULT_POINT_VALUE)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()
    play_game(args.name, args.players, args.point_value, args.seed)


if __name__ == "__main__":
    main()
