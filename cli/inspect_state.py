"""Inspect and validate a saved game snapshot.

The snapshot is a JSON object {"game": {...}, "rounds": [{...}, ...]} using
the same keys as the stored items.

Usage:
  python -m cli.inspect_state --file game_snapshot.json
  python -m cli.inspect_state --file game_snapshot.json --show board
  python -m cli.inspect_state --file game_snapshot.json --show history
  python -m cli.inspect_state --file game_snapshot.json --validate
"""

from __future__ import annotations

import argparse
import json
import sys

from marriage.game.integrity import validate_game_integrity
from marriage.game.models import Game, Round
from marriage.game.session import GameSession


def load_session(file_path: str) -> GameSession:
    with open(file_path) as f:
        data = json.load(f)
    game = Game.from_dict(data["game"])
    rounds = [Round.from_dict(r) for r in data.get("rounds", [])]
    rounds.sort(key=lambda r: r.order_key)
    return GameSession(game=game, rounds=rounds)


def inspect_state(file_path: str, show: str | None, validate: bool) -> None:
    session = load_session(file_path)
    game = session.game

    if validate:
        errors = validate_game_integrity(game, session.rounds)
        if errors:
            print("Integrity errors:")
            for e in errors:
                print(f"  - {e}")
            sys.exit(1)
        else:
            print("State is valid ✓")
        return

    if show == "board":
        title = "Final leaderboard" if game.is_done else "Leaderboard"
        print(f"{title}:")
        for i, entry in enumerate(session.leaderboard, 1):
            print(f"  {i}. {entry.name}: {entry.score:+.2f}")
        if game.is_done and session.live_leaderboard != session.leaderboard:
            print("  (rounds no longer add up to the frozen leaderboard)")
        return

    if show == "history":
        if not session.rounds:
            print("No rounds")
            return
        for i, round_ in enumerate(session.rounds, 1):
            scores = ", ".join(
                f"{name} {'N/A' if round_.is_inactive(name) else f'{score:+.2f}'}"
                for name, score in round_.scores.items()
            )
            print(
                f"  #{i} [{round_.round_id[:8]}] {round_.showed_player} showed "
                f"@ {round_.per_point_value:.2f}: {scores}"
            )
        return

    # Default: full dump
    print(f"Game ID: {game.game_id}")
    print(f"Name: {game.name} (code {game.code})")
    print(f"Status: {game.status}")
    print(f"Point value: {game.per_point_value:.2f}")
    print(f"Players: {', '.join(game.player_names)}")
    print(f"Rounds: {len(session.rounds)}")
    print(f"Watchers: {len(game.watchers)}")
    print(f"Updated: {game.updated_at}")
    if game.finished_at:
        print(f"Finished: {game.finished_at}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect a Marriage game snapshot")
    parser.add_argument("--file", required=True, help="Path to game snapshot JSON")
    parser.add_argument("--show", choices=["board", "history"], help="What to show")
    parser.add_argument("--validate", action="store_true", help="Validate integrity")
    args = parser.parse_args()
    inspect_state(args.file, args.show, args.validate)


if __name__ == "__main__":
    main()
