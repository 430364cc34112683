"""Simulate Marriage games with random rounds and edits.

Usage: python -m cli.simulate --games 100 --players 4 [--rounds 20] [--seed 42] [--verbose]
"""

from __future__ import annotations

import argparse
import random
import time

from marriage.db.memory import InMemoryGameRepository, InMemoryRoundRepository
from marriage.game.engine import ActionResult, GameEngine
from marriage.game.integrity import validate_game_integrity
from marriage.game.models import Game
from marriage.game.rounds import round_player_names
from marriage.utils.constants import MAX_PLAYERS, MIN_PLAYERS
from marriage.utils.crypto import create_rng

POINT_VALUES = [0.1, 0.25, 0.5, 1.0, 2.0]


def random_round_args(
    game: Game, names: list[str], rng: random.Random
) -> tuple[int, list[str], dict[str, dict]]:
    """Pick a showed player, some sitting out, and random power/hands."""
    showed = rng.choice(names)
    others = [n for n in names if n != showed]
    # Keep at least one opponent in play most of the time
    inactive = [n for n in others if rng.random() < 0.15]
    raw_inputs = {
        name: {
            "power": rng.choice(["", "0", "3", "5", "7.5", str(rng.randint(0, 20))]),
            "hands": rng.choice(["", "0", "1", "2", str(rng.randint(0, 8))]),
        }
        for name in names
    }
    return game.player_names.index(showed), inactive, raw_inputs


def random_action(
    engine: GameEngine, game: Game, rng: random.Random
) -> tuple[str, ActionResult]:
    rounds = engine.get_rounds(game.game_id)
    roll = rng.random()

    if rounds and roll < 0.2:
        round_ = rng.choice(rounds)
        names = round_player_names(game, round_)
        showed_index, inactive, raw_inputs = random_round_args(game, names, rng)
        return "edit", engine.edit_round(
            game.game_id, round_.round_id, showed_index, inactive, raw_inputs
        )
    if roll < 0.25 and len(game.player_names) < MAX_PLAYERS:
        name = f"Late{len(game.player_names) + 1}"
        return "add", engine.add_player(game.game_id, name)
    if roll < 0.3:
        return "ppv", engine.update_point_value(game.game_id, rng.choice(POINT_VALUES))

    showed_index, inactive, raw_inputs = random_round_args(
        game, game.player_names, rng
    )
    return "round", engine.save_round(
        game.game_id, showed_index, inactive, raw_inputs
    )


def simulate_game(
    num_players: int, num_rounds: int, rng: random.Random, verbose: bool = False
) -> dict:
    """Simulate one complete game. Returns stats dict."""
    engine = GameEngine(InMemoryGameRepository(), InMemoryRoundRepository(), rng)

    player_names = [f"P{i + 1}" for i in range(num_players)]
    result = engine.create_game("sim", player_names, rng.choice(POINT_VALUES))
    if not result.success:
        return {"error": result.error, "actions": 0}
    game = result.game
    assert game is not None

    actions: dict[str, int] = {}
    step = 0
    while len(engine.get_rounds(game.game_id)) < num_rounds:
        kind, result = random_action(engine, game, rng)
        step += 1
        if not result.success:
            return {"error": f"{kind}: {result.error}", "actions": step}
        assert result.game is not None
        game = result.game
        actions[kind] = actions.get(kind, 0) + 1

        errors = validate_game_integrity(game, engine.get_rounds(game.game_id))
        if errors:
            return {"error": f"Integrity: {errors}", "actions": step}

        if verbose and step % 50 == 0:
            print(f"  Step {step}, rounds {len(engine.get_rounds(game.game_id))}")

    live = engine.get_leaderboard(game.game_id)
    result = engine.mark_done(game.game_id)
    if not result.success:
        return {"error": result.error, "actions": step}
    assert result.game is not None
    game = result.game

    errors = validate_game_integrity(game, engine.get_rounds(game.game_id))
    if errors:
        return {"error": f"Integrity: {errors}", "actions": step}
    if game.final_leaderboard != live:
        return {"error": "Final leaderboard differs from live totals", "actions": step}

    leader = live[0]
    return {
        "leader": leader.name,
        "leader_score": leader.score,
        "actions": actions,
        "players": len(game.player_names),
        "error": None,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Marriage scoring simulator")
    parser.add_argument("--games", type=int, default=100)
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        choices=range(MIN_PLAYERS, MAX_PLAYERS + 1),
    )
    parser.add_argument("--rounds", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    base_seed = args.seed if args.seed is not None else int(time.time())
    n, p = args.games, args.players
    print(f"Simulating {n} games with {p} players (base seed: {base_seed})")

    errors = 0
    totals: dict[str, int] = {}
    best = 0.0

    for i in range(args.games):
        rng = create_rng(base_seed + i)
        result = simulate_game(args.players, args.rounds, rng, verbose=args.verbose)

        if result.get("error"):
            errors += 1
            print(f"  Game {i + 1} (seed {base_seed + i}): ERROR - {result['error']}")
            continue

        for kind, count in result["actions"].items():
            totals[kind] = totals.get(kind, 0) + count
        best = max(best, result["leader_score"])

        if args.verbose:
            print(
                f"  Game {i + 1}: leader={result['leader']} "
                f"({result['leader_score']:+.2f}), players={result['players']}"
            )

        if (i + 1) % 100 == 0 and not args.verbose:
            print(f"  {i + 1}/{args.games} done...")

    completed = args.games - errors
    print("\nResults:")
    print(f"  Games completed: {completed}/{args.games}")
    print(f"  Errors: {errors}")
    if completed > 0:
        print(f"  Actions: {totals}")
        print(f"  Best final score: {best:+.2f}")


if __name__ == "__main__":
    main()
