"""Random utilities for Marriage scorekeeping."""

from __future__ import annotations

import random
import secrets

from marriage.utils.constants import GAME_CODE_ALPHABET, GAME_CODE_LENGTH


def create_rng(seed: int | None = None) -> random.Random:
    """Create a Random instance.

    If seed is provided, returns a deterministic Random (for tests/simulation).
    If seed is None, returns SystemRandom.
    """
    if seed is not None:
        return random.Random(seed)
    return secrets.SystemRandom()


def generate_game_code(
    rng: random.Random | None = None, length: int = GAME_CODE_LENGTH
) -> str:
    """Generate a human-readable share code for a game, e.g. "K7Q2ZD"."""
    rng = rng or secrets.SystemRandom()
    return "".join(rng.choice(GAME_CODE_ALPHABET) for _ in range(length))
