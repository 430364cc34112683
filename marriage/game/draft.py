"""Editable round drafts.

A draft buffers what a user is typing for a new round (or an edit of a
saved one) as raw strings, so "", "3." or "." are all legal while typing.
Strings are only turned into numbers when the round is previewed or saved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from marriage.game.models import Game, Round, RoundInput
from marriage.game.rounds import parse_count, round_player_names
from marriage.game.scoring import score_round
from marriage.utils.constants import (
    DRAFT_EDIT,
    DRAFT_NEW,
    FIELD_POWER,
    INPUT_FIELDS,
)

_PARTIAL_NUMBER = re.compile(r"^\d*\.?\d*$")


def is_partial_number(text: str) -> bool:
    """True if ``text`` could be a non-negative number while being typed."""
    return bool(_PARTIAL_NUMBER.match(text))


def _format_count(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return str(value)


@dataclass
class DraftInput:
    power: str = ""
    hands: str = ""

    def get(self, field_name: str) -> str:
        return self.power if field_name == FIELD_POWER else self.hands

    def parsed(self) -> RoundInput:
        return RoundInput(power=parse_count(self.power), hands=parse_count(self.hands))

    def to_dict(self) -> dict:
        return {"power": self.power, "hands": self.hands}

    @classmethod
    def from_dict(cls, d: dict) -> DraftInput:
        return cls(power=str(d.get("power", "")), hands=str(d.get("hands", "")))


@dataclass
class RoundDraft:
    """In-progress round inputs for one game."""

    game_id: str
    showed_index: int = 0
    inactive_players: list[str] = field(default_factory=list)
    inputs: dict[str, DraftInput] = field(default_factory=dict)
    # Set when the draft edits a saved round
    round_id: str | None = None

    @property
    def mode(self) -> str:
        return DRAFT_EDIT if self.round_id else DRAFT_NEW

    @classmethod
    def for_new_round(cls, game: Game) -> RoundDraft:
        return cls(
            game_id=game.game_id,
            inputs={name: DraftInput() for name in game.player_names},
        )

    @classmethod
    def for_edit(cls, game: Game, round_: Round) -> RoundDraft:
        """Prefill a draft from a saved round."""
        names = round_player_names(game, round_)
        showed_index = (
            game.player_names.index(round_.showed_player)
            if round_.showed_player in game.player_names
            else 0
        )
        inputs = {}
        for name in names:
            inp = round_.round_details.get(name, RoundInput())
            inputs[name] = DraftInput(
                power=_format_count(inp.power), hands=_format_count(inp.hands)
            )
        return cls(
            game_id=game.game_id,
            showed_index=showed_index,
            inactive_players=list(round_.inactive_players),
            inputs=inputs,
            round_id=round_.round_id,
        )

    def showed_player(self, game: Game) -> str | None:
        if 0 <= self.showed_index < len(game.player_names):
            return game.player_names[self.showed_index]
        return None

    def is_inactive(self, name: str) -> bool:
        return name in self.inactive_players

    def toggle_inactive(self, name: str) -> None:
        """Flip a player's sit-out flag and clear their inputs."""
        if name in self.inactive_players:
            self.inactive_players.remove(name)
        else:
            self.inactive_players.append(name)
        self.inputs[name] = DraftInput()

    def set_input(self, name: str, field_name: str, text: str) -> bool:
        """Buffer a typed value. Returns False if it contains illegal characters."""
        if field_name not in INPUT_FIELDS:
            raise ValueError(f"Unknown input field: {field_name}")
        if not is_partial_number(text):
            return False
        current = self.inputs.get(name, DraftInput())
        if field_name == FIELD_POWER:
            self.inputs[name] = DraftInput(power=text, hands=current.hands)
        else:
            self.inputs[name] = DraftInput(power=current.power, hands=text)
        return True

    def raw_inputs(self, player_names: list[str]) -> dict[str, RoundInput]:
        """Parsed inputs for every player; inactive players are recorded as 0/0."""
        result = {}
        for name in player_names:
            if name in self.inactive_players or name not in self.inputs:
                result[name] = RoundInput()
            else:
                result[name] = self.inputs[name].parsed()
        return result

    def preview(self, game: Game, round_: Round | None = None) -> dict[str, float]:
        """Scores this draft would produce if saved now."""
        showed = self.showed_player(game)
        if showed is None:
            return {name: 0.0 for name in game.player_names}
        names = round_player_names(game, round_) if round_ else game.player_names
        if showed not in names:
            return {name: 0.0 for name in names}
        ppv = round_.per_point_value if round_ else game.per_point_value
        return score_round(
            names, showed, self.inactive_players, ppv, self.raw_inputs(names)
        )

    def to_dict(self) -> dict:
        return {
            "gameId": self.game_id,
            "showedIndex": self.showed_index,
            "inactivePlayers": list(self.inactive_players),
            "inputs": {name: inp.to_dict() for name, inp in self.inputs.items()},
            "roundId": self.round_id,
        }

    @classmethod
    def from_dict(cls, d: dict) -> RoundDraft:
        return cls(
            game_id=d["gameId"],
            showed_index=int(d.get("showedIndex", 0)),
            inactive_players=list(d.get("inactivePlayers", [])),
            inputs={
                name: DraftInput.from_dict(inp)
                for name, inp in d.get("inputs", {}).items()
            },
            round_id=d.get("roundId"),
        )
