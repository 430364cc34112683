"""Tests for building and re-scoring rounds."""

import pytest

from marriage.game.models import Game, RoundInput
from marriage.game.rounds import (
    edit_round,
    new_round,
    normalize_inputs,
    parse_count,
    round_player_names,
)


def make_game(names=None, ppv: float = 0.5) -> Game:
    return Game(
        game_id="g1",
        name="Friday",
        code="ABC123",
        player_names=list(names or ["A", "B", "C"]),
        per_point_value=ppv,
    )


RAW = {
    "A": {"power": "0", "hands": "0"},
    "B": {"power": "1", "hands": "2"},
    "C": {"power": "0", "hands": "1"},
}


class TestParseCount:
    def test_number(self):
        assert parse_count("2.5") == 2.5

    def test_negative_clamped(self):
        assert parse_count("-3") == 0.0

    def test_garbage(self):
        assert parse_count("x") == 0.0


class TestNormalizeInputs:
    def test_inactive_recorded_as_zero(self):
        details = normalize_inputs(["A", "B"], ["B"], {"B": {"power": 5, "hands": 5}})
        assert details == {"A": RoundInput(), "B": RoundInput()}

    def test_parses_strings(self):
        details = normalize_inputs(["A"], [], {"A": {"power": "3", "hands": "1.5"}})
        assert details["A"] == RoundInput(power=3.0, hands=1.5)

    def test_accepts_round_inputs(self):
        details = normalize_inputs(["A"], [], {"A": RoundInput(power=2, hands=1)})
        assert details["A"] == RoundInput(power=2.0, hands=1.0)


class TestNewRound:
    def test_scores_and_details(self):
        game = make_game()
        round_ = new_round(game, 0, [], RAW, saved_by="u1", now="t1")
        assert round_.showed_player == "A"
        assert round_.scores == {"A": 5.0, "B": 10.0, "C": -15.0}
        assert round_.round_details["B"] == RoundInput(power=1.0, hands=2.0)
        assert round_.per_point_value == 0.5
        assert round_.saved_by == "u1"
        assert round_.created_at == round_.updated_at == "t1"
        assert round_.game_id == "g1"

    def test_inactive_in_roster_order(self):
        game = make_game()
        round_ = new_round(game, 0, iter(["C", "B"]), RAW)
        assert round_.inactive_players == ["B", "C"]
        assert round_.scores == {"A": 0.0, "B": 0.0, "C": 0.0}

    def test_showed_index_out_of_range(self):
        with pytest.raises(ValueError):
            new_round(make_game(), 3, [], RAW)


class TestEditRound:
    def test_move_showed_player(self):
        game = make_game()
        original = new_round(game, 0, [], RAW, now="t1")
        original.order_key = "0000000001"

        edited = edit_round(game, original, 1, [], RAW, now="t2")
        # total power 1, B showed: A = -10, C = -10 - 5
        assert edited.scores == {"A": -10.0, "B": 25.0, "C": -15.0}
        assert edited.showed_player == "B"
        assert edited.round_id == original.round_id
        assert edited.order_key == "0000000001"
        assert edited.created_at == "t1"
        assert edited.updated_at == "t2"

    def test_keeps_original_point_value(self):
        game = make_game()
        original = new_round(game, 0, [], RAW)
        game.per_point_value = 2.0

        edited = edit_round(game, original, 0, [], RAW)
        assert edited.per_point_value == 0.5
        assert edited.scores == original.scores

    def test_changes_inputs(self):
        game = make_game()
        original = new_round(game, 0, [], RAW)
        raw = dict(RAW, C={"power": "2", "hands": "0"})

        edited = edit_round(game, original, 0, [], raw)
        assert edited.round_details["C"] == RoundInput(power=2.0, hands=0.0)
        # total power 3: B = -30 - 10 + 30, C = -30 + 60
        assert edited.scores == {"A": -20.0, "B": -10.0, "C": 30.0}

    def test_uses_round_roster(self):
        game = make_game()
        original = new_round(game, 0, [], RAW)
        game.player_names.append("D")

        edited = edit_round(
            game, original, 0, [], dict(RAW, D={"power": "9", "hands": "9"})
        )
        assert "D" not in edited.scores
        assert edited.scores == original.scores

    def test_does_not_mutate_original(self):
        game = make_game()
        original = new_round(game, 0, [], RAW)
        before = dict(original.scores)
        edit_round(game, original, 1, [], RAW)
        assert original.scores == before
        assert original.showed_player == "A"


class TestRoundPlayerNames:
    def test_excludes_players_added_later(self):
        game = make_game()
        round_ = new_round(game, 0, [], RAW)
        game.player_names.append("D")
        assert round_player_names(game, round_) == ["A", "B", "C"]

    def test_falls_back_to_roster(self):
        game = make_game()
        round_ = new_round(game, 0, [], RAW)
        round_.round_details = {}
        assert round_player_names(game, round_) == ["A", "B", "C"]
