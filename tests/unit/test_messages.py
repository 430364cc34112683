"""Tests for message formatting and keyboards."""

from marriage.bot.messages import (
    build_done_keyboard,
    build_draft_keyboard,
    build_games_filter_keyboard,
    build_history_keyboard,
    format_draft,
    format_game,
    format_games_list,
    format_help,
    format_history,
    format_leaderboard,
    format_money,
    format_round,
    format_round_details,
    format_welcome,
)
from marriage.game.draft import RoundDraft
from marriage.game.leaderboard import aggregate
from marriage.game.models import Game, LeaderboardEntry
from marriage.game.rounds import new_round
from marriage.game.session import GameSession
from marriage.utils.constants import FIELD_HANDS, FIELD_POWER, STATUS_ACTIVE, STATUS_DONE

RAW = {"B": {"power": "1", "hands": "2"}, "C": {"power": "0", "hands": "1"}}


def make_game(name: str = "Friday") -> Game:
    return Game(
        game_id="g1",
        name=name,
        code="ABC123",
        player_names=["A", "B", "C"],
        per_point_value=0.5,
    )


def make_session(rounds: int = 2) -> GameSession:
    game = make_game()
    return GameSession(
        game=game, rounds=[new_round(game, 0, [], RAW) for _ in range(rounds)]
    )


class TestFormatMoney:
    def test_signs(self):
        assert format_money(15) == "+15.00"
        assert format_money(-5.5) == "-5.50"
        assert format_money(0) == "0.00"
        assert format_money(-0.0) == "0.00"


class TestStaticTexts:
    def test_welcome_lists_commands(self):
        text = format_welcome()
        for command in ("/newgame", "/join", "/round", "/edit", "/board", "/done"):
            assert command in text

    def test_help_explains_formula(self):
        text = format_help()
        assert "x 20" in text
        assert "x 10" in text
        assert "sums to zero" in text


class TestFormatGame:
    def test_header(self):
        text = format_game(make_game())
        assert "<b>Friday</b> (active)" in text
        assert "<code>ABC123</code>" in text
        assert "Point value: 0.50" in text
        assert "A, B, C" in text

    def test_escapes_names(self):
        text = format_game(make_game(name="<Poker & co>"))
        assert "&lt;Poker &amp; co&gt;" in text


class TestFormatDraft:
    def test_new_round_preview(self):
        game = make_game()
        draft = RoundDraft.for_new_round(game)
        draft.set_input("B", FIELD_POWER, "1")
        draft.set_input("B", FIELD_HANDS, "2")
        draft.set_input("C", FIELD_HANDS, "1")
        text = format_draft(game, draft)
        assert text.startswith("<b>New round</b>: Friday")
        assert "A (showed): power 0, hands 0 → +5.00" in text
        assert "B: power 1, hands 2 → +10.00" in text
        assert "C: power 0, hands 1 → -15.00" in text

    def test_partial_input_shown_raw(self):
        game = make_game()
        draft = RoundDraft.for_new_round(game)
        draft.set_input("B", FIELD_POWER, "2.")
        assert "B: power 2., hands 0" in format_draft(game, draft)

    def test_sitting_out(self):
        game = make_game()
        draft = RoundDraft.for_new_round(game)
        draft.toggle_inactive("C")
        assert "C: sitting out" in format_draft(game, draft)

    def test_warns_when_showed_player_sits_out(self):
        game = make_game()
        draft = RoundDraft.for_new_round(game)
        draft.toggle_inactive("A")
        assert "cannot sit out" in format_draft(game, draft)

    def test_edit_title_and_point_value(self):
        game = make_game()
        round_ = new_round(game, 0, [], RAW)
        game.per_point_value = 2.0
        draft = RoundDraft.for_edit(game, round_)
        text = format_draft(game, draft, round_=round_, round_number=3)
        assert "Editing round #3" in text
        assert "Point value: 0.50" in text


class TestFormatLeaderboard:
    def test_live(self):
        game = make_game()
        entries = [LeaderboardEntry("A", 10), LeaderboardEntry("C", -10)]
        text = format_leaderboard(game, entries)
        assert text.startswith("<b>Leaderboard</b>: Friday")
        assert "1. A: +10.00" in text
        assert "2. C: -10.00" in text

    def test_final(self):
        game = make_game()
        game.status = STATUS_DONE
        assert "Final leaderboard" in format_leaderboard(game, [])


class TestFormatRounds:
    def test_round_line(self):
        game = make_game()
        round_ = new_round(game, 0, ["C"], RAW)
        text = format_round(game, round_, 1)
        assert text.startswith("#1 A showed (@0.50)")
        assert "C N/A" in text
        assert "B 0.00" in text

    def test_skips_players_added_later(self):
        game = make_game()
        round_ = new_round(game, 0, [], RAW)
        game.player_names.append("D")
        assert " D " not in format_round(game, round_, 1)

    def test_history(self):
        text = format_history(make_session(2))
        assert text.startswith("<b>Rounds</b>: Friday")
        assert "#1 A showed" in text
        assert "#2 A showed" in text

    def test_empty_history(self):
        assert "no rounds yet" in format_history(make_session(0))

    def test_round_details(self):
        game = make_game()
        round_ = new_round(game, 0, ["C"], RAW)
        text = format_round_details(game, round_, 1)
        assert "B: power 1, hands 2" in text
        assert "C: power" not in text


class TestFormatGamesList:
    def test_lists_games(self):
        text = format_games_list([make_game()], STATUS_ACTIVE)
        assert "Active games" in text
        assert "<code>ABC123</code> Friday (3 players, 0.50)" in text

    def test_empty(self):
        assert "none found" in format_games_list([], STATUS_DONE)


class TestKeyboards:
    def test_draft_keyboard(self):
        game = make_game()
        draft = RoundDraft.for_new_round(game)
        draft.toggle_inactive("C")
        rows = build_draft_keyboard(game, draft)["inline_keyboard"]
        assert len(rows) == 4
        assert rows[0][0] == {"text": "● A", "callback_data": "draft:show:0"}
        assert rows[2][1] == {"text": "Sitting out", "callback_data": "draft:inact:2"}
        assert [b["callback_data"] for b in rows[-1]] == [
            "draft:save",
            "draft:refresh",
            "draft:cancel",
        ]

    def test_edit_keyboard_only_round_players(self):
        game = make_game()
        round_ = new_round(game, 0, [], RAW)
        game.player_names.append("D")
        draft = RoundDraft.for_edit(game, round_)
        rows = build_draft_keyboard(game, draft)["inline_keyboard"]
        assert len(rows) == 4

    def test_history_keyboard(self):
        rows = build_history_keyboard(make_session(5))["inline_keyboard"]
        assert [len(r) for r in rows] == [4, 1]
        assert rows[1][0] == {"text": "Edit #5", "callback_data": "edit:5"}

    def test_history_keyboard_closed(self):
        assert build_history_keyboard(make_session(0)) is None
        session = make_session(2)
        session.game.status = STATUS_DONE
        session.game.final_leaderboard = aggregate(
            session.game.player_names, session.rounds
        )
        assert build_history_keyboard(session) is None

    def test_done_keyboard(self):
        buttons = build_done_keyboard()["inline_keyboard"][0]
        assert [b["callback_data"] for b in buttons] == ["done:confirm", "done:cancel"]

    def test_games_filter_keyboard(self):
        buttons = build_games_filter_keyboard(STATUS_DONE)["inline_keyboard"][0]
        assert buttons[0] == {"text": "Active", "callback_data": "games:active"}
        assert buttons[1] == {"text": "● Done", "callback_data": "games:done"}
