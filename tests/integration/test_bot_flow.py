"""Full integration test: Telegram updates through the handler pipeline."""

from __future__ import annotations

import json

import pytest

from marriage.bot.deps import Deps
from marriage.db.memory import (
    InMemoryGameRepository,
    InMemoryRoundRepository,
    InMemoryUserRepository,
)
from marriage.game.engine import GameEngine
from marriage.game.integrity import validate_game_integrity
from marriage.handler import _init_deps, lambda_handler
from marriage.utils.crypto import create_rng

from tests.conftest import MockTelegramClient


def _make_event(body: dict, headers: dict | None = None) -> dict:
    """Build a fake API Gateway event."""
    return {"headers": headers or {}, "body": json.dumps(body)}


def _command_update(user_id: int, chat_id: int, text: str, update_id: int = 1) -> dict:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "from": {"id": user_id, "first_name": "Test"},
            "chat": {"id": chat_id, "type": "private"},
            "text": text,
        },
    }


def _callback_update(
    user_id: int,
    chat_id: int,
    message_id: int,
    data: str,
    cq_id: str = "cq1",
    update_id: int = 1,
) -> dict:
    return {
        "update_id": update_id,
        "callback_query": {
            "id": cq_id,
            "from": {"id": user_id},
            "message": {
                "message_id": message_id,
                "chat": {"id": chat_id, "type": "private"},
            },
            "data": data,
        },
    }


def _setup_deps() -> tuple[Deps, MockTelegramClient]:
    """Init deps with in-memory repos + mock telegram."""
    game_repo = InMemoryGameRepository()
    round_repo = InMemoryRoundRepository()
    user_repo = InMemoryUserRepository()
    engine = GameEngine(game_repo, round_repo, create_rng(1))
    tg = MockTelegramClient()
    deps = _init_deps(
        overrides={
            "engine": engine,
            "game_repo": game_repo,
            "round_repo": round_repo,
            "user_repo": user_repo,
            "telegram": tg,
        }
    )
    return deps, tg


def _send(text: str, user_id: int = 1, chat_id: int = 100) -> dict:
    return lambda_handler(_make_event(_command_update(user_id, chat_id, text)))


def _press(data: str, user_id: int = 1, chat_id: int = 100, message_id: int = 50) -> dict:
    return lambda_handler(
        _make_event(_callback_update(user_id, chat_id, message_id, data))
    )


class TestHandlerBasics:
    def test_invalid_json(self):
        _setup_deps()
        response = lambda_handler({"headers": {}, "body": "{not json"})
        assert response["statusCode"] == 400

    def test_non_command_ignored(self):
        _, tg = _setup_deps()
        response = _send("hello there")
        assert response["statusCode"] == 200
        assert tg.calls == []

    def test_update_without_message(self):
        _, tg = _setup_deps()
        response = lambda_handler(_make_event({"update_id": 5}))
        assert response["statusCode"] == 200
        assert tg.calls == []

    def test_bot_name_suffix_stripped(self):
        _, tg = _setup_deps()
        _send("/start@MarriageBot")
        assert "Marriage Scorekeeper" in tg.last_call("send_message")["text"]

    def test_handler_errors_still_return_200(self):
        deps, _ = _setup_deps()

        def boom(*args, **kwargs):
            raise RuntimeError("telegram down")

        deps.telegram.send_message = boom
        assert _send("/start")["statusCode"] == 200


class TestWebhookSecret:
    def test_rejects_wrong_secret(self, monkeypatch):
        _setup_deps()
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        event = _make_event(
            _command_update(1, 100, "/start"),
            headers={"x-telegram-bot-api-secret-token": "wrong"},
        )
        assert lambda_handler(event)["statusCode"] == 403

    def test_accepts_right_secret(self, monkeypatch):
        _, tg = _setup_deps()
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        event = _make_event(
            _command_update(1, 100, "/start"),
            headers={"x-telegram-bot-api-secret-token": "s3cret"},
        )
        assert lambda_handler(event)["statusCode"] == 200
        assert tg.last_call("send_message") is not None

    def test_header_name_case_insensitive(self, monkeypatch):
        _setup_deps()
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        event = _make_event(
            _command_update(1, 100, "/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
        )
        assert lambda_handler(event)["statusCode"] == 200


class TestChatMember:
    def _member_update(self, status: str) -> dict:
        return {
            "update_id": 9,
            "my_chat_member": {
                "from": {"id": 2},
                "chat": {"id": 200, "type": "private"},
                "new_chat_member": {"status": status},
            },
        }

    def test_blocked_chat_stops_watching(self):
        deps, _ = _setup_deps()
        _send("/start")
        _send("/newgame Friday | 0.5 | Asha, Bikram")
        game_id = deps.user_repo.get_user("1")["currentGameId"]
        code = deps.engine.get_game(game_id).code
        _send("/start", user_id=2, chat_id=200)
        _send(f"/join {code}", user_id=2, chat_id=200)
        assert "200" in deps.engine.get_game(game_id).watchers

        lambda_handler(_make_event(self._member_update("kicked")))
        assert "200" not in deps.engine.get_game(game_id).watchers
        assert "100" in deps.engine.get_game(game_id).watchers

    def test_switching_games_then_blocking(self):
        deps, tg = _setup_deps()
        _send("/start", user_id=2, chat_id=200)
        _send("/newgame First | 0.5 | Asha, Bikram", user_id=2, chat_id=200)
        first_id = deps.user_repo.get_user("2")["currentGameId"]
        _send("/newgame Second | 1 | Chandra, Dev", user_id=2, chat_id=200)
        second_id = deps.user_repo.get_user("2")["currentGameId"]

        assert second_id != first_id
        assert deps.engine.get_game(first_id).watchers == []
        assert deps.engine.get_game(second_id).watchers == ["200"]

        # Rejoining the first game by code moves the chat back
        _send(f"/join {deps.engine.get_game(first_id).code}", user_id=2, chat_id=200)
        assert deps.engine.get_game(first_id).watchers == ["200"]
        assert deps.engine.get_game(second_id).watchers == []

        lambda_handler(_make_event(self._member_update("left")))
        for game in deps.engine.list_games():
            assert "200" not in game.watchers

    def test_blocking_clears_every_game(self):
        deps, _ = _setup_deps()
        engine = deps.engine
        g1 = engine.create_game("Monday", ["A", "B"], 0.5).game
        g2 = engine.create_game("Tuesday", ["A", "B"], 0.5).game
        engine.watch(g1.game_id, "200")
        engine.watch(g2.game_id, "200")
        engine.watch(g2.game_id, "300")

        lambda_handler(_make_event(self._member_update("kicked")))
        assert engine.get_game(g1.game_id).watchers == []
        assert engine.get_game(g2.game_id).watchers == ["300"]

    def test_unblock_is_ignored(self):
        _, tg = _setup_deps()
        response = lambda_handler(_make_event(self._member_update("member")))
        assert response["statusCode"] == 200
        assert tg.calls == []


class TestFullGame:
    @pytest.fixture
    def started_game(self):
        deps, tg = _setup_deps()
        _send("/start")
        _send("/newgame Friday | 0.5 | Asha, Bikram, Chandra")
        return deps, tg, deps.user_repo.get_user("1")["currentGameId"]

    def test_two_chats_play_and_edit(self, started_game):
        deps, tg, game_id = started_game
        code = deps.engine.get_game(game_id).code

        # A second player follows the game from their own chat
        _send("/start", user_id=2, chat_id=200)
        _send(f"/join {code}", user_id=2, chat_id=200)

        # Round 1: Asha shows, Chandra sits out
        _send("/round")
        _press("draft:inact:2")
        _send("/set Bikram 1 2")
        _press("draft:save")
        assert tg.last_call("edit_message")["text"].startswith("Round #1 saved.")

        # Round 2 entered from the other chat: Bikram shows
        _send("/round", user_id=2, chat_id=200)
        _press("draft:show:1", user_id=2, chat_id=200)
        _send("/set Asha 2 1", user_id=2, chat_id=200)
        _send("/set Chandra 1 3", user_id=2, chat_id=200)
        _send("/save", user_id=2, chat_id=200)
        pushed = [c for c in tg.get_calls("send_message") if c["chat_id"] == "100"]
        assert pushed[-1]["text"].startswith("Round #2 saved.")

        # Point value changes later; the edit of round 1 keeps 0.5
        _send("/pointvalue 2")
        _press("edit:1")
        _send("/set Asha 1 0")
        _send("/save")
        assert tg.last_call("send_message")["text"].startswith("Round #1 updated.")

        rounds = deps.engine.get_rounds(game_id)
        assert len(rounds) == 2
        assert rounds[0].per_point_value == 0.5
        assert rounds[1].per_point_value == 0.5

        # Finish the game
        _send("/done")
        _press("done:confirm")
        game = deps.engine.get_game(game_id)
        assert game.is_done
        assert validate_game_integrity(game, deps.engine.get_rounds(game_id)) == []
        board = {e.name: e.score for e in game.final_leaderboard}
        totals = {name: 0.0 for name in game.player_names}
        for round_ in rounds:
            for name, score in round_.scores.items():
                totals[name] += score
        assert board == pytest.approx(totals)

        # Other chat receives the final leaderboard
        to_200 = [c for c in tg.get_calls("send_message") if c["chat_id"] == "200"]
        assert "Game over!" in to_200[-1]["text"]

        # Nothing can change after done
        _send("/round")
        assert tg.last_call("send_message")["text"] == "Error: The game is done."
        _send("/addplayer Dev")
        assert tg.last_call("send_message")["text"].startswith("Error: The game is done")

    def test_showed_player_cannot_sit_out(self, started_game):
        deps, tg, game_id = started_game
        _send("/round")
        _press("draft:inact:0")
        _send("/save")
        assert tg.last_call("send_message")["text"] == (
            "Error: The showed player cannot be marked as inactive for the round"
        )
        assert deps.engine.get_rounds(game_id) == []

    def test_player_added_mid_game(self, started_game):
        deps, tg, game_id = started_game
        _send("/round")
        _send("/save")
        _send("/addplayer Dev")
        _send("/round")
        _send("/set Dev 2 0")
        _send("/save")

        rounds = deps.engine.get_rounds(game_id)
        assert "Dev" not in rounds[0].scores
        assert "Dev" in rounds[1].scores
        _send("/board")
        assert "Dev" in tg.last_call("send_message")["text"]
