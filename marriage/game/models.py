"""Data models for Marriage games and rounds."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from marriage.utils.constants import STATUS_ACTIVE, STATUS_DONE


def _num(value) -> float:
    # Storage backends may hand back Decimal or int
    return float(value) if value is not None else 0.0


@dataclass(frozen=True)
class RoundInput:
    """Numeric per-player inputs for one round."""

    power: float = 0.0
    hands: float = 0.0

    def to_dict(self) -> dict:
        return {"power": self.power, "hands": self.hands}

    @classmethod
    def from_dict(cls, d: dict) -> RoundInput:
        return cls(power=_num(d.get("power")), hands=_num(d.get("hands")))


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    score: float

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score}

    @classmethod
    def from_dict(cls, d: dict) -> LeaderboardEntry:
        return cls(name=d["name"], score=_num(d["score"]))


@dataclass
class Round:
    """One scored round of a game (maps to one row of the rounds table).

    ``per_point_value`` is the value in effect when the round was first
    saved; edits keep it. ``order_key`` is assigned by the repository on
    append and never changes afterwards.
    """

    round_id: str
    game_id: str
    showed_player: str
    inactive_players: list[str]
    per_point_value: float
    round_details: dict[str, RoundInput]
    scores: dict[str, float]
    order_key: str = ""
    saved_by: str = ""
    created_at: str = ""
    updated_at: str = ""

    def is_inactive(self, name: str) -> bool:
        return name in self.inactive_players

    def to_dict(self) -> dict:
        return {
            "roundId": self.round_id,
            "gameId": self.game_id,
            "orderKey": self.order_key,
            "showedPlayer": self.showed_player,
            "inactivePlayers": list(self.inactive_players),
            "perPointValue": self.per_point_value,
            "roundDetails": {
                name: inp.to_dict() for name, inp in self.round_details.items()
            },
            "scores": dict(self.scores),
            "savedBy": self.saved_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Round:
        return cls(
            round_id=d["roundId"],
            game_id=d["gameId"],
            order_key=d.get("orderKey", ""),
            showed_player=d["showedPlayer"],
            inactive_players=list(d.get("inactivePlayers", [])),
            per_point_value=_num(d["perPointValue"]),
            round_details={
                name: RoundInput.from_dict(inp)
                for name, inp in d.get("roundDetails", {}).items()
            },
            scores={name: _num(s) for name, s in d.get("scores", {}).items()},
            saved_by=d.get("savedBy", ""),
            created_at=d.get("createdAt", ""),
            updated_at=d.get("updatedAt", ""),
        )

    @staticmethod
    def new_round_id() -> str:
        return str(uuid.uuid4())


@dataclass
class Game:
    """A Marriage scoring session (maps to one row of the games table)."""

    game_id: str
    name: str
    code: str
    player_names: list[str]
    per_point_value: float
    status: str = STATUS_ACTIVE
    created_by: str = ""
    created_at: str = ""
    updated_at: str = ""
    finished_at: str | None = None
    final_leaderboard: list[LeaderboardEntry] | None = None
    # Chats that receive pushed updates for this game
    watchers: list[str] = field(default_factory=list)
    version: int = 1

    @property
    def is_done(self) -> bool:
        return self.status == STATUS_DONE

    def has_player(self, name: str) -> bool:
        """Case-insensitive roster membership."""
        lowered = name.strip().lower()
        return any(p.lower() == lowered for p in self.player_names)

    def resolve_player(self, name: str) -> str | None:
        """Return the roster spelling of ``name`` (case-insensitive)."""
        lowered = name.strip().lower()
        for p in self.player_names:
            if p.lower() == lowered:
                return p
        return None

    def to_dict(self) -> dict:
        return {
            "gameId": self.game_id,
            "name": self.name,
            "code": self.code,
            "playerNames": list(self.player_names),
            "perPointValue": self.per_point_value,
            "status": self.status,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "finishedAt": self.finished_at,
            "finalLeaderboard": (
                [e.to_dict() for e in self.final_leaderboard]
                if self.final_leaderboard is not None
                else None
            ),
            "watchers": list(self.watchers),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Game:
        final = d.get("finalLeaderboard")
        return cls(
            game_id=d["gameId"],
            name=d["name"],
            code=d.get("code", ""),
            player_names=list(d["playerNames"]),
            per_point_value=_num(d["perPointValue"]),
            status=d.get("status", STATUS_ACTIVE),
            created_by=d.get("createdBy", ""),
            created_at=d.get("createdAt", ""),
            updated_at=d.get("updatedAt", ""),
            finished_at=d.get("finishedAt"),
            final_leaderboard=(
                [LeaderboardEntry.from_dict(e) for e in final]
                if final is not None
                else None
            ),
            watchers=list(d.get("watchers", [])),
            version=int(d.get("version", 1)),
        )

    @staticmethod
    def new_game_id() -> str:
        return str(uuid.uuid4())
