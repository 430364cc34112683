"""Tests for the cumulative leaderboard."""

from marriage.game.leaderboard import aggregate
from marriage.game.models import LeaderboardEntry, Round


def make_round(scores: dict[str, float], order_key: str = "") -> Round:
    return Round(
        round_id=Round.new_round_id(),
        game_id="g1",
        showed_player=next(iter(scores)),
        inactive_players=[],
        per_point_value=0.5,
        round_details={},
        scores=scores,
        order_key=order_key,
    )


class TestAggregate:
    def test_two_rounds(self):
        rounds = [
            make_round({"A": 15, "B": 0, "C": -15}),
            make_round({"A": -5, "B": 10, "C": -5}),
        ]
        entries = aggregate(["A", "B", "C"], rounds)
        assert entries == [
            LeaderboardEntry("A", 10.0),
            LeaderboardEntry("B", 10.0),
            LeaderboardEntry("C", -20.0),
        ]

    def test_ties_keep_roster_order(self):
        rounds = [
            make_round({"A": 15, "B": 0, "C": -15}),
            make_round({"A": -5, "B": 10, "C": -5}),
        ]
        entries = aggregate(["B", "C", "A"], rounds)
        assert [e.name for e in entries] == ["B", "A", "C"]

    def test_sorted_descending(self):
        rounds = [make_round({"A": -7.5, "B": 2.5, "C": 5})]
        entries = aggregate(["A", "B", "C"], rounds)
        assert [e.name for e in entries] == ["C", "B", "A"]

    def test_no_rounds(self):
        entries = aggregate(["A", "B"], [])
        assert entries == [LeaderboardEntry("A", 0.0), LeaderboardEntry("B", 0.0)]

    def test_player_missing_from_round_counts_zero(self):
        # D joined after the first round
        rounds = [
            make_round({"A": 10, "B": -10}),
            make_round({"A": -3, "B": -3, "D": 6}),
        ]
        entries = aggregate(["A", "B", "D"], rounds)
        assert entries == [
            LeaderboardEntry("A", 7.0),
            LeaderboardEntry("D", 6.0),
            LeaderboardEntry("B", -13.0),
        ]

    def test_unknown_names_in_scores_ignored(self):
        rounds = [make_round({"A": 1, "Ghost": -1})]
        entries = aggregate(["A"], rounds)
        assert entries == [LeaderboardEntry("A", 1.0)]

    def test_no_float_drift(self):
        rounds = [make_round({"A": 0.1, "B": -0.1}) for _ in range(3)]
        entries = aggregate(["A", "B"], rounds)
        assert entries[0].score == 0.3
        assert entries[1].score == -0.3

    def test_idempotent(self):
        rounds = [
            make_round({"A": 1.25, "B": -1.25}),
            make_round({"A": -0.5, "B": 0.5}),
        ]
        assert aggregate(["A", "B"], rounds) == aggregate(["A", "B"], rounds)

    def test_accepts_iterator(self):
        rounds = (make_round({"A": 2, "B": -2}) for _ in range(2))
        entries = aggregate(["A", "B"], rounds)
        assert entries[0] == LeaderboardEntry("A", 4.0)
