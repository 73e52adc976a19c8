import random
from unittest.mock import patch

import pytest

from engagement import InvalidValue, MissingField, SnapshotStore, StatsEngine, StorageFailure


def tally(engine, game_id):
    return engine.summary()["gameVotes"].get(game_id)


# -------------------- Visits --------------------
def test_empty_summary(engine):
    assert engine.summary() == {
        "totalVisits": 0,
        "uniqueVisitors": 0,
        "todayVisits": 0,
        "gameClicks": {},
        "gameVotes": {},
    }


def test_visit_without_id_issues_one(engine):
    result = engine.record_visit()
    assert result["visitorId"]
    assert result["stats"]["totalVisits"] == 1
    assert result["stats"]["todayVisits"] == 1
    assert result["stats"]["uniqueVisitors"] == 1
    assert result["visitorVotes"] == {}


def test_repeat_visits_count_every_request(engine):
    engine.record_visit("a")
    result = engine.record_visit("a")
    assert result["stats"]["totalVisits"] == 2
    assert result["stats"]["uniqueVisitors"] == 1


def test_unique_visitors_across_operations(engine):
    generated = engine.record_visit()["visitorId"]
    engine.record_click("a", "g1")
    engine.record_vote("b", "g1", "like")
    engine.record_visit("a")
    engine.record_visit(generated)
    assert engine.summary()["uniqueVisitors"] == 3


# -------------------- Day rollover --------------------
def test_today_visits_reset_on_new_date(engine, clock):
    engine.record_visit("a")
    engine.record_visit("a")
    assert engine.summary()["todayVisits"] == 2

    clock.today = "2024-05-02"
    assert engine.summary()["todayVisits"] == 0
    result = engine.record_visit("a")
    assert result["stats"]["todayVisits"] == 1
    assert result["stats"]["totalVisits"] == 3
    assert engine.state.today_date == "2024-05-02"


def test_same_date_does_not_reset(engine):
    engine.record_visit("a")
    engine.record_click("a", "g1")
    assert engine.summary()["todayVisits"] == 1


# -------------------- Clicks --------------------
def test_click_increments_counter(engine):
    engine.record_click("a", "g1")
    result = engine.record_click("a", "g1")
    assert result["stats"]["gameClicks"] == {"g1": 2}


@pytest.mark.parametrize("game_id", [None, ""])
def test_click_without_game_id_changes_nothing(engine, game_id):
    with patch.object(engine.snapshot, "save") as save:
        with pytest.raises(MissingField):
            engine.record_click("a", game_id)
    save.assert_not_called()
    assert engine.summary()["gameClicks"] == {}
    assert engine.summary()["uniqueVisitors"] == 0


# -------------------- Votes --------------------
def test_vote_switch_scenario(engine):
    engine.record_vote("A", "g1", "like")
    assert tally(engine, "g1") == {"likes": 1, "dislikes": 0}

    engine.record_vote("A", "g1", "dislike")
    assert tally(engine, "g1") == {"likes": 0, "dislikes": 1}

    with patch.object(engine.snapshot, "save", wraps=engine.snapshot.save) as save:
        result = engine.record_vote("A", "g1", "dislike")
    save.assert_not_called()
    assert result["stats"]["gameVotes"]["g1"] == {"likes": 0, "dislikes": 1}
    assert result["visitorVotes"] == {"g1": "dislike"}

    engine.record_vote("B", "g1", "like")
    assert tally(engine, "g1") == {"likes": 1, "dislikes": 1}


def test_disliked_to_liked(engine):
    engine.record_vote("A", "g1", "dislike")
    result = engine.record_vote("A", "g1", "like")
    assert result["stats"]["gameVotes"]["g1"] == {"likes": 1, "dislikes": 0}
    assert result["visitorVotes"] == {"g1": "like"}


def test_repeat_vote_returns_same_shape(engine):
    first = engine.record_vote("A", "g1", "like")
    second = engine.record_vote("A", "g1", "like")
    assert second == first


def test_switch_never_goes_negative(engine):
    # tally lost its like (e.g. hand-edited file) but the visitor record remains
    engine.record_vote("A", "g1", "like")
    engine.state.game_votes["g1"].likes = 0
    engine.record_vote("A", "g1", "dislike")
    assert tally(engine, "g1") == {"likes": 0, "dislikes": 1}


@pytest.mark.parametrize("value", [None, "", "love", "LIKE"])
def test_invalid_vote_value(engine, value):
    with pytest.raises(InvalidValue):
        engine.record_vote("A", "g1", value)
    assert engine.summary()["gameVotes"] == {}


def test_vote_without_game_id(engine):
    with pytest.raises(MissingField):
        engine.record_vote("A", None, "like")


def test_tallies_match_recorded_votes(engine):
    rng = random.Random(7)
    visitors = ["a", "b", "c", "d"]
    games = ["g1", "g2", "g3"]
    for _ in range(200):
        engine.record_vote(rng.choice(visitors), rng.choice(games), rng.choice(["like", "dislike"]))

        for game_id in games:
            recorded = [v.get(game_id) for v in engine.state.votes_by_visitor.values()]
            expected = {"likes": recorded.count("like"), "dislikes": recorded.count("dislike")}
            actual = engine.summary()["gameVotes"].get(game_id, {"likes": 0, "dislikes": 0})
            assert actual == expected


# -------------------- Persistence --------------------
def test_state_survives_restart(engine, data_path, clock):
    engine.record_visit("a")
    engine.record_click("a", "g1")
    engine.record_vote("a", "g1", "like")

    restarted = StatsEngine(SnapshotStore(data_path), today=clock)
    summary = restarted.summary()
    assert summary["totalVisits"] == 1
    assert summary["uniqueVisitors"] == 1
    assert summary["gameClicks"] == {"g1": 1}
    assert summary["gameVotes"] == {"g1": {"likes": 1, "dislikes": 0}}
    assert restarted.visitor_votes("a") == {"g1": "like"}


def test_failed_save_leaves_state_untouched(engine):
    engine.record_vote("A", "g1", "like")
    with patch.object(engine.snapshot, "save", side_effect=StorageFailure("disk full")):
        with pytest.raises(StorageFailure):
            engine.record_vote("A", "g1", "dislike")
        with pytest.raises(StorageFailure):
            engine.record_visit("B")
    assert tally(engine, "g1") == {"likes": 1, "dislikes": 0}
    assert engine.visitor_votes("A") == {"g1": "like"}
    assert engine.summary()["totalVisits"] == 0
    assert engine.summary()["uniqueVisitors"] == 1
