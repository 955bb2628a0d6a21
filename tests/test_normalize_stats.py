import pytest

from teamfeed.normalize import normalize_stats
from teamfeed.normalize.stats import as_number, rank_leaders

from tests.payloads import general_stats_payload, stat, standard_stats_payload


def test_general_payload_maps_stat_ids():
    stats = normalize_stats(general_stats_payload())

    assert stats.team["goals-scored"].label == "Goals Scored"
    assert stats.team["goals-scored"].value == 21
    assert stats.leaders == {}


def test_combined_top_players_payload_yields_single_leaders():
    payload = {
        "topPlayers": {
            "goals": {"mediaFirstName": "Esther", "mediaLastName": "González", "value": "8"},
            "assists": {"name": "Midge Purce", "value": 5},
            "saves": {"value": 40},
        }
    }

    stats = normalize_stats({"leaders": payload})

    assert stats.leaders["goals"][0].model_dump() == {"name": "Esther González", "total": 8}
    assert stats.leaders["assists"][0].name == "Midge Purce"
    assert "saves" not in stats.leaders


def test_categorized_payloads_rank_top_n():
    players = [
        {"name": f"Player {i}", "stats": [stat("goals", goals)]}
        for i, goals in enumerate([2, 7, 0, 7, 5])
    ]
    stats = normalize_stats(
        {"general": general_stats_payload(), "standard": {"players": players}},
        leader_keys={"standard": ("goals",)},
        top_n=3,
    )

    assert [(leader.name, leader.total) for leader in stats.leaders["goals"]] == [
        ("Player 1", 7),
        ("Player 3", 7),
        ("Player 4", 5),
    ]
    assert "goals-scored" in stats.team


def test_leader_keys_only_apply_to_their_sub_source():
    stats = normalize_stats(
        {"passing": standard_stats_payload()},
        leader_keys={"standard": ("goals", "assists")},
    )

    assert stats is None


def test_zero_penalty_attempts_omits_conversion_rate():
    shooting = {
        "team": {
            "stats": [
                stat("penalty-goals", 0),
                stat("penalty-attempts", 0),
                stat("shots-on-target", 40),
                stat("total-shots", 120),
            ]
        }
    }

    stats = normalize_stats({"shooting": shooting})

    assert "penalty-kick-pct" not in stats.team
    assert stats.team["shot-accuracy"].value == pytest.approx(33.3)


def test_passing_accuracy_is_derived():
    passing = {"team": {"stats": [stat("accurate-passes", "4,120"), stat("total-passes", 5000)]}}

    stats = normalize_stats({"passing": passing})

    assert stats.team["passing-accuracy"].value == pytest.approx(82.4)
    assert stats.team["passing-accuracy"].label == "Passing accuracy %"


def test_malformed_stats_are_empty_signal():
    assert normalize_stats(None) is None
    assert normalize_stats({"general": {"team": {"stats": "n/a"}}}) is None
    assert normalize_stats({"general": "not a payload"}) is None


def test_rank_leaders_skips_nameless_and_non_numeric():
    players = [
        {"stats": [stat("saves", 50)]},
        {"name": "Keeper", "stats": {"saves": "61"}},
        {"name": "Backup", "stats": [stat("saves", "n/a")]},
    ]

    leaders = rank_leaders(players, ("saves",), top_n=3)

    assert [leader.name for leader in leaders["saves"]] == ["Keeper"]


def test_as_number_rejects_bools_and_nan():
    assert as_number(True) is None
    assert as_number(float("nan")) is None
    assert as_number("12.0") == 12
    assert as_number("12.5") == 12.5
