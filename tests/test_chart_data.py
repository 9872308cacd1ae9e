import numpy as np
import pandas as pd
import pytest

from qbr_posts.chart_data import (
    assign_game_index,
    attach_opponents,
    attach_team_styles,
    build_chart_series,
    chart_title,
    clamp_week,
    drop_multi_team_rows,
    filter_qualified,
    percentile_references,
    schedule_by_team,
    season_boundaries,
    select_player_games,
)
from qbr_posts.utils_schema import coerce_schedule_dtypes

from conftest import make_table, qbr_row


def test_clamp_week_scalar_and_idempotent():
    assert clamp_week(22) == 21
    assert clamp_week(clamp_week(22)) == 21
    assert clamp_week(5) == 5


def test_clamp_week_series():
    s = pd.Series([1, 17, 18, 21, 22, 25])
    out = clamp_week(s)
    assert out.tolist() == [1, 17, 18, 21, 21, 21]
    assert clamp_week(out).tolist() == out.tolist()


def test_drop_multi_team_rows():
    table = make_table([
        qbr_row(2019, 1, "Joe Flacco", "DEN", 40.0),
        qbr_row(2019, 2, "Joe Flacco", "DEN/KC", 45.0),
        qbr_row(2019, 3, "Joe Flacco", None, 50.0),
    ])
    out = drop_multi_team_rows(table)
    assert out["game_week"].tolist() == [1, 3]


def test_filter_qualified():
    table = make_table([
        qbr_row(2019, 1, "A", "NE", 40.0, plays=5),
        qbr_row(2019, 1, "B", "NYJ", 60.0, plays=20),
    ])
    assert filter_qualified(table, 20)["name_display"].tolist() == ["B"]


def test_select_player_games_exact_match_only(brady_table):
    assert len(select_player_games(brady_table, "Tom Brady", 2007)) == 16
    assert select_player_games(brady_table, "tom brady", 2007).empty
    assert select_player_games(brady_table, "Tom Brady", 2008).empty


def test_select_player_games_chronological(mahomes_table):
    games = select_player_games(mahomes_table, "Patrick Mahomes", 2017, 2019)
    keys = list(zip(games["season"], games["game_week"]))
    assert keys == sorted(keys)
    assert games["game_week"].max() == 21
    assert 2020 not in games["season"].tolist()


def test_schedule_by_team_has_both_sides(schedule_2007):
    long = schedule_by_team(schedule_2007)
    assert len(long) == 2 * len(schedule_2007)
    wk1 = long[(long["game_week"] == 1)].set_index("team")
    assert bool(wk1.loc["NE", "is_home"]) is True
    assert wk1.loc["NE", "opponent"] == "BUF"
    assert wk1.loc["BUF", "opponent"] == "NE"
    assert bool(wk1.loc["BUF", "is_home"]) is False


def test_alias_normalization_joins_team_style(team_styles):
    # provider says LAR, styles only know LA
    table = make_table([qbr_row(2018, 1, "Jared Goff", "LAR", 65.0)])
    schedule = coerce_schedule_dtypes(pd.DataFrame([{
        "season": 2018, "game_week": 1, "home_team": "OAK", "away_team": "LA",
        "home_score": 13, "away_score": 33,
    }]))
    games = select_player_games(table, "Jared Goff", 2018)
    assert games["team"].tolist() == ["LA"]

    joined = attach_team_styles(attach_opponents(games, schedule), team_styles)
    assert joined.loc[0, "team_color"] == team_styles.set_index("team_abbr").loc["LA", "team_color"]
    assert joined.loc[0, "opponent"] == "OAK"
    assert bool(joined.loc[0, "is_home"]) is False


def test_join_miss_leaves_decorations_empty(team_styles):
    table = make_table([qbr_row(2018, 1, "Somebody", "XYZ", 50.0)])
    schedule = coerce_schedule_dtypes(pd.DataFrame(
        columns=["season", "game_week", "home_team", "away_team"]))
    series = build_chart_series(table, schedule, team_styles, "Somebody", 2018)
    assert len(series) == 1
    assert pd.isna(series.loc[0, "team_color"])
    assert pd.isna(series.loc[0, "opponent_logo"])
    assert series.loc[0, "outcome"] is None


def test_percentile_references_use_full_distribution(brady_table):
    refs = percentile_references(brady_table)
    assert refs["label"].tolist() == ["10th", "25th", "Median", "75th", "90th", "98th"]
    values = brady_table["qbr_total"].astype(float).to_numpy()
    assert refs.loc[refs["label"] == "Median", "value"].iloc[0] == pytest.approx(np.quantile(values, 0.5))
    assert refs["is_median"].sum() == 1
    assert refs["value"].is_monotonic_increasing


def test_percentile_references_empty_table():
    refs = percentile_references(make_table([]))
    assert refs["value"].isna().all()


def test_assign_game_index_and_boundaries(mahomes_table):
    games = assign_game_index(select_player_games(mahomes_table, "Patrick Mahomes", 2017, 2019))
    assert games["game_index"].tolist() == list(range(1, 14))
    assert season_boundaries(games) == [5, 9]


def test_season_boundaries_empty():
    assert season_boundaries(pd.DataFrame(columns=["season", "game_index"])) == []


def test_chart_title_branches():
    regular = chart_title("Tom Brady", (2007, 2007), 16)
    assert regular.endswith("Regular Season")
    assert "Playoffs" not in regular
    assert "including Playoffs" in chart_title("Tom Brady", (2007, 2007), 21)
    assert "2017-2019" in chart_title("Patrick Mahomes", (2017, 2019), 21)
    assert chart_title("Nobody", (2007, 2007), pd.NA).endswith("Regular Season")


def test_home_tie_outcome(mahomes_table, mahomes_schedule, team_styles):
    series = build_chart_series(mahomes_table, mahomes_schedule, team_styles,
                                "Patrick Mahomes", 2019)
    wk1 = series[series["game_week"] == 1].iloc[0]
    assert bool(wk1["is_home"]) is True
    assert wk1["result"] == 0
    assert wk1["outcome"] == "Tie"


def test_super_bowl_row_joined_after_clamp(mahomes_table, mahomes_schedule, team_styles):
    series = build_chart_series(mahomes_table, mahomes_schedule, team_styles,
                                "Patrick Mahomes", 2019)
    sb = series[series["game_week"] == 21].iloc[0]
    assert sb["opponent"] == "SF"
    assert sb["outcome"] == "Won"
    assert sb["opponent_logo"] == "https://logos.example/sf.png"
    assert "Super Bowl" in sb["hover_text"]
    assert "Final score: 31-20" in sb["hover_text"]


def test_build_chart_series_empty_selection(brady_table, schedule_2007, team_styles):
    series = build_chart_series(brady_table, schedule_2007, team_styles, "Nobody", 2007)
    assert series.empty
    for col in ["game_index", "hover_text", "opponent_logo", "outcome"]:
        assert col in series.columns


def test_select_player_games_ignores_missing_season():
    table = make_table([
        qbr_row(2007, 1, "Tom Brady", "NE", 70.0),
        {**qbr_row(2007, 2, "Tom Brady", "NE", 55.0), "season": None},
    ])
    games = select_player_games(table, "Tom Brady", 2007)
    assert games["game_week"].tolist() == [1]
