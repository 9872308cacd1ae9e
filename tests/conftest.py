import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import pytest

from qbr_posts.utils_schema import coerce_qbr_dtypes, coerce_schedule_dtypes, coerce_team_styles

NE_OPPONENTS = ["NYJ", "BUF", "MIA", "KC", "DEN", "LA"]


def qbr_row(season, game_week, player, team, qbr, plays=30, season_type=None):
    return {
        "season": season,
        "season_type": season_type or ("POST" if game_week > 17 else "REG"),
        "game_week": game_week,
        "player_id": player.lower().replace(" ", "_"),
        "name_display": player,
        "team": team,
        "qbr_total": qbr,
        "qb_plays": plays,
    }


def make_table(rows):
    return coerce_qbr_dtypes(pd.DataFrame(rows))


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture
def team_styles():
    teams = ["NE", "NYJ", "BUF", "MIA", "KC", "DEN", "LA", "SF", "WAS"]
    return coerce_team_styles(pd.DataFrame({
        "team_abbr": teams,
        "team_name": [f"Team {t}" for t in teams],
        "team_color": [f"#0000{i:02d}" for i in range(len(teams))],
        "team_color2": ["#ffffff"] * len(teams),
        "team_logo_espn": [f"https://logos.example/{t.lower()}.png" for t in teams],
    }))


@pytest.fixture
def brady_2007_rows():
    return [qbr_row(2007, wk, "Tom Brady", "NE", 60.0 + wk) for wk in range(1, 17)]


@pytest.fixture
def schedule_2007():
    rows = []
    for wk in range(1, 17):
        opp = NE_OPPONENTS[wk % len(NE_OPPONENTS)]
        if wk % 2:
            rows.append({"season": 2007, "game_week": wk, "game_type": "REG",
                         "home_team": "NE", "away_team": opp, "home_score": 34, "away_score": 17})
        else:
            rows.append({"season": 2007, "game_week": wk, "game_type": "REG",
                         "home_team": opp, "away_team": "NE", "home_score": 10, "away_score": 27})
    return coerce_schedule_dtypes(pd.DataFrame(rows))


@pytest.fixture
def league_rows():
    # other quarterbacks so the percentile distribution is wider than one player
    rows = []
    for wk in range(1, 17):
        rows.append(qbr_row(2007, wk, "Peyton Manning", "IND", 40.0 + wk))
        rows.append(qbr_row(2007, wk, "Derek Anderson", "CLE", 20.0 + 2 * wk))
    return rows


@pytest.fixture
def brady_table(brady_2007_rows, league_rows):
    return make_table(brady_2007_rows + league_rows)


@pytest.fixture
def mahomes_table():
    rows = []
    for season in (2017, 2018, 2019):
        for wk in range(1, 5):
            rows.append(qbr_row(season, wk, "Patrick Mahomes", "KC", 50.0 + wk + (season - 2017)))
    # Super Bowl arrives as 17 + 5
    rows.append(qbr_row(2019, 22, "Patrick Mahomes", "KC", 71.5, plays=55))
    # outside the era
    rows.append(qbr_row(2020, 1, "Patrick Mahomes", "KC", 90.0))
    rows.append(qbr_row(2018, 1, "Jared Goff", "LAR", 65.0))
    return make_table(rows)


@pytest.fixture
def mahomes_schedule():
    rows = [
        {"season": 2019, "game_week": 21, "game_type": "SB",
         "home_team": "SF", "away_team": "KC", "home_score": 20, "away_score": 31},
        {"season": 2019, "game_week": 1, "game_type": "REG",
         "home_team": "KC", "away_team": "DEN", "home_score": 24, "away_score": 24},
    ]
    return coerce_schedule_dtypes(pd.DataFrame(rows))
