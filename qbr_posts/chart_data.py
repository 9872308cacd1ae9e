# qbr_posts/chart_data.py
# ------------------------------------------------------------
# Shared table work for the QBR charts:
#   filter one player -> normalize team codes -> clamp playoff weeks
#   -> join schedule (opponent, score) -> join team styles (color, logo)
#   -> running game index + hover text.
# Percentile cut lines always come from the WHOLE table, never the selection.
# ------------------------------------------------------------
from __future__ import annotations

from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from qbr_posts.config import (
    MAX_DISPLAY_WEEK,
    METRIC_COL,
    MIN_PLAYS,
    PERCENTILES,
    PLAYER_COL,
    PLAYS_COL,
    REG_SEASON_WEEKS,
)
from qbr_posts.hover_text import GameHover, derive_outcome, format_hover
from qbr_posts.team_aliases import is_multi_team, normalize_team_series

SERIES_COLUMNS = [
    "season", "game_week", "game_index", "team", "opponent", "is_home",
    "home_score", "away_score", "result", "team_color", "opponent_logo",
    "opponent_color", "outcome", "hover_text",
]


def clamp_week(week, max_week: int = MAX_DISPLAY_WEEK):
    """Cap postseason weeks at the last displayable week; works on scalars and Series."""
    if isinstance(week, pd.Series):
        return week.clip(upper=max_week)
    return min(week, max_week)


def normalize_team_codes(df: pd.DataFrame, cols: Iterable[str] = ("team",)) -> pd.DataFrame:
    out = df.copy()
    for c in cols:
        if c in out.columns:
            out[c] = normalize_team_series(out[c])
    return out


def drop_multi_team_rows(df: pd.DataFrame, col: str = "team") -> pd.DataFrame:
    # "DEN/KC" style labels cannot be joined to a schedule; drop them
    keep = ~df[col].map(is_multi_team).astype(bool)
    return df.loc[keep].copy()


def filter_qualified(df: pd.DataFrame, min_plays: int = MIN_PLAYS,
                     plays_col: str = PLAYS_COL) -> pd.DataFrame:
    plays = pd.to_numeric(df[plays_col], errors="coerce")
    return df.loc[plays >= min_plays].copy()


def select_player_games(table: pd.DataFrame, player: str, first_season: int,
                        last_season: Optional[int] = None,
                        player_col: str = PLAYER_COL) -> pd.DataFrame:
    """Exact-name rows for one player across [first_season, last_season], chronological."""
    last_season = first_season if last_season is None else last_season
    season = pd.to_numeric(table["season"], errors="coerce")
    in_range = season.between(first_season, last_season).fillna(False)
    mask = (table[player_col] == player).fillna(False) & in_range
    games = table.loc[mask.astype(bool)].copy()

    games = drop_multi_team_rows(games)
    games = normalize_team_codes(games)
    games["game_week"] = clamp_week(pd.to_numeric(games["game_week"], errors="coerce"))
    games = games.sort_values(["season", "game_week"], kind="mergesort").reset_index(drop=True)
    return games


def schedule_by_team(schedule: pd.DataFrame) -> pd.DataFrame:
    """One row per (season, game_week, team) with the opponent and the home flag."""
    base = ["season", "game_week", "home_score", "away_score", "result"]
    home = schedule[base + ["home_team", "away_team"]].rename(
        columns={"home_team": "team", "away_team": "opponent"})
    home["is_home"] = True
    away = schedule[base + ["away_team", "home_team"]].rename(
        columns={"away_team": "team", "home_team": "opponent"})
    away["is_home"] = False

    long = pd.concat([home, away], ignore_index=True)
    long = normalize_team_codes(long, ("team", "opponent"))
    long["season"] = pd.to_numeric(long["season"], errors="coerce").astype("Int64")
    long["game_week"] = pd.to_numeric(long["game_week"], errors="coerce").astype("Int64")
    return long.drop_duplicates(subset=["season", "game_week", "team"], keep="first")


def attach_opponents(games: pd.DataFrame, schedule: pd.DataFrame) -> pd.DataFrame:
    out = games.copy()
    for c in ["season", "game_week"]:
        out[c] = pd.to_numeric(out[c], errors="coerce").astype("Int64")
    out["team"] = out["team"].astype("string")
    sched = schedule_by_team(schedule)
    sched["team"] = sched["team"].astype("string")
    return out.merge(sched, on=["season", "game_week", "team"], how="left")


def attach_team_styles(games: pd.DataFrame, team_styles: pd.DataFrame) -> pd.DataFrame:
    styles = team_styles[["team_abbr", "team_color", "team_logo"]].copy()
    styles["team_abbr"] = styles["team_abbr"].astype("string")

    own = styles[["team_abbr", "team_color"]].rename(columns={"team_abbr": "team"})
    opp = styles.rename(columns={
        "team_abbr": "opponent", "team_color": "opponent_color", "team_logo": "opponent_logo",
    })

    out = games.copy()
    out["team"] = out["team"].astype("string")
    if "opponent" not in out.columns:
        out["opponent"] = pd.NA
    out["opponent"] = out["opponent"].astype("string")
    out = out.merge(own, on="team", how="left")
    out = out.merge(opp, on="opponent", how="left")
    return out


def percentile_references(table: pd.DataFrame, metric_col: str = METRIC_COL,
                          levels: Mapping[str, float] = PERCENTILES) -> pd.DataFrame:
    """Cut values over the full metric distribution (NaN when the table is empty)."""
    values = pd.to_numeric(table[metric_col], errors="coerce").dropna().to_numpy(dtype=float)
    rows = []
    for label, q in levels.items():
        value = float(np.quantile(values, q)) if values.size else float("nan")
        rows.append({"label": label, "quantile": q, "value": value, "is_median": q == 0.5})
    return pd.DataFrame(rows)


def assign_game_index(games: pd.DataFrame) -> pd.DataFrame:
    out = games.sort_values(["season", "game_week"], kind="mergesort").reset_index(drop=True)
    out["game_index"] = np.arange(1, len(out) + 1)
    return out


def season_boundaries(games: pd.DataFrame) -> list[int]:
    """game_index of the first game of each season after the first one."""
    if games.empty:
        return []
    ordered = games.sort_values("game_index")
    starts = ordered["season"].ne(ordered["season"].shift())
    starts.iloc[0] = False
    return [int(i) for i in ordered.loc[starts, "game_index"]]


def chart_title(player: str, seasons: tuple[int, int], max_week) -> str:
    first, last = seasons
    span = f"{first}" if first == last else f"{first}-{last}"
    playoffs = pd.notna(max_week) and max_week > REG_SEASON_WEEKS
    suffix = "including Playoffs" if playoffs else "Regular Season"
    return f"{player} weekly QBR, {span} {suffix}"


def _hover_for_row(row: pd.Series, metric_col: str, plays_col: str) -> str:
    return format_hover(GameHover(
        season=int(row["season"]),
        game_week=int(row["game_week"]),
        metric=row[metric_col],
        plays=row.get(plays_col),
        opponent=row.get("opponent"),
        is_home=row.get("is_home"),
        home_score=row.get("home_score"),
        away_score=row.get("away_score"),
        outcome=row.get("outcome"),
    ))


def build_chart_series(table: pd.DataFrame, schedule: pd.DataFrame,
                       team_styles: pd.DataFrame, player: str,
                       first_season: int, last_season: Optional[int] = None,
                       metric_col: str = METRIC_COL,
                       plays_col: str = PLAYS_COL) -> pd.DataFrame:
    """ChartSeries: one joined, indexed, hover-annotated row per selected game."""
    games = select_player_games(table, player, first_season, last_season)
    games = attach_opponents(games, schedule)
    games = attach_team_styles(games, team_styles)
    games = assign_game_index(games)

    if games.empty:
        for c in SERIES_COLUMNS:
            if c not in games.columns:
                games[c] = pd.Series(dtype="object")
        return games

    games["outcome"] = [
        derive_outcome(h, m) for h, m in zip(games["is_home"], games["result"])
    ]
    games["hover_text"] = games.apply(_hover_for_row, axis=1, args=(metric_col, plays_col))
    return games
