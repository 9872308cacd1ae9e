# qbr_posts/utils_schema.py
from __future__ import annotations
import pandas as pd

"""
Coerce and enforce the weekly QBR, schedule and team-style schemas without dropping columns.
- Lowercases headers
- Ensures required columns exist (adds with NA defaults)
- Casts to nullable pandas dtypes so the Parquet snapshot round-trips losslessly
- Keeps a canonical front-of-file order and appends any provider passthrough columns at the end
"""

# Canonical front-of-file order (others are appended after)
QBR_ORDER = [
    # keys
    "season", "season_type", "game_week", "week",
    # identity
    "player_id", "name_display", "team",
    # metric & qualification
    "qbr_total", "qb_plays",
    # common passthrough
    "pts_added", "epa_total", "qbr_raw",
]

QBR_INT_COLS = ["season", "game_week", "week", "qb_plays"]
QBR_FLOAT_COLS = ["qbr_total", "pts_added", "epa_total", "qbr_raw"]
QBR_STRING_COLS = ["season_type", "player_id", "name_display", "team"]

SCHEDULE_ORDER = [
    "season", "game_week", "game_type",
    "home_team", "away_team", "home_score", "away_score", "result",
]

TEAM_STYLE_ORDER = ["team_abbr", "team_name", "team_color", "team_color2", "team_logo"]


def _normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.columns = out.columns.astype(str).str.strip().str.lower()
    return out


def _reorder(df: pd.DataFrame, order: list[str]) -> pd.DataFrame:
    preferred = [c for c in order if c in df.columns]
    extras = [c for c in df.columns if c not in order]
    return df[preferred + extras]


def coerce_qbr_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize weekly QBR types, preserve extras, and keep canonical column order."""
    if not isinstance(df, pd.DataFrame):
        raise TypeError("coerce_qbr_dtypes expects a pandas DataFrame")

    out = _normalize_headers(df)

    for c in QBR_ORDER:
        if c not in out.columns:
            out[c] = pd.NA

    for c in QBR_STRING_COLS:
        out[c] = out[c].astype("string")

    for c in QBR_INT_COLS:
        out[c] = pd.to_numeric(out[c], errors="coerce").astype("Int64")

    for c in QBR_FLOAT_COLS:
        out[c] = pd.to_numeric(out[c], errors="coerce").astype("Float64")

    return _reorder(out, QBR_ORDER)


def coerce_schedule_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    out = _normalize_headers(df)

    missing = {"season", "game_week", "home_team", "away_team"} - set(out.columns)
    if missing:
        raise ValueError(f"Schedule missing required columns: {sorted(missing)}")

    for c in ["home_score", "away_score", "result"]:
        if c not in out.columns:
            out[c] = pd.NA
    if "game_type" not in out.columns:
        out["game_type"] = "REG"

    for c in ["season", "game_week"]:
        out[c] = pd.to_numeric(out[c], errors="coerce").astype("Int64")
    for c in ["home_score", "away_score", "result"]:
        out[c] = pd.to_numeric(out[c], errors="coerce").astype("Float64")
    for c in ["game_type", "home_team", "away_team"]:
        out[c] = out[c].astype("string").str.strip().str.upper()

    # Older exports lack the margin column; derive it from the scores
    derived = out["home_score"] - out["away_score"]
    out["result"] = out["result"].fillna(derived)

    return _reorder(out, SCHEDULE_ORDER)


def coerce_team_styles(df: pd.DataFrame) -> pd.DataFrame:
    out = _normalize_headers(df)

    # nflverse names the ESPN logo column team_logo_espn
    if "team_logo" not in out.columns and "team_logo_espn" in out.columns:
        out = out.rename(columns={"team_logo_espn": "team_logo"})

    if "team_abbr" not in out.columns:
        raise ValueError(f"Team styles missing 'team_abbr'. Available: {list(out.columns)}")

    for c in TEAM_STYLE_ORDER:
        if c not in out.columns:
            out[c] = pd.NA
        out[c] = out[c].astype("string")

    out["team_abbr"] = out["team_abbr"].str.strip().str.upper()
    out = out.drop_duplicates(subset=["team_abbr"], keep="last")

    return _reorder(out, TEAM_STYLE_ORDER)
