"""
load_schedule.py

Schedules and team colors/logos from nflverse (via nfl_data_py), shaped for the chart joins.

- Postseason rounds are put on the same week axis as the QBR table:
  WC -> 18, DIV -> 19, CON -> 20, SB -> 21.
- `result` is the home margin (home_score - away_score).
- Team styles keep one row per team_abbr with color and ESPN logo URL.

Run:
  python -m qbr_posts.load_schedule --start 2017 --end 2019 --show
"""

from __future__ import annotations
import argparse
import logging
from typing import Iterable

import pandas as pd

from qbr_posts.config import REG_SEASON_WEEKS
from qbr_posts.utils_guardrails import validate_schedule
from qbr_posts.utils_schema import coerce_schedule_dtypes, coerce_team_styles

logger = logging.getLogger(__name__)

PLAYOFF_GAME_WEEKS = {
    "WC": REG_SEASON_WEEKS + 1,
    "DIV": REG_SEASON_WEEKS + 2,
    "CON": REG_SEASON_WEEKS + 3,
    "SB": REG_SEASON_WEEKS + 4,
}


def _nfl():
    # Dependency: pip install nfl-data-py
    try:
        import nfl_data_py as nfl
    except ImportError as e:
        raise SystemExit(
            "Missing dependency: nfl_data_py\nInstall with: pip install nfl-data-py"
        ) from e
    return nfl


def _safe_import_schedules(seasons: list[int]) -> pd.DataFrame:
    nfl = _nfl()
    try:
        df = nfl.import_schedules(seasons)
    except Exception as e:
        raise RuntimeError(f"nfl_data_py failed to load schedules for {seasons}: {e}") from e
    if not isinstance(df, pd.DataFrame) or df.empty:
        raise RuntimeError(f"No schedule data returned for seasons {seasons}.")
    return df


def _safe_import_team_desc() -> pd.DataFrame:
    nfl = _nfl()
    try:
        df = nfl.import_team_desc()
    except Exception as e:
        raise RuntimeError(f"nfl_data_py failed to load team descriptions: {e}") from e
    if not isinstance(df, pd.DataFrame) or df.empty:
        raise RuntimeError("No team description data returned.")
    return df


def normalize_schedule(raw: pd.DataFrame) -> pd.DataFrame:
    """nflverse schedule -> ScheduleRecord frame keyed by (season, game_week)."""
    df = raw.copy()
    df.columns = df.columns.astype(str).str.strip().str.lower()

    if "game_week" not in df.columns:
        if "week" not in df.columns:
            raise ValueError(f"Schedule has neither 'week' nor 'game_week'. Available: {list(df.columns)}")
        game_type = df.get("game_type", pd.Series("REG", index=df.index)).astype(str).str.upper()
        week = pd.to_numeric(df["week"], errors="coerce")
        df["game_week"] = game_type.map(PLAYOFF_GAME_WEEKS).fillna(week)
        df["game_type"] = game_type

    out = coerce_schedule_dtypes(df)

    errs = validate_schedule(out)
    for err in errs:
        logger.warning("Schedule check: %s", err)

    return out


def load_schedules(seasons: Iterable[int]) -> pd.DataFrame:
    seasons = sorted(set(int(s) for s in seasons))
    return normalize_schedule(_safe_import_schedules(seasons))


def load_team_styles() -> pd.DataFrame:
    return coerce_team_styles(_safe_import_team_desc())


def main():
    ap = argparse.ArgumentParser(description="Preview the schedule/team-style frames used by the charts.")
    ap.add_argument("--start", type=int, required=True)
    ap.add_argument("--end", type=int, required=True)
    ap.add_argument("--show", action="store_true")
    args = ap.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    sched = load_schedules(range(args.start, args.end + 1))
    styles = load_team_styles()
    print(f"✅ Schedule rows: {len(sched):,} | teams with styles: {len(styles)}")
    if args.show:
        print(sched.head(10).to_string(index=False))
        print(styles.head(10).to_string(index=False))


if __name__ == "__main__":
    main()
