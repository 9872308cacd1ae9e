#!/usr/bin/env python3
"""
fetch_qbr_weekly.py

Collect ESPN weekly QBR for every (season, week) in a range and persist it for the posts.

Features:
- One request per (season, season_type, week); requests run in a thread pool and are
  concatenated in whatever order they finish, then sorted by (season, game_week).
- Postseason weeks are mapped onto the regular-season axis: Wild Card 18, Divisional 19,
  Conference 20, Super Bowl 22 (ESPN week 4 is the Pro Bowl and is never requested).
- Weeks with no data (future weeks, seasons before 2006) come back empty and are skipped.
- A failed request is logged and reported at the end; it never aborts the batch.

Outputs (under data/qbr/):
- weekly_qbr.parquet   # lossless snapshot, reloaded by render_post
- weekly_qbr.csv       # plain export for inspection

Run examples (from project root):
  python -m qbr_posts.fetch_qbr_weekly --season 2020
  python -m qbr_posts.fetch_qbr_weekly --start 2006 --end 2020 --workers 12 --show
"""

from __future__ import annotations
import argparse
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

import pandas as pd
import requests

from qbr_posts.config import (
    FIRST_QBR_SEASON,
    MAX_WORKERS,
    POST_SEASON_WEEKS,
    QBR_CSV,
    QBR_PARQUET,
    QBR_URL,
    REG_SEASON_WEEKS,
    REQUEST_TIMEOUT,
)
from qbr_posts.paths import ensure_dirs
from qbr_posts.utils_guardrails import QBR_KEY, validate_qbr_table
from qbr_posts.utils_io import read_table, snapshot_file, write_csv_atomic, write_parquet_atomic
from qbr_posts.utils_schema import coerce_qbr_dtypes

logger = logging.getLogger(__name__)

SEASON_TYPES = {"REG": 2, "POST": 3}

# Provider category name candidates -> canonical column
CATEGORY_CANDIDATES: Dict[str, List[str]] = {
    "qbr_total": ["totalQBR", "schedAdjQBR", "qbr", "tqbr"],
    "pts_added": ["pointsAdded", "paa", "pa"],
    "qb_plays":  ["qbPlays", "actionPlays", "plays", "qbp"],
    "epa_total": ["totalEPA", "epa", "tot"],
    "pass":      ["passEPA", "pass"],
    "run":       ["runEPA", "run"],
    "sack":      ["sackEPA", "sack"],
    "penalty":   ["penaltyEPA", "penalty", "pen"],
    "qbr_raw":   ["rawQBR", "raw"],
}


class ProviderError(RuntimeError):
    """The QBR provider could not be reached or answered with garbage."""


class WeekKey(NamedTuple):
    season: int
    season_type: str  # "REG" or "POST"
    week: int         # provider week number

    @property
    def game_week(self) -> int:
        if self.season_type == "POST":
            return REG_SEASON_WEEKS + self.week
        return self.week


def build_week_keys(seasons: Iterable[int], include_playoffs: bool = True) -> List[WeekKey]:
    keys: List[WeekKey] = []
    for season in sorted(set(int(s) for s in seasons)):
        if season < FIRST_QBR_SEASON:
            logger.info("Skipping %s: QBR starts in %s", season, FIRST_QBR_SEASON)
            continue
        keys.extend(WeekKey(season, "REG", wk) for wk in range(1, REG_SEASON_WEEKS + 1))
        if include_playoffs:
            keys.extend(WeekKey(season, "POST", wk) for wk in POST_SEASON_WEEKS)
    return keys


# ---------- Payload parsing ----------

def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _canonical_names(names: List[str]) -> List[str]:
    lookup = {}
    for canon, cands in CATEGORY_CANDIDATES.items():
        for cand in cands:
            lookup.setdefault(cand.lower(), canon)
    return [lookup.get(str(n).lower(), _snake(str(n))) for n in names]


def parse_qbr_payload(payload: Dict[str, Any], key: WeekKey) -> pd.DataFrame:
    """
    Flatten one provider response into canonical rows (empty frame when no athletes).
    A body of the wrong shape raises ProviderError so the batch treats it as a failed week.
    """
    if not isinstance(payload, dict):
        raise ProviderError(f"Malformed QBR payload for {key}: expected an object, got {type(payload).__name__}")
    athletes = payload.get("athletes") or []
    if not athletes:
        return pd.DataFrame()

    try:
        categories = payload.get("categories") or [{}]
        names = _canonical_names(categories[0].get("names") or [])

        rows = []
        for entry in athletes:
            athlete = entry.get("athlete") or {}
            totals = ((entry.get("categories") or [{}])[0].get("totals")) or []
            row = {
                "season": key.season,
                "season_type": key.season_type,
                "game_week": key.game_week,
                "week": key.week,
                "player_id": athlete.get("id"),
                "name_display": athlete.get("displayName"),
                "team": athlete.get("teamShortName") or athlete.get("teamAbbrev"),
            }
            for name, value in zip(names, totals):
                row[name] = value
            rows.append(row)
    except (AttributeError, TypeError, IndexError, KeyError) as e:
        raise ProviderError(f"Malformed QBR payload for {key}: {e}") from e

    return pd.DataFrame(rows)


# ---------- Fetch ----------

def fetch_week(key: WeekKey, session: Optional[requests.Session] = None,
               timeout: int = REQUEST_TIMEOUT) -> pd.DataFrame:
    params = {
        "region": "us",
        "lang": "en",
        "qbrType": "weeks",
        "seasontype": SEASON_TYPES[key.season_type],
        "isqualified": "true",
        "sort": "schedAdjQBR:desc",
        "season": key.season,
        "week": key.week,
        "limit": 200,
    }
    getter = session.get if session is not None else requests.get
    try:
        r = getter(QBR_URL, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise ProviderError(f"QBR request failed for {key}: {e}") from e

    if r.status_code == 404:
        logger.debug("No QBR page for %s", key)
        return pd.DataFrame()
    try:
        r.raise_for_status()
        payload = r.json()
    except (requests.HTTPError, ValueError) as e:
        raise ProviderError(f"Bad QBR response for {key}: {e}") from e

    return parse_qbr_payload(payload, key)


def collect_weekly_qbr(keys: Iterable[WeekKey],
                       fetch: Callable[[WeekKey], pd.DataFrame] = fetch_week,
                       max_workers: int = MAX_WORKERS) -> Tuple[pd.DataFrame, List[WeekKey]]:
    """
    Fan out one fetch per key, fan the frames back in.

    Returns:
      table: deduplicated on (season, game_week, name_display, team), sorted by (season, game_week)
      failed: keys whose request raised ProviderError
    """
    keys = list(keys)
    frames: List[pd.DataFrame] = []
    failed: List[WeekKey] = []
    empty = 0

    with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as pool:
        futures = {pool.submit(fetch, key): key for key in keys}
        for fut in as_completed(futures):
            key = futures[fut]
            try:
                df = fut.result()
            except ProviderError as e:
                logger.warning("%s", e)
                failed.append(key)
                continue
            if df is None or df.empty:
                empty += 1
                continue
            frames.append(df)

    logger.info("Fetched %d weeks: %d with data, %d empty, %d failed",
                len(keys), len(frames), empty, len(failed))

    if not frames:
        return coerce_qbr_dtypes(pd.DataFrame()), sorted(failed)

    table = pd.concat(frames, ignore_index=True)
    table = coerce_qbr_dtypes(table)
    table = table.drop_duplicates(subset=QBR_KEY, keep="last")
    table = table.sort_values(["season", "game_week"], kind="mergesort").reset_index(drop=True)
    return table, sorted(failed)


# ---------- Persistence ----------

def save_qbr_table(df: pd.DataFrame, parquet_path: Path = QBR_PARQUET,
                   csv_path: Path = QBR_CSV) -> Tuple[Path, Path]:
    errs = validate_qbr_table(df)
    if errs:
        raise ValueError("Refusing to write corrupted QBR table:\n- " + "\n- ".join(errs))

    snapshot_file(parquet_path)
    pq_out = write_parquet_atomic(df, parquet_path)
    csv_out = write_csv_atomic(df, csv_path)
    return pq_out, csv_out


def load_qbr_table(path: Path = QBR_PARQUET) -> pd.DataFrame:
    return coerce_qbr_dtypes(read_table(path))


# ---------- CLI ----------

def parse_args():
    ap = argparse.ArgumentParser(description="Collect ESPN weekly QBR for a range of seasons.")
    ap.add_argument("--season", type=int, help="Single season (e.g., 2020).")
    ap.add_argument("--start", type=int, help="Start season for a range (inclusive).")
    ap.add_argument("--end", type=int, help="End season for a range (inclusive).")
    ap.add_argument("--no-playoffs", action="store_true", help="Skip postseason weeks.")
    ap.add_argument("--workers", type=int, default=MAX_WORKERS, help="Concurrent requests.")
    ap.add_argument("--out-parquet", type=str, default=str(QBR_PARQUET))
    ap.add_argument("--out-csv", type=str, default=str(QBR_CSV))
    ap.add_argument("--show", action="store_true", help="Print a small preview after writing")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    seasons: list[int] = []
    if args.season is not None:
        seasons.append(args.season)
    if args.start is not None or args.end is not None:
        if args.start is None or args.end is None:
            raise SystemExit("Provide both --start and --end for a range.")
        seasons.extend(range(int(args.start), int(args.end) + 1))
    if not seasons:
        raise SystemExit("Provide --season or --start/--end.")

    return args, sorted(set(seasons))


def main():
    args, seasons = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ensure_dirs()

    keys = build_week_keys(seasons, include_playoffs=not args.no_playoffs)
    with requests.Session() as session:
        table, failed = collect_weekly_qbr(
            keys,
            fetch=lambda key: fetch_week(key, session=session),
            max_workers=args.workers,
        )

    if table.empty:
        raise SystemExit(f"No QBR rows returned for seasons {seasons}.")

    pq_out, csv_out = save_qbr_table(table, Path(args.out_parquet), Path(args.out_csv))
    print(f"✅ Wrote {len(table):,} rows → {pq_out.as_posix()}")
    print(f"   CSV export → {csv_out.as_posix()}")
    if failed:
        print(f"⚠️ {len(failed)} week(s) failed: " + ", ".join(f"{k.season} {k.season_type} wk{k.week}" for k in failed))

    if args.show:
        print("\nPreview:")
        print(table.head(10).to_string(index=False))


if __name__ == "__main__":
    main()
