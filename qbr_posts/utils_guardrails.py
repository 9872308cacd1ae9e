# qbr_posts/utils_guardrails.py
import pandas as pd

from qbr_posts.config import FIRST_QBR_SEASON, MAX_DISPLAY_WEEK

# ------------------------------
# Weekly QBR table guardrails
# ------------------------------

QBR_REQUIRED = {"season", "game_week", "name_display", "team", "qbr_total", "qb_plays"}
QBR_KEY = ["season", "game_week", "name_display", "team"]


def validate_qbr_table(df: pd.DataFrame) -> list[str]:
    errs: list[str] = []

    missing = QBR_REQUIRED - set(df.columns)
    if missing:
        errs.append(f"Missing columns: {sorted(missing)}")
        return errs

    if df.empty:
        return errs

    season = pd.to_numeric(df["season"], errors="coerce")
    if season.isna().any():
        errs.append("Non-numeric values in 'season'")
    elif (season < FIRST_QBR_SEASON).any():
        errs.append(f"'season' before {FIRST_QBR_SEASON} at rows: {season.index[season < FIRST_QBR_SEASON].tolist()[:10]}")

    # Super Bowl arrives as 17 + 5 and is only clamped at chart time
    wk = pd.to_numeric(df["game_week"], errors="coerce")
    if wk.isna().any():
        errs.append("Non-numeric values in 'game_week'")
    else:
        bad_wk = ~wk.between(1, MAX_DISPLAY_WEEK + 1)
        if bad_wk.any():
            errs.append(f"'game_week' outside 1..{MAX_DISPLAY_WEEK + 1} at rows: {wk.index[bad_wk].tolist()[:10]}")

    dup_mask = df.duplicated(subset=QBR_KEY, keep=False)
    if dup_mask.any():
        errs.append(f"Duplicate (season, game_week, player, team) rows: {dup_mask.index[dup_mask].tolist()[:10]}")

    if season.notna().all() and wk.notna().all():
        order = list(zip(season.tolist(), wk.tolist()))
        if order != sorted(order):
            errs.append("Rows are not sorted by (season, game_week)")

    qbr = pd.to_numeric(df["qbr_total"], errors="coerce")
    bad = qbr.notna() & ~qbr.between(0.0, 100.0)
    if bad.any():
        errs.append(f"qbr_total outside [0,100] at rows: {qbr.index[bad].tolist()[:10]}")

    return errs


# ------------------------------
# Schedule guardrails
# ------------------------------

def validate_schedule(df: pd.DataFrame) -> list[str]:
    errs: list[str] = []

    required = {"season", "game_week", "home_team", "away_team"}
    missing = required - set(df.columns)
    if missing:
        errs.append(f"Missing columns: {sorted(missing)}")
        return errs

    same = df["home_team"].astype(str).str.upper() == df["away_team"].astype(str).str.upper()
    if same.any():
        errs.append(f"home_team==away_team at rows: {same.index[same].tolist()[:10]}")

    home_dup = df.duplicated(subset=["season", "game_week", "home_team"], keep=False)
    away_dup = df.duplicated(subset=["season", "game_week", "away_team"], keep=False)
    dup_mask = home_dup | away_dup
    if dup_mask.any():
        errs.append(f"Team plays twice in one week at rows: {dup_mask.index[dup_mask].tolist()[:10]}")

    return errs
