# qbr_posts/hover_text.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from qbr_posts.config import REG_SEASON_WEEKS

WEEK_LABELS = {
    REG_SEASON_WEEKS + 1: "Wild Card",
    REG_SEASON_WEEKS + 2: "Divisional Round",
    REG_SEASON_WEEKS + 3: "Conference Championship",
    REG_SEASON_WEEKS + 4: "Super Bowl",
}


def _missing(x) -> bool:
    return x is None or (pd.api.types.is_scalar(x) and bool(pd.isna(x)))


def week_label(week) -> str:
    if _missing(week):
        return "Regular Season"
    return WEEK_LABELS.get(int(week), "Regular Season")


def derive_outcome(is_home, margin) -> Optional[str]:
    """
    Result from the subject's side and the home margin (home_score - away_score).
    Returns None when the side or the margin is unknown.
    """
    if _missing(is_home) or _missing(margin):
        return None
    if margin == 0:
        return "Tie"
    if is_home is True or is_home == 1:
        return "Won" if margin > 0 else "Lost"
    if is_home is False or is_home == 0:
        return "Lost" if margin > 0 else "Won"
    return None


@dataclass(frozen=True)
class GameHover:
    season: int
    game_week: int
    metric: float
    plays: Optional[int] = None
    opponent: Optional[str] = None
    is_home: Optional[bool] = None
    home_score: Optional[float] = None
    away_score: Optional[float] = None
    outcome: Optional[str] = None


def _score(record: GameHover) -> str:
    if _missing(record.home_score) or _missing(record.away_score) or _missing(record.is_home):
        return "n/a"
    home, away = int(record.home_score), int(record.away_score)
    own, opp = (home, away) if record.is_home else (away, home)
    return f"{own}-{opp}"


def format_hover(record: GameHover, metric_label: str = "QBR") -> str:
    lines = [
        f"Season: {record.season}",
        f"Week: {record.game_week} ({week_label(record.game_week)})",
    ]
    if not _missing(record.opponent):
        side = "vs" if record.is_home else "@"
        lines.append(f"Opponent: {side} {record.opponent}")
    lines.append(f"Result: {record.outcome or 'Unknown'}")
    lines.append(f"Final score: {_score(record)}")
    if _missing(record.is_home):
        lines.append("Home/Away: Unknown")
    else:
        lines.append(f"Home/Away: {'Home' if record.is_home else 'Away'}")
    metric = "n/a" if _missing(record.metric) else f"{float(record.metric):.1f}"
    lines.append(f"{metric_label}: {metric}")
    plays = "n/a" if _missing(record.plays) else f"{int(record.plays)}"
    lines.append(f"Plays: {plays}")
    return "<br>".join(lines)
