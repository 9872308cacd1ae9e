# qbr_posts/team_aliases.py
from __future__ import annotations

import pandas as pd

# Provider codes -> codes used by nflverse schedules and team styles
ALIASES = {
    "LAR": "LA",
    "WSH": "WAS",
}

# Traded players show up as "DEN/KC"; real codes are 2-3 characters
MAX_CODE_LEN = 3


def norm_team(x: str) -> str:
    if not isinstance(x, str):
        return x
    t = x.strip().upper()
    t = ALIASES.get(t, t)
    return t


def is_multi_team(x: str) -> bool:
    return isinstance(x, str) and len(x.strip()) > MAX_CODE_LEN


def normalize_team_series(s: pd.Series) -> pd.Series:
    return s.map(norm_team)
