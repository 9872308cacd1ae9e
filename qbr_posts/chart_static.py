# qbr_posts/chart_static.py
# ------------------------------------------------------------
# Single-season QBR chart (matplotlib):
#   week on x, QBR on y, line in the player's team color,
#   dashed percentile guides (solid median) labeled in the left margin,
#   opponent logo on every point.
# ------------------------------------------------------------
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import matplotlib.image as mpimg
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import requests
from matplotlib.figure import Figure
from matplotlib.offsetbox import AnnotationBbox, OffsetImage

from qbr_posts.chart_data import build_chart_series, chart_title, percentile_references
from qbr_posts.config import METRIC_COL, PLAYS_COL, REG_SEASON_WEEKS, REQUEST_TIMEOUT, X_AXIS_MIN

logger = logging.getLogger(__name__)

LogoLoader = Callable[[str], Optional[np.ndarray]]

LABEL_X = X_AXIS_MIN / 2
LOGO_ZOOM = 0.12


@dataclass
class StaticChart:
    figure: Figure
    series: pd.DataFrame
    references: pd.DataFrame
    title: str


# Successful decodes only; a failed download is retried on the next chart
_LOGO_CACHE: Dict[str, np.ndarray] = {}


def fetch_logo(url: str) -> Optional[np.ndarray]:
    """Download + decode a logo; a failed download or decode just means no logo on that point."""
    if url in _LOGO_CACHE:
        return _LOGO_CACHE[url]
    try:
        r = requests.get(url, timeout=REQUEST_TIMEOUT)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Logo download failed for %s: %s", url, e)
        return None
    fmt = url.rsplit(".", 1)[-1].lower()
    if fmt not in ("png", "jpg", "jpeg", "gif"):
        fmt = None
    try:
        img = mpimg.imread(io.BytesIO(r.content), format=fmt)
    except (OSError, ValueError, SyntaxError) as e:
        # PIL reports a bad PNG signature as SyntaxError
        logger.warning("Logo decode failed for %s: %s", url, e)
        return None
    _LOGO_CACHE[url] = img
    return img


def _color(value) -> Optional[str]:
    return None if pd.isna(value) else str(value)


def _draw_references(ax, references: pd.DataFrame) -> None:
    for ref in references.itertuples(index=False):
        if pd.isna(ref.value):
            continue
        ax.axhline(ref.value, color="grey", linewidth=1,
                   linestyle="-" if ref.is_median else "--", zorder=1)
        ax.text(LABEL_X, ref.value, ref.label, ha="center", va="bottom",
                fontsize=8, color="dimgrey")


def _draw_logos(ax, series: pd.DataFrame, metric_col: str, logo_loader: LogoLoader) -> int:
    placed = 0
    for row in series.itertuples(index=False):
        url = getattr(row, "opponent_logo")
        y = getattr(row, metric_col)
        if pd.isna(url) or pd.isna(y):
            continue
        img = logo_loader(str(url))
        if img is None:
            continue
        box = AnnotationBbox(OffsetImage(img, zoom=LOGO_ZOOM), (float(row.game_week), float(y)),
                             frameon=False, zorder=3)
        ax.add_artist(box)
        placed += 1
    return placed


def build_static_chart(table: pd.DataFrame, schedule: pd.DataFrame,
                       team_styles: pd.DataFrame, player: str, season: int,
                       logo_loader: LogoLoader = fetch_logo,
                       metric_col: str = METRIC_COL,
                       plays_col: str = PLAYS_COL,
                       metric_label: str = "QBR") -> StaticChart:
    series = build_chart_series(table, schedule, team_styles, player, season,
                                metric_col=metric_col, plays_col=plays_col)
    references = percentile_references(table, metric_col)
    max_week = series["game_week"].max() if not series.empty else None
    title = chart_title(player, (season, season), max_week)

    fig, ax = plt.subplots(figsize=(10, 6))

    _draw_references(ax, references)

    if not series.empty:
        color = _color(series["team_color"].dropna().iloc[0]) if series["team_color"].notna().any() else None
        ax.plot(series["game_week"].astype(float), series[metric_col].astype(float),
                color=color, linewidth=2, zorder=2)
        placed = _draw_logos(ax, series, metric_col, logo_loader)
        logger.debug("Placed %d/%d opponent logos for %s %s", placed, len(series), player, season)
    else:
        logger.info("No games for %s in %s; rendering an empty chart", player, season)

    last_week = max_week if max_week is not None and pd.notna(max_week) and max_week > REG_SEASON_WEEKS else REG_SEASON_WEEKS
    ax.set_xlim(X_AXIS_MIN, float(last_week) + 0.6)
    ax.set_ylim(0, 100)
    ax.set_xticks(range(1, int(last_week) + 1))
    ax.set_xlabel("Week")
    ax.set_ylabel(metric_label)
    ax.set_title(title)
    ax.grid(axis="y", alpha=0.2)
    fig.tight_layout()

    return StaticChart(figure=fig, series=series, references=references, title=title)
