# qbr_posts/chart_interactive.py
# ------------------------------------------------------------
# Multi-season QBR chart (plotly):
#   running game index on x so seasons sit side by side,
#   dotted marker where each new season starts,
#   hover card per game, percentile guides, range slider opened on
#   the most recent ~30 games. Opponent logos are layout images added
#   in a separate pass (apply_logo_overlays) from a plain descriptor list.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd
import plotly.graph_objects as go

from qbr_posts.chart_data import (
    build_chart_series,
    chart_title,
    percentile_references,
    season_boundaries,
)
from qbr_posts.config import (
    METRIC_COL,
    PLAYS_COL,
    RANGE_WINDOW,
    SLIDER_COLOR,
    SLIDER_THICKNESS,
)

logger = logging.getLogger(__name__)

LOGO_SIZE = 6.0  # QBR units; width is 0.9 games
LINE_FALLBACK = "#888"


@dataclass
class InteractiveChart:
    figure: go.Figure
    series: pd.DataFrame
    references: pd.DataFrame
    images: List[Dict[str, Any]] = field(default_factory=list)
    boundaries: List[int] = field(default_factory=list)
    range_window: Dict[str, float] = field(default_factory=dict)


def range_window(series: pd.DataFrame, window: int = RANGE_WINDOW) -> Dict[str, float]:
    """Initial x range: the last `window` games (whole era if shorter)."""
    if series.empty:
        return {"start": 0.5, "end": float(window) + 0.5}
    last = int(series["game_index"].max())
    start = max(1, last - window + 1)
    return {"start": start - 0.5, "end": last + 0.5}


def logo_overlays(series: pd.DataFrame, metric_col: str = METRIC_COL,
                  size: float = LOGO_SIZE) -> List[Dict[str, Any]]:
    images: List[Dict[str, Any]] = []
    for row in series.itertuples(index=False):
        url = getattr(row, "opponent_logo")
        y = getattr(row, metric_col)
        if pd.isna(url) or pd.isna(y):
            continue
        images.append(dict(
            source=str(url),
            xref="x", yref="y",
            x=int(row.game_index), y=float(y),
            sizex=0.9, sizey=size,
            xanchor="center", yanchor="middle",
            sizing="contain", layer="above",
        ))
    return images


def apply_logo_overlays(fig: go.Figure, images: List[Dict[str, Any]]) -> go.Figure:
    for img in images:
        fig.add_layout_image(img)
    return fig


def _line_color(series: pd.DataFrame) -> str:
    colors = series["team_color"].dropna() if "team_color" in series.columns else pd.Series(dtype="object")
    return str(colors.iloc[-1]) if not colors.empty else LINE_FALLBACK


def build_interactive_chart(table: pd.DataFrame, schedule: pd.DataFrame,
                            team_styles: pd.DataFrame, player: str,
                            first_year: int, last_year: int,
                            window: int = RANGE_WINDOW,
                            metric_col: str = METRIC_COL,
                            plays_col: str = PLAYS_COL,
                            metric_label: str = "QBR") -> InteractiveChart:
    series = build_chart_series(table, schedule, team_styles, player, first_year, last_year,
                                metric_col=metric_col, plays_col=plays_col)
    references = percentile_references(table, metric_col)
    boundaries = season_boundaries(series)
    max_week = series["game_week"].max() if not series.empty else None
    title = chart_title(player, (first_year, last_year), max_week)
    window_range = range_window(series, window)

    fig = go.Figure()

    if series.empty:
        logger.info("No games for %s in %s-%s; rendering an empty chart", player, first_year, last_year)
    else:
        fig.add_trace(go.Scatter(
            x=series["game_index"].astype(int),
            y=series[metric_col].astype(float),
            mode="lines+markers",
            name=player,
            line=dict(width=2, color=_line_color(series)),
            marker=dict(size=4),
            text=series["hover_text"],
            hovertemplate="%{text}<extra></extra>",
        ))

    for ref in references.itertuples(index=False):
        if pd.isna(ref.value):
            continue
        fig.add_hline(
            y=ref.value, line_width=1, line_color="grey",
            line_dash="solid" if ref.is_median else "dash",
            annotation_text=ref.label, annotation_position="top left",
        )

    for x in boundaries:
        fig.add_vline(x=x, line_width=1, line_dash="dot", line_color="black")

    fig.update_layout(
        template="plotly_white",
        title=dict(text=title, x=0.02, xanchor="left"),
        hovermode="closest",
        showlegend=False,
        xaxis=dict(
            title="Game",
            range=[window_range["start"], window_range["end"]],
            rangeslider=dict(visible=True, bgcolor=SLIDER_COLOR, thickness=SLIDER_THICKNESS),
            zeroline=False,
        ),
        yaxis=dict(title=metric_label, range=[0, 100], fixedrange=True),
        margin=dict(l=40, r=20, t=60, b=40),
    )

    images = logo_overlays(series, metric_col)
    return InteractiveChart(
        figure=fig, series=series, references=references,
        images=images, boundaries=boundaries, range_window=window_range,
    )
