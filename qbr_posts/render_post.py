#!/usr/bin/env python3
"""
render_post.py

Render the QBR chart artifacts for one post directory.

- Static (default): one season, PNG  -> posts/<post>/<player>-<season>.png
- Interactive:      season range, HTML -> posts/<post>/<player>-<start>-<end>.html

The weekly QBR table is read from the Parquet snapshot written by fetch_qbr_weekly;
schedules and team colors/logos come from nfl_data_py.

Run examples (from project root):
  python -m qbr_posts.render_post --player "Tom Brady" --season 2007 --post tom-brady-2007
  python -m qbr_posts.render_post --player "Patrick Mahomes" --start 2017 --end 2019 --interactive
"""

from __future__ import annotations
import argparse
import logging
import re
from pathlib import Path

import matplotlib.pyplot as plt

from qbr_posts.chart_data import filter_qualified
from qbr_posts.chart_interactive import apply_logo_overlays, build_interactive_chart
from qbr_posts.chart_static import build_static_chart, fetch_logo
from qbr_posts.config import MIN_PLAYS, QBR_PARQUET, RANGE_WINDOW
from qbr_posts.fetch_qbr_weekly import load_qbr_table
from qbr_posts.load_schedule import load_schedules, load_team_styles
from qbr_posts.paths import POSTS_DIR, ensure_dirs

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def render_static(table, schedule, styles, player: str, season: int, out_dir: Path,
                  logo_loader=fetch_logo) -> Path:
    chart = build_static_chart(table, schedule, styles, player, season, logo_loader=logo_loader)
    out_path = out_dir / f"{slugify(player)}-{season}.png"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    chart.figure.savefig(out_path, dpi=150)
    plt.close(chart.figure)
    logger.info("%s: %d games, title=%r", out_path.name, len(chart.series), chart.title)
    return out_path


def render_interactive(table, schedule, styles, player: str, start: int, end: int,
                       out_dir: Path, window: int = RANGE_WINDOW) -> Path:
    chart = build_interactive_chart(table, schedule, styles, player, start, end, window=window)
    fig = apply_logo_overlays(chart.figure, chart.images)
    out_path = out_dir / f"{slugify(player)}-{start}-{end}.html"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(out_path), include_plotlyjs="cdn")
    logger.info("%s: %d games, %d season markers", out_path.name, len(chart.series), len(chart.boundaries))
    return out_path


def parse_args():
    ap = argparse.ArgumentParser(description="Render weekly QBR charts for a post.")
    ap.add_argument("--player", required=True, help='Exact display name, e.g. "Tom Brady"')
    ap.add_argument("--season", type=int, help="Season for the static chart.")
    ap.add_argument("--start", type=int, help="First season for the interactive chart.")
    ap.add_argument("--end", type=int, help="Last season for the interactive chart.")
    ap.add_argument("--interactive", action="store_true")
    ap.add_argument("--table", type=str, default=str(QBR_PARQUET))
    ap.add_argument("--post", type=str, default=None, help="Post folder name under posts/ (default: player slug)")
    ap.add_argument("--post-dir", type=str, default=None, help="Explicit output folder (overrides --post)")
    ap.add_argument("--min-plays", type=int, default=MIN_PLAYS, help="Drop games below this play count (0 keeps all)")
    ap.add_argument("--window", type=int, default=RANGE_WINDOW, help="Games shown when the interactive chart opens")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    if args.interactive:
        if args.start is None or args.end is None:
            raise SystemExit("--interactive requires --start and --end")
        if args.start > args.end:
            raise SystemExit("--start must be <= --end")
    elif args.season is None:
        raise SystemExit("Provide --season (static) or --interactive --start/--end.")
    return args


def main():
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ensure_dirs()

    table = load_qbr_table(Path(args.table))
    if args.min_plays > 0:
        table = filter_qualified(table, args.min_plays)

    out_dir = Path(args.post_dir) if args.post_dir else POSTS_DIR / (args.post or slugify(args.player))

    styles = load_team_styles()
    if args.interactive:
        schedule = load_schedules(range(args.start, args.end + 1))
        out = render_interactive(table, schedule, styles, args.player, args.start, args.end,
                                 out_dir, window=args.window)
    else:
        schedule = load_schedules([args.season])
        out = render_static(table, schedule, styles, args.player, args.season, out_dir)

    print(f"✅ Chart saved to: {out.as_posix()}")


if __name__ == "__main__":
    main()
