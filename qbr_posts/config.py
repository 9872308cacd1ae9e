# qbr_posts/config.py
from qbr_posts.paths import QBR_DIR

QBR_PARQUET = QBR_DIR / "weekly_qbr.parquet"
QBR_CSV     = QBR_DIR / "weekly_qbr.csv"

# ESPN weekly QBR endpoint (seasontype 2 = regular season, 3 = postseason)
QBR_URL         = "https://site.web.api.espn.com/apis/fitt/v3/sports/football/nfl/qbr"
REQUEST_TIMEOUT = 30
MAX_WORKERS     = 8

FIRST_QBR_SEASON   = 2006
REG_SEASON_WEEKS   = 17
POST_SEASON_WEEKS  = (1, 2, 3, 5)   # ESPN week 4 is the Pro Bowl
MAX_DISPLAY_WEEK   = 21

# Columns every chart reads
METRIC_COL = "qbr_total"
PLAYS_COL  = "qb_plays"
PLAYER_COL = "name_display"

MIN_PLAYS = 20

PERCENTILES = {
    "10th": 0.10,
    "25th": 0.25,
    "Median": 0.50,
    "75th": 0.75,
    "90th": 0.90,
    "98th": 0.98,
}

X_AXIS_MIN    = -1.4
RANGE_WINDOW  = 30
SLIDER_COLOR  = "#f0f0f0"
SLIDER_THICKNESS = 0.08
