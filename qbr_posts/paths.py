# qbr_posts/paths.py
from pathlib import Path

# repo root = parent of /qbr_posts
REPO_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR  = REPO_ROOT / "data"
POSTS_DIR = REPO_ROOT / "posts"

# subfolders you use often
QBR_DIR       = DATA_DIR / "qbr"

def ensure_dirs():
    QBR_DIR.mkdir(parents=True, exist_ok=True)
    POSTS_DIR.mkdir(parents=True, exist_ok=True)
