# qbr_posts/utils_io.py
from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional, Union

import pandas as pd

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def timestamp() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


# ---------- Guards ----------

def assert_not_readonly(path: PathLike) -> None:
    """
    On Windows, raise if the target file exists and has the Read-only attribute set.
    On non-Windows, this silently passes.
    """
    p = Path(path)
    if not p.exists():
        return
    try:
        # Windows-only attribute; will raise AttributeError elsewhere
        if p.stat().st_file_attributes & stat.FILE_ATTRIBUTE_READONLY:  # type: ignore[attr-defined]
            raise PermissionError(
                f"{p} is Read-only. Clear it and retry.\n"
                f'PowerShell: attrib -R "{p}"'
            )
    except AttributeError:
        return


# ---------- Snapshots ----------

def snapshot_file(path: PathLike, *, suffix: str = "prewrite",
                  snapshots_dir: Optional[PathLike] = None) -> Optional[Path]:
    """
    If `path` exists, copy it to a sibling `_snapshots` folder with a timestamped name:
    e.g., weekly_qbr.parquet -> _snapshots/weekly_qbr_prewrite_YYYYMMDD_HHMMSS.parquet
    Returns the snapshot path if created, else None.
    """
    src = Path(path)
    if not src.exists():
        return None

    snap_dir = Path(snapshots_dir) if snapshots_dir else src.parent / "_snapshots"
    snap_dir.mkdir(parents=True, exist_ok=True)

    dst = snap_dir / f"{src.stem}_{suffix}_{timestamp()}{src.suffix}"
    shutil.copy2(src, dst)
    logger.debug("Snapshot %s -> %s", src, dst)
    return dst


# ---------- Atomic writes ----------

def _write_atomic(path: PathLike, writer: Callable[[str], None]) -> Path:
    """
    Write through a temp file in the target directory, then os.replace() it
    onto the destination so readers never see a half-written file.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    assert_not_readonly(target)

    tmp_name: Optional[str] = None
    try:
        tmp = tempfile.NamedTemporaryFile(delete=False, dir=target.parent, suffix=".tmp")
        tmp_name = tmp.name
        tmp.close()  # allow pandas/pyarrow to open it on Windows

        writer(tmp_name)
        os.replace(tmp_name, target)
        return target
    except PermissionError as e:
        raise PermissionError(
            f"Permission denied writing {target}.\n"
            "Is it open in another program or marked Read-only? Close/unlock and retry."
        ) from e
    finally:
        if tmp_name and os.path.exists(tmp_name):
            os.remove(tmp_name)


def write_csv_atomic(df: pd.DataFrame, path: PathLike, *,
                     index: bool = False,
                     encoding: str = "utf-8") -> Path:
    return _write_atomic(path, lambda tmp: df.to_csv(tmp, index=index, encoding=encoding))


def write_parquet_atomic(df: pd.DataFrame, path: PathLike) -> Path:
    # pyarrow keeps nullable ints/strings intact, which the CSV export cannot
    return _write_atomic(path, lambda tmp: df.to_parquet(tmp, index=False, engine="pyarrow"))


# ---------- Reads ----------

def read_table(path: PathLike, **kwargs) -> pd.DataFrame:
    """
    Load a Parquet or CSV file by suffix:
      - Ensures file exists
      - Parquet goes through pyarrow to avoid nested-column block errors
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Table not found: {p}")
    try:
        if p.suffix.lower() == ".parquet":
            import pyarrow.parquet as pq

            return pq.read_table(p).to_pandas(strings_to_categorical=False)
        return pd.read_csv(p, **kwargs)
    except (OSError, ValueError) as e:
        raise RuntimeError(f"Error reading {p}: {e}") from e
