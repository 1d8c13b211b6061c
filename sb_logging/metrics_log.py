"""Lightweight metrics logging using Polars."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import polars as pl

LOG_DIR = Path("logs")


def _align(frames: List[pl.DataFrame]) -> List[pl.DataFrame]:
    """Give every frame the union of columns; clashing dtypes become Utf8 or Float64."""
    all_cols = sorted({c for f in frames for c in f.columns})
    target: Dict[str, Any] = {}
    for c in all_cols:
        dtypes = {f.schema[c] for f in frames if c in f.columns}
        if len(dtypes) == 1:
            target[c] = dtypes.pop()
        elif any(dt == pl.Utf8 for dt in dtypes):
            target[c] = pl.Utf8
        else:
            target[c] = pl.Float64
    out: List[pl.DataFrame] = []
    for f in frames:
        cols = []
        for c in all_cols:
            if c in f.columns:
                cols.append(pl.col(c).cast(target[c]))
            else:
                cols.append(pl.lit(None, dtype=target[c]).alias(c))
        out.append(f.select(cols))
    return out


def log_records(name: str, records: List[Dict[str, Any]]) -> Path:
    """Append records to a CSV file under logs/.

    Args:
        name: Base filename without extension.
        records: List of dict rows.
    Returns:
        Path to the written CSV file.
    """
    assert isinstance(name, str) and len(name) > 0, "Invalid log name"
    assert isinstance(records, list), "records must be a list"
    out = LOG_DIR / f"{name}.csv"
    if not records:
        return out
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    df = pl.DataFrame(records)
    if out.exists():
        prev = pl.read_csv(out)
        try:
            df = pl.concat([prev, df], how="vertical_relaxed")
        except pl.exceptions.PolarsError:
            # column sets differ between runs
            df = pl.concat(_align([prev, df]), how="vertical")
    df.write_csv(out)
    return out


def log_record(name: str, record: Dict[str, Any]) -> Path:
    """Append a single record to a CSV file."""
    return log_records(name, [record])
