"""
Score normalization and fixed-threshold bucketing.

Polarity bands: Positive (> 0.1), Negative (< -0.1), Neutral otherwise.
Subjectivity bands: Subjective (> 0.5), Objective otherwise.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from sentiment_hub.enrich import extract_text, is_missing
from sentiment_hub.errors import MissingColumnsError

logger = logging.getLogger(__name__)

POLARITY_THRESHOLD = 0.1
SUBJECTIVITY_THRESHOLD = 0.5

POLARITY_LABELS = ("Positive", "Neutral", "Negative")
SUBJECTIVITY_LABELS = ("Subjective", "Objective")
CATEGORY_LABELS = tuple(f"{p} & {s}" for p in POLARITY_LABELS for s in SUBJECTIVITY_LABELS)


def polarity_label(p: float) -> str:
    if p > POLARITY_THRESHOLD:
        return "Positive"
    if p < -POLARITY_THRESHOLD:
        return "Negative"
    return "Neutral"


def subjectivity_label(s: float) -> str:
    if s > SUBJECTIVITY_THRESHOLD:
        return "Subjective"
    return "Objective"


def category_label(p: float, s: float) -> str:
    return f"{polarity_label(p)} & {subjectivity_label(s)}"


def find_column(df: pd.DataFrame, name: str) -> Optional[str]:
    """Exact match first, then case-insensitive."""
    if name in df.columns:
        return name
    return next((c for c in df.columns if str(c).strip().lower() == name), None)


def coerce_score(value) -> float:
    """Missing or blank counts as 0; anything else non-numeric becomes NaN."""
    if is_missing(value):
        return 0.0
    if isinstance(value, (bool, np.bool_)):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def _display_text(row) -> str:
    existing = row.get("_text")
    if not is_missing(existing) and str(existing).strip():
        return str(existing)
    return extract_text(row) or "N/A"


def has_score_columns(df: pd.DataFrame) -> bool:
    return find_column(df, "polarity") is not None and find_column(df, "subjectivity") is not None


def normalize_scores(df: pd.DataFrame) -> pd.DataFrame:
    pol_col = find_column(df, "polarity")
    subj_col = find_column(df, "subjectivity")
    if pol_col is None or subj_col is None:
        raise MissingColumnsError("CSV must contain polarity and subjectivity columns")

    out = df.copy()
    polarity = out[pol_col].map(coerce_score).astype(float)
    subjectivity = out[subj_col].map(coerce_score).astype(float)
    out = out.drop(columns=[c for c in {pol_col, subj_col} if c not in ("polarity", "subjectivity")])
    out["polarity"] = polarity
    out["subjectivity"] = subjectivity

    valid = out["polarity"].notna() & out["subjectivity"].notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.info("Dropped %d rows with non-numeric polarity or subjectivity", dropped)
    out = out[valid].reset_index(drop=True)

    out["_text"] = [_display_text(r) for r in out.to_dict(orient="records")]

    out["_polarity_label"] = out["polarity"].map(polarity_label)
    out["_subjectivity_label"] = out["subjectivity"].map(subjectivity_label)
    out["_category"] = out["_polarity_label"] + " & " + out["_subjectivity_label"]
    return out


def _group(df: pd.DataFrame, column: str) -> Dict[str, pd.DataFrame]:
    if df.empty:
        return {}
    return {label: frame for label, frame in df.groupby(column, sort=False)}


def group_rows(df: pd.DataFrame) -> Dict[str, object]:
    """
    Normalize and partition rows.

    Returns total (valid rows), polarity_groups, subjectivity_groups,
    combined_groups (label -> DataFrame, in first-seen order) and rows.
    """
    rows = normalize_scores(df)
    result = {
        "total": len(rows),
        "polarity_groups": _group(rows, "_polarity_label"),
        "subjectivity_groups": _group(rows, "_subjectivity_label"),
        "combined_groups": _group(rows, "_category"),
        "rows": rows,
    }
    logger.info(
        "Grouped %d rows into %d combined categories", result["total"], len(result["combined_groups"])
    )
    return result


def group_counts(
    groups: Dict[str, pd.DataFrame],
    total: int,
    order: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """One row per group: label, count, percent of total, average polarity and subjectivity."""
    labels = list(groups)
    if order is not None:
        labels = [l for l in order if l in groups] + [l for l in labels if l not in order]
    records = []
    for label in labels:
        frame = groups[label]
        count = len(frame)
        records.append({
            "label": label,
            "count": count,
            "percent": round(count / total * 100, 1) if total else 0.0,
            "avg_polarity": float(frame["polarity"].mean()) if count else 0.0,
            "avg_subjectivity": float(frame["subjectivity"].mean()) if count else 0.0,
        })
    return pd.DataFrame(records, columns=["label", "count", "percent", "avg_polarity", "avg_subjectivity"])
