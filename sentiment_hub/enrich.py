"""
Row enrichment: one classifier call per row, sequentially.

A failed call never drops the row; it gets neutral scores instead.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional

import pandas as pd

from sentiment_hub.errors import ClassifierError
from sentiment_hub.ingest import to_records

logger = logging.getLogger(__name__)

TEXT_COLUMNS = ("text", "Text", "sentiment", "Sentiment", "review_content", "review", "comment", "content")
SCORE_COLUMNS = ("polarity", "subjectivity", "named_entities")


def neutral_scores() -> Dict[str, object]:
    return {"polarity": 0.0, "subjectivity": 0.0, "named_entities": []}


def is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict)):
        return False
    return bool(pd.isna(value))


def extract_text(row: Mapping[str, object]) -> str:
    for col in TEXT_COLUMNS:
        value = row.get(col)
        if is_missing(value):
            continue
        value = str(value).strip()
        if value:
            return value
    return ""


def enrich_row(row: Mapping[str, object], client) -> Dict[str, object]:
    """Return a copy of `row` with polarity, subjectivity and named_entities merged in."""
    enriched = dict(row)
    text = extract_text(row)
    failed = False
    if not text:
        logger.debug("Row has no text field, using neutral scores")
        scores = neutral_scores()
    else:
        try:
            scores = client.analyze(text)
        except ClassifierError as e:
            logger.warning("Classifier failed for %r: %s", text[:40], e)
            scores = neutral_scores()
            failed = True

    # Overwrite any existing score column regardless of its case
    for key in [k for k in enriched if str(k).lower() in SCORE_COLUMNS]:
        del enriched[key]
    enriched.update(scores)
    enriched["_text"] = text
    enriched["_enrich_failed"] = failed
    return enriched


def enrich_rows(
    df: pd.DataFrame,
    client,
    progress: Optional[Callable[[int, int], None]] = None,
) -> pd.DataFrame:
    total = len(df)
    rows = []
    failures = 0
    for i, row in enumerate(to_records(df)):
        enriched = enrich_row(row, client)
        failures += int(enriched["_enrich_failed"])
        rows.append(enriched)
        if progress is not None:
            progress(i + 1, total)

    if failures:
        logger.warning("%d of %d rows fell back to neutral scores", failures, total)
    logger.info("Enriched %d rows", total)
    return pd.DataFrame(rows, columns=_output_columns(df, rows))


def _output_columns(df: pd.DataFrame, rows) -> list:
    if rows:
        return list(rows[0].keys())
    kept = [c for c in df.columns if str(c).lower() not in SCORE_COLUMNS]
    return kept + list(SCORE_COLUMNS) + ["_text", "_enrich_failed"]
