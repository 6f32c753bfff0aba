"""
CSV ingestion: delimiter guessing, header cleanup, optional dynamic typing.

Uploaded files are decoded here and handed to pandas; the rest of the pipeline
only ever sees a DataFrame with trimmed column names.
"""
from __future__ import annotations

import csv
import io
import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from sentiment_hub.errors import CSVParseError

logger = logging.getLogger(__name__)

DELIMITER_CANDIDATES = (",", "\t", "|", ";")
_PREVIEW_ROWS = 10


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def guess_delimiter(text: str, candidates: Sequence[str] = DELIMITER_CANDIDATES) -> str:
    """
    Pick the candidate that splits the first rows into the most consistent
    number of fields (more than one per row). Ties go to the earlier candidate.
    """
    best = None
    best_key = None
    for delim in candidates:
        reader = csv.reader(io.StringIO(text), delimiter=delim)
        counts: List[int] = []
        try:
            for row in reader:
                if not row:
                    continue
                counts.append(len(row))
                if len(counts) >= _PREVIEW_ROWS:
                    break
        except csv.Error:
            continue
        if not counts:
            continue
        avg = sum(counts) / len(counts)
        if avg <= 1:
            continue
        delta = sum(abs(a - b) for a, b in zip(counts, counts[1:]))
        key = (delta, -avg)
        if best_key is None or key < best_key:
            best, best_key = delim, key
    return best or ","


def parse_csv(text: str, dynamic_typing: bool = True, delimiter: Optional[str] = None) -> pd.DataFrame:
    text = _strip_bom(text or "")
    if not text.strip():
        raise CSVParseError("CSV file is empty")

    sep = delimiter or guess_delimiter(text)
    read_kwargs = {"sep": sep, "skip_blank_lines": True}
    if dynamic_typing:
        # Only empty cells are missing; "N/A", "null" and friends stay as text
        read_kwargs.update(keep_default_na=False, na_values=[""])
    else:
        read_kwargs.update(dtype=str, keep_default_na=False, na_filter=False)
    try:
        df = pd.read_csv(io.StringIO(text), **read_kwargs)
    except pd.errors.EmptyDataError:
        raise CSVParseError("CSV file is empty")
    except (pd.errors.ParserError, ValueError) as e:
        raise CSVParseError(f"Error parsing CSV file: {e}")

    # Trimmed headers can collide; the later column wins
    df.columns = [str(c).strip() for c in df.columns]
    df = df.loc[:, ~df.columns.duplicated(keep="last")]

    if df.empty:
        raise CSVParseError("CSV file has a header but no data rows")
    logger.info("Parsed CSV: %d rows, %d columns, delimiter %r", len(df), len(df.columns), sep)
    return df.reset_index(drop=True)


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Upload is not valid UTF-8, falling back to latin-1")
        return raw.decode("latin-1")


def read_uploaded_csv(upload, dynamic_typing: bool = True) -> pd.DataFrame:
    """Accepts raw bytes, a str, or a file-like upload (e.g. Streamlit's UploadedFile)."""
    if upload is None:
        raise CSVParseError("Please upload a valid CSV file")
    name = getattr(upload, "name", None)
    if name and not str(name).lower().endswith(".csv"):
        raise CSVParseError("Please upload a valid CSV file")

    if isinstance(upload, str):
        text = upload
    elif isinstance(upload, (bytes, bytearray)):
        text = _decode(bytes(upload))
    elif hasattr(upload, "getvalue"):
        text = _decode(upload.getvalue())
    else:
        raw = upload.read()
        text = raw if isinstance(raw, str) else _decode(raw)
    return parse_csv(text, dynamic_typing=dynamic_typing)


def to_records(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Plain row mappings; missing cells become None."""
    clean = df.astype(object).where(pd.notna(df), None)
    return clean.to_dict(orient="records")
