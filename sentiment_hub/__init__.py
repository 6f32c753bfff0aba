"""
Sentiment Hub: CSV in, LLM-scored sentiment buckets out.

The Streamlit page lives in app.py; everything here is importable without Streamlit.
"""
from sentiment_hub.client import SentimentClient
from sentiment_hub.enrich import enrich_rows
from sentiment_hub.errors import (
    ClassifierError,
    ConfigError,
    CSVParseError,
    MissingColumnsError,
    SentimentHubError,
)
from sentiment_hub.grouping import group_counts, group_rows, normalize_scores
from sentiment_hub.ingest import parse_csv, read_uploaded_csv

__all__ = [
    "SentimentClient",
    "enrich_rows",
    "group_counts",
    "group_rows",
    "normalize_scores",
    "parse_csv",
    "read_uploaded_csv",
    "SentimentHubError",
    "ConfigError",
    "CSVParseError",
    "ClassifierError",
    "MissingColumnsError",
]
