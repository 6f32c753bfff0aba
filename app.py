#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sentiment Hub: upload a CSV of short texts, score each row with an LLM, bucket the results.

Flow:
- Upload a CSV (or use the sample). Delimiter is guessed among , TAB | ;
- Each row's text is sent to the configured LLM endpoint for polarity, subjectivity and named entities.
  A failed call scores the row neutral instead of failing the batch.
- Rows are grouped into Positive/Neutral/Negative x Subjective/Objective and shown as charts and cards.
- A CSV that already carries polarity/subjectivity columns can skip the LLM step.

Run:
    streamlit run app.py
"""
from __future__ import annotations

import altair as alt
import pandas as pd
import streamlit as st

from sentiment_hub.client import SentimentClient
from sentiment_hub.config import configure_logging, load_settings
from sentiment_hub.enrich import enrich_rows
from sentiment_hub.errors import SentimentHubError
from sentiment_hub.grouping import (
    CATEGORY_LABELS,
    POLARITY_LABELS,
    SUBJECTIVITY_LABELS,
    group_counts,
    group_rows,
    has_score_columns,
)
from sentiment_hub.ingest import parse_csv, read_uploaded_csv

# Page config: wide layout for better desktop experience
st.set_page_config(page_title="Sentiment Hub", layout="wide", initial_sidebar_state="collapsed")

_POLARITY_COLORS = {"Positive": "#22c55e", "Neutral": "#eab308", "Negative": "#ef4444"}
_SUBJECTIVITY_COLORS = {"Subjective": "#a855f7", "Objective": "#3b82f6"}
PREVIEW_ROWS = 10

SAMPLE_CSV = """text
"Good product, arrived on time, works as described."
"Terrible packaging. Cable stopped working after two days."
"The parcel was shipped from Berlin on Monday."
"Excellent! Very fast delivery and works perfectly."
"Not as described. Missing parts and poor quality."
"Contact support@example.com for returns."
"""

# -------------------------
# Settings + logging
# -------------------------
try:
    settings = load_settings()
except SentimentHubError as e:
    st.error(f"Configuration error: {e}")
    st.stop()
configure_logging(settings.log_level)


# -------------------------
# Theme (Auto keeps Streamlit defaults)
# -------------------------
THEMES = {
    "Light": {"bg": "#FFFFFF", "fg": "#0f1724", "card": "#F7FAFF"},
    "Dark": {"bg": "#0b1220", "fg": "#E6EEF8", "card": "#0f1724"},
}


def apply_theme_css(theme_choice: str) -> None:
    palette = THEMES.get(theme_choice)
    if palette is None:
        return
    rules = [
        (".stApp, .block-container", f"background-color: {palette['bg']}; color: {palette['fg']};"),
        ("[data-testid=\"stVerticalBlockBorderWrapper\"]", f"background-color: {palette['card']};"),
        ("h1, h2, h3, p, label", f"color: {palette['fg']};"),
    ]
    css = "\n".join(f"{selector} {{ {body} }}" for selector, body in rules)
    st.markdown(f"<style>\n{css}\n</style>", unsafe_allow_html=True)


# -------------------------
# State: idle -> uploading -> analyzing -> displaying
# -------------------------
def reset_app() -> None:
    st.session_state.stage = "idle"
    st.session_state.raw_df = None
    st.session_state.grouped = None
    st.session_state.failed = 0


if "stage" not in st.session_state:
    reset_app()

header_l, header_r = st.columns([4, 1])
with header_l:
    st.title("Sentiment Hub")
with header_r:
    if st.session_state.stage != "idle":
        st.button("Upload new file", on_click=reset_app)

# -------------------------
# Controls
# -------------------------
if st.session_state.stage in ("idle", "uploading"):
    c1, c2, c3, c4 = st.columns([1.6, 1, 1, 1])
    with c1:
        uploaded = st.file_uploader("Upload CSV", type=["csv"], help="CSV with a text column (text, sentiment, review, ...)")
    with c2:
        use_sample = st.button("Use sample")
    with c3:
        dynamic_typing = st.checkbox("Dynamic typing", value=True, help="Convert numeric-looking cells to numbers")
    with c4:
        theme_choice = st.selectbox("Theme", ["Auto", "Light", "Dark"], index=0)

    st.session_state.theme_choice = theme_choice
    apply_theme_css(theme_choice)

    if uploaded is None and not use_sample and st.session_state.raw_df is None:
        st.info("Upload a CSV or tap 'Use sample' to begin.")
        with st.expander("Expected CSV format", expanded=False):
            st.write("- **text** (or sentiment / review / comment / content): the snippet to score.")
            st.write("- **polarity** / **subjectivity** (optional): existing scores, -1..1 and 0..1.")
        st.stop()

    st.session_state.stage = "uploading"
    if use_sample:
        st.session_state.raw_df = parse_csv(SAMPLE_CSV, dynamic_typing=dynamic_typing)
    elif uploaded is not None:
        try:
            st.session_state.raw_df = read_uploaded_csv(uploaded, dynamic_typing=dynamic_typing)
        except SentimentHubError as e:
            st.error(str(e))
            st.stop()

    df = st.session_state.raw_df
    with st.expander("Dataset preview (quick)"):
        st.dataframe(df.head(PREVIEW_ROWS))

    o1, o2, o3 = st.columns([1, 1, 1])
    with o1:
        use_existing = st.checkbox(
            "Use existing scores",
            value=False,
            disabled=not has_score_columns(df),
            help="Skip the LLM when the CSV already has polarity and subjectivity columns",
        )
    with o2:
        sample_n = st.number_input("Sample N (0=all)", min_value=0, value=0, step=1)
    with o3:
        analyze_btn = st.button("Analyze", type="primary")

    if not analyze_btn:
        st.info("Ready. Tap Analyze to run.")
        st.stop()

    # -------------------------
    # Analyze
    # -------------------------
    st.session_state.stage = "analyzing"
    if sample_n and 0 < sample_n < len(df):
        df = df.sample(n=sample_n, random_state=42).reset_index(drop=True)

    if use_existing:
        enriched = df
        st.session_state.failed = 0
    else:
        if not settings.api_key:
            st.warning("No SENTIMENT_API_KEY set; requests will be sent without credentials.")
        client = SentimentClient(settings)
        progress = st.progress(0)
        status = st.empty()

        def _on_progress(done: int, total: int) -> None:
            status.text(f"{done}/{total}")
            progress.progress(done / total)

        enriched = enrich_rows(df, client, progress=_on_progress)
        progress.empty()
        status.empty()
        st.session_state.failed = int(enriched["_enrich_failed"].sum()) if len(enriched) else 0

    try:
        st.session_state.grouped = group_rows(enriched)
    except SentimentHubError as e:
        st.error(str(e))
        st.caption("Expected columns: polarity, subjectivity (and optionally sentiment/text)")
        st.stop()
    st.session_state.stage = "displaying"
    st.rerun()

# -------------------------
# Display
# -------------------------
apply_theme_css(st.session_state.get("theme_choice", "Auto"))
grouped = st.session_state.grouped
total = grouped["total"]
rows = grouped["rows"]

st.subheader("Analysis summary")
m1, m2, m3 = st.columns(3)
m1.metric("Total entries", total)
m2.metric("Polarity groups", len(grouped["polarity_groups"]))
m3.metric("Combined categories", len(grouped["combined_groups"]))
if st.session_state.failed:
    st.warning(f"{st.session_state.failed} rows could not be scored and were set to neutral.")

if total == 0:
    st.warning("No rows with numeric polarity and subjectivity to display.")
    st.stop()


def distribution_chart(counts: pd.DataFrame, colors: dict, title: str) -> alt.Chart:
    return alt.Chart(counts).mark_bar().encode(
        x=alt.X("count:Q", title="Count"),
        y=alt.Y("label:N", title=None, sort=list(colors)),
        color=alt.Color("label:N", legend=None,
                        scale=alt.Scale(domain=list(colors), range=list(colors.values()))),
        tooltip=["label", "count", "percent"],
    ).properties(height=200, title=title)


pol_counts = group_counts(grouped["polarity_groups"], total, order=POLARITY_LABELS)
subj_counts = group_counts(grouped["subjectivity_groups"], total, order=SUBJECTIVITY_LABELS)
d1, d2 = st.columns(2)
with d1:
    st.altair_chart(distribution_chart(pol_counts, _POLARITY_COLORS, "Polarity distribution"), width="stretch")
    for _, r in pol_counts.iterrows():
        st.write(f"{r['label']}: {int(r['count'])} items ({r['percent']}%)")
with d2:
    st.altair_chart(distribution_chart(subj_counts, _SUBJECTIVITY_COLORS, "Subjectivity distribution"), width="stretch")
    for _, r in subj_counts.iterrows():
        st.write(f"{r['label']}: {int(r['count'])} items ({r['percent']}%)")

st.subheader("Combined analysis")
combined = group_counts(grouped["combined_groups"], total, order=CATEGORY_LABELS)
cards = st.columns(2)
for i, (_, r) in enumerate(combined.iterrows()):
    with cards[i % 2]:
        with st.container(border=True):
            st.markdown(f"**{r['label']}**")
            st.metric("Entries", int(r["count"]), help=f"{r['percent']}% of total")
            st.caption(f"Avg polarity: {r['avg_polarity']:.3f} · Avg subjectivity: {r['avg_subjectivity']:.3f}")

st.subheader("Sample data preview")
preview_cols = ["_text", "polarity", "subjectivity", "_category"]
if "named_entities" in rows.columns:
    preview_cols.insert(3, "named_entities")
preview = rows[preview_cols].head(PREVIEW_ROWS).rename(columns={"_text": "text", "_category": "category"})
st.dataframe(preview.style.format({"polarity": "{:.3f}", "subjectivity": "{:.3f}"}))
if len(rows) > PREVIEW_ROWS:
    st.caption(f"Showing first {PREVIEW_ROWS} of {len(rows)} entries")

st.download_button(
    "Download results CSV",
    data=rows.to_csv(index=False).encode("utf-8"),
    file_name="sentiment_results.csv",
    mime="text/csv",
)

with st.expander("Help & notes", expanded=False):
    st.write("- Polarity > 0.1 is Positive, < -0.1 Negative, otherwise Neutral.")
    st.write("- Subjectivity > 0.5 is Subjective, otherwise Objective.")
    st.write("- Rows whose scores are not numeric are left out of every count.")
