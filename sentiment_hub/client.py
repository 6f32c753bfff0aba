"""LLM sentiment client: one chat-completions request per text."""

import json
import logging
import math
import re
import time
from typing import Dict, List, Optional

import requests

from sentiment_hub.config import Settings, load_settings
from sentiment_hub.errors import ClassifierError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a sentiment analysis service. For the text you are given, reply with a single JSON "
    "object and nothing else, using exactly these keys:\n"
    '  "polarity": number from -1 (very negative) to 1 (very positive)\n'
    '  "subjectivity": number from 0 (objective fact) to 1 (personal opinion)\n'
    '  "named_entities": list of strings (people, places, organisations, emails, ...)'
)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
RE_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _entity_name(item) -> Optional[str]:
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, dict):
        for key in ("text", "name", "entity"):
            if item.get(key):
                return str(item[key]).strip()
    return None


def parse_sentiment_payload(payload) -> Dict[str, object]:
    """
    Turn an endpoint response body into {"polarity", "subjectivity", "named_entities"}.
    Handles chat-completions bodies as well as endpoints that return the record directly.
    """
    if isinstance(payload, dict) and "choices" in payload:
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ClassifierError("Malformed completion response")
        content = RE_CODE_FENCE.sub("", (content or "").strip())
        try:
            payload = json.loads(content)
        except json.JSONDecodeError:
            raise ClassifierError(f"Classifier reply is not JSON: {content[:80]!r}")

    if not isinstance(payload, dict):
        raise ClassifierError("Classifier reply is not a JSON object")

    scores = {}
    for key in ("polarity", "subjectivity"):
        value = payload.get(key)
        if isinstance(value, bool) or value is None:
            raise ClassifierError(f"Classifier reply has no numeric {key}")
        try:
            scores[key] = float(value)
        except (TypeError, ValueError):
            raise ClassifierError(f"Classifier reply has non-numeric {key}: {value!r}")
        if not math.isfinite(scores[key]):
            raise ClassifierError(f"Classifier reply has non-finite {key}: {value!r}")

    raw_entities = payload.get("named_entities") or payload.get("entities") or []
    if not isinstance(raw_entities, list):
        raw_entities = [raw_entities]
    entities: List[str] = [name for name in map(_entity_name, raw_entities) if name]

    return {"polarity": scores["polarity"], "subjectivity": scores["subjectivity"], "named_entities": entities}


class SentimentClient:
    """Sends one text at a time to the configured LLM endpoint."""

    def __init__(self, settings: Optional[Settings] = None, session=None, sleep=time.sleep):
        self.settings = settings or load_settings()
        self.session = session or requests.Session()
        self._sleep = sleep

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    def _body(self, text: str) -> Dict[str, object]:
        return {
            "model": self.settings.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
        }

    def analyze(self, text: str) -> Dict[str, object]:
        retry_delay = self.settings.retry_delay
        max_retries = self.settings.max_retries
        for attempt in range(max_retries):
            logger.debug("Sentiment request, attempt %d/%d", attempt + 1, max_retries)
            try:
                resp = self.session.post(
                    self.settings.api_url,
                    json=self._body(text),
                    headers=self._headers(),
                    timeout=self.settings.timeout,
                )
            except requests.RequestException as e:
                raise ClassifierError(f"Error calling sentiment endpoint: {e}")

            if resp.status_code in RETRYABLE_STATUS and attempt + 1 < max_retries:
                logger.warning(
                    "Sentiment endpoint returned %d. Retrying in %s seconds...", resp.status_code, retry_delay
                )
                self._sleep(retry_delay)
                retry_delay *= 2
                continue

            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                raise ClassifierError(f"Sentiment endpoint error: {e}")
            try:
                payload = resp.json()
            except ValueError:
                raise ClassifierError("Sentiment endpoint returned a non-JSON body")
            return parse_sentiment_payload(payload)

        raise ClassifierError("Sentiment endpoint gave up after retries")
