import logging
import random
from typing import Any, Dict, Optional

import requests

from authenticity.config import Settings, get_settings
from authenticity.models.schemas import PlagiarismResult, SourceMatch
from authenticity.services.errors import (
    InputValidationError,
    MalformedResponseError,
    RateLimitedError,
    UpstreamServiceError,
)
from authenticity.services.retry import RetryingFetchClient
from authenticity.utils.text_processing import is_blank

logger = logging.getLogger(__name__)

SIMULATED_SOURCES = [
    {
        "url": "https://www.simulated-source-one.com/article/example",
        "snippet": "...this part of the text seems very similar to content found on...",
        "matchPercent": 12,
    },
    {
        "url": "https://www.fake-journal-entry.org/page/2",
        "snippet": "...our database found a potential match for the phrase...",
        "matchPercent": 8,
    },
]


def _number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _percent(item: Dict[str, Any], percent_key: str) -> float:
    """`percent_key` as-is, else a 0-1 `score` scaled to percent, else 0."""
    value = _number(item.get(percent_key))
    if value:
        return value
    score = _number(item.get("score"))
    if score:
        return score * 100
    return 0.0


def _text(item: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def normalize_plagiarism(raw: Any, max_sources: int = 5) -> PlagiarismResult:
    """
    Maps provider field-name variants onto PlagiarismResult. Missing numbers
    become 0 and missing strings become placeholders.
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError("Invalid response from plagiarism service.")

    items = raw.get("results") or raw.get("sources") or []
    if not isinstance(items, list):
        items = []

    sources = []
    for item in items:
        if not isinstance(item, dict):
            continue
        sources.append(SourceMatch(
            url=_text(item, "url", "uri") or "#",
            snippet=_text(item, "matched_text", "snippet") or "No snippet available",
            match_percent=_percent(item, "percent"),
        ))

    return PlagiarismResult(
        plagiarism_score=_percent(raw, "percent_matched"),
        sources=sources[:max_sources],
    )


def match_label(score: float) -> str:
    if score > 15: return "High Match"
    if score > 5: return "Possible Match"
    return "Likely Original"


def simulate_check(rng: Optional[random.Random] = None) -> PlagiarismResult:
    """
    Placeholder result used when no plagiarism API is configured. The numbers
    are random and mean nothing.
    """
    rng = rng or random.Random()
    return PlagiarismResult(
        plagiarism_score=rng.randint(5, 29),
        sources=[SourceMatch(**s) for s in SIMULATED_SOURCES],
        simulated=True,
    )


class PlagiarismChecker:
    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None,
                 fetcher: Optional[RetryingFetchClient] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.fetcher = fetcher or RetryingFetchClient(
            self.settings.max_retries, self.settings.initial_retry_delay
        )

    @property
    def simulated(self) -> bool:
        return not self.settings.plagiarism_api_key

    def check(self, text: Optional[str]) -> PlagiarismResult:
        if is_blank(text):
            raise InputValidationError("Text to check is required")

        if self.simulated:
            logger.info("PLAGIARISM_API_KEY not set; returning simulated result")
            return simulate_check()

        raw = self.fetcher.call(self._post, {"text": text})
        return normalize_plagiarism(raw, self.settings.max_plagiarism_sources)

    def _post(self, payload: Dict[str, Any]) -> Any:
        url = self.settings.plagiarism_api_url
        logger.info("Calling plagiarism API: %s", url)
        try:
            response = self.session.post(
                url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.settings.plagiarism_api_key}",
                },
                json=payload,
                timeout=self.settings.upstream_timeout,
            )
        except requests.RequestException as e:
            logger.error("Could not reach plagiarism API: %s", e.__class__.__name__)
            raise UpstreamServiceError("Plagiarism checker service is unreachable.") from e

        if response.status_code == 429:
            raise RateLimitedError("Plagiarism API rate limit exceeded. Please try again later.")
        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {"message": response.text}
            logger.error("Plagiarism API error status %s: %s", response.status_code, str(body)[:500])
            message = None
            if isinstance(body, dict):
                message = _text(body, "message", "error")
            raise UpstreamServiceError(
                message or f"Plagiarism API request failed (Status: {response.status_code})",
                upstream_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError("Invalid response from plagiarism service.") from e
