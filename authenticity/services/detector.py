import json
import logging
import math
import re
from typing import Any, Optional

from authenticity.config import Settings, get_settings
from authenticity.models.schemas import DetectionResult
from authenticity.services.errors import InputValidationError, MalformedResponseError
from authenticity.services.llm_client import LLMClient, build_llm_client
from authenticity.services.retry import RetryingFetchClient
from authenticity.utils.highlight import render_highlight
from authenticity.utils.text_processing import is_blank

logger = logging.getLogger(__name__)

DETECTOR_PROMPT = """You are an AI text detector. Analyze the following text and provide your assessment. Your response MUST be in the JSON format defined in the schema.
1.  Provide an `aiScore` (a number from 0-100).
2.  Provide a brief `justification` for the score.
3.  Identify the *exact sentences* from the user's text that are likely AI-generated, copied character for character.
    - Put sentences you are highly confident about in `highConfidenceSentences`.
    - Put sentences you are moderately confident about in `mediumConfidenceSentences`.
    - Never list the same sentence in both arrays. If none are detected, return empty arrays."""

SENTENCE_LIST = {"type": "ARRAY", "items": {"type": "STRING"}}

DETECTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "aiScore": {
            "type": "NUMBER",
            "description": "A percentage score from 0 (definitely human) to 100 (definitely AI).",
        },
        "justification": {
            "type": "STRING",
            "description": "A brief, one-sentence justification for the score.",
        },
        "highConfidenceSentences": dict(SENTENCE_LIST, description="Exact sentences that are very likely AI-generated."),
        "mediumConfidenceSentences": dict(SENTENCE_LIST, description="Exact sentences that are possibly AI-generated."),
    },
    "required": ["aiScore", "justification", "highConfidenceSentences", "mediumConfidenceSentences"],
}


def parse_model_json(raw: str) -> Any:
    """
    Parses the JSON object out of a model reply, tolerating code fences and
    text around the object.
    """
    t = (raw or "").strip()
    fenced = re.findall(r"```(?:json)?\s*\n(.*?)```", t, flags=re.S | re.I)
    if fenced:
        t = fenced[0].strip()
    a = t.find("{")
    b = t.rfind("}")
    if a >= 0 and b > a:
        t = t[a : b + 1]
    try:
        return json.loads(t)
    except ValueError as e:
        logger.error("Detector reply is not JSON: %r", (raw or "")[:200])
        raise MalformedResponseError("Invalid response from AI detector.") from e


def _sentences(value) -> list:
    if not isinstance(value, list):
        return []
    return [s for s in value if isinstance(s, str) and s.strip()]


def normalize_detection(raw: Any) -> DetectionResult:
    """
    Maps a raw detector reply onto DetectionResult. Missing sentence lists are
    empty; the legacy single `aiSentences` list counts as high confidence.
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError("Invalid response from AI detector.")

    score = raw.get("aiScore")
    if isinstance(score, bool):
        score = None
    try:
        score = float(score)
    except (TypeError, ValueError):
        score = None
    if score is None or not math.isfinite(score):
        logger.error("Detector reply has no usable aiScore: %r", raw.get("aiScore"))
        raise MalformedResponseError("Invalid response from AI detector.")

    justification = raw.get("justification")
    high = _sentences(raw.get("highConfidenceSentences"))
    for sentence in _sentences(raw.get("aiSentences")):
        if sentence not in high:
            high.append(sentence)

    return DetectionResult(
        ai_score=score,
        justification=justification if isinstance(justification, str) else "",
        high_confidence_sentences=high,
        medium_confidence_sentences=_sentences(raw.get("mediumConfidenceSentences")),
    )


def confidence_label(score: float) -> str:
    if score > 75: return "High Confidence"
    if score > 40: return "Medium Confidence"
    return "Low Confidence"


def highlight_result(text: str, result: DetectionResult) -> str:
    return render_highlight(text, result.tiers())


class AIDetector:
    def __init__(self, settings: Optional[Settings] = None, llm: Optional[LLMClient] = None,
                 fetcher: Optional[RetryingFetchClient] = None):
        self.settings = settings or get_settings()
        self._llm = llm
        self.fetcher = fetcher or RetryingFetchClient(
            self.settings.max_retries, self.settings.initial_retry_delay
        )

    @property
    def llm(self) -> LLMClient:
        # Built on first use so the app starts without API keys
        if self._llm is None:
            self._llm = build_llm_client(self.settings)
        return self._llm

    def detect(self, text: Optional[str]) -> DetectionResult:
        if is_blank(text):
            raise InputValidationError("Please enter some text to check.")

        raw = self.fetcher.call(
            self.llm,
            {"system_prompt": DETECTOR_PROMPT, "text": text, "response_schema": DETECTION_SCHEMA},
        )
        result = normalize_detection(parse_model_json(raw))
        logger.info(
            "Detection done: score=%.1f high=%d medium=%d",
            result.ai_score, len(result.high_confidence_sentences), len(result.medium_confidence_sentences),
        )
        return result
