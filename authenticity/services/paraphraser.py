import logging
from typing import Optional

from authenticity.config import Settings, get_settings
from authenticity.models.schemas import ParaphraseResult, ParaphraseStyle
from authenticity.services.errors import InputValidationError, MalformedResponseError
from authenticity.services.llm_client import LLMClient, build_llm_client
from authenticity.services.retry import RetryingFetchClient
from authenticity.utils.text_processing import is_blank

logger = logging.getLogger(__name__)

PARAPHRASE_PROMPT = """You are a sophisticated paraphrasing tool. Your goal is to rewrite the provided text to make it sound completely natural and human-written, significantly reducing the likelihood of it being flagged by AI detection tools.

Instructions:
- Retain the original meaning and core information.
- Vary sentence structures significantly. Avoid repetitive patterns.
- Use more natural vocabulary and phrasing. Replace overly formal or complex words with simpler, common alternatives where appropriate.
- Ensure grammatical correctness and fluency.
- Focus on eliminating patterns typical of AI-generated text (predictable transitions, overly enumerated lists, generic phrasing, excessive hedging).
- Do NOT add any commentary before or after the paraphrased text. Only output the paraphrased text itself."""

STYLE_MODIFIERS = {
    ParaphraseStyle.DEFAULT: "",
    ParaphraseStyle.FORMAL: "Use a formal, professional register. Avoid contractions and slang.",
    ParaphraseStyle.CASUAL: "Use a relaxed, conversational tone, as if written by a person talking to a friend.",
    ParaphraseStyle.SIMPLE: "Use plain language: short sentences and everyday words a young reader would understand.",
}


def resolve_style(value) -> ParaphraseStyle:
    """Unknown or missing styles fall back to the default style."""
    if isinstance(value, ParaphraseStyle):
        return value
    if isinstance(value, str):
        try:
            return ParaphraseStyle(value.strip().lower())
        except ValueError:
            pass
    if value is not None:
        logger.debug("Unknown paraphrase style %r; using default", value)
    return ParaphraseStyle.DEFAULT


def build_prompt(style: ParaphraseStyle) -> str:
    modifier = STYLE_MODIFIERS[style]
    if not modifier:
        return PARAPHRASE_PROMPT
    return f"{PARAPHRASE_PROMPT}\n\nStyle:\n- {modifier}"


class Paraphraser:
    def __init__(self, settings: Optional[Settings] = None, llm: Optional[LLMClient] = None,
                 fetcher: Optional[RetryingFetchClient] = None):
        self.settings = settings or get_settings()
        self._llm = llm
        self.fetcher = fetcher or RetryingFetchClient(
            self.settings.max_retries, self.settings.initial_retry_delay
        )

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = build_llm_client(self.settings)
        return self._llm

    def paraphrase(self, text: Optional[str], style=None) -> ParaphraseResult:
        """
        Rewrites text to sound more human in the selected style.
        """
        if is_blank(text):
            raise InputValidationError("Text to paraphrase is required")

        chosen = resolve_style(style)
        raw = self.fetcher.call(self.llm, {"system_prompt": build_prompt(chosen), "text": text})
        paraphrased = (raw or "").strip()
        if not paraphrased:
            raise MalformedResponseError("Failed to extract paraphrased text from AI response.")
        return ParaphraseResult(paraphrased_text=paraphrased, style=chosen)
