import json
import logging
from typing import Any, Dict, Optional

import groq
import requests
from groq import Groq

from authenticity.config import Settings
from authenticity.services.errors import (
    ContentBlockedError,
    MalformedResponseError,
    RateLimitedError,
    ServiceConfigurationError,
    UpstreamServiceError,
)

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def _blocked(reason: str) -> ContentBlockedError:
    return ContentBlockedError(
        f"Request blocked by the AI service: {reason}. Try modifying the text.",
        block_reason=reason,
    )


class LLMClient:
    """Sends a system prompt plus user text to a generative-language API."""

    name = "llm"

    def generate(self, system_prompt: str, text: str,
                 response_schema: Optional[Dict[str, Any]] = None) -> str:
        raise NotImplementedError

    def __call__(self, payload: Dict[str, Any]) -> str:
        # Lets RetryingFetchClient treat the client as an endpoint
        return self.generate(**payload)


class GroqClient(LLMClient):
    name = "groq"

    def __init__(self, api_key: str, model: str, timeout: float = 30.0, client: Optional[Groq] = None):
        self.model = model
        # Retries are driven by RetryingFetchClient, not the SDK
        self.client = client or Groq(api_key=api_key, timeout=timeout, max_retries=0)

    def generate(self, system_prompt: str, text: str,
                 response_schema: Optional[Dict[str, Any]] = None) -> str:
        kwargs: Dict[str, Any] = {}
        if response_schema is not None:
            system_prompt = (
                f"{system_prompt}\n\nReturn ONLY a JSON object matching this schema:\n"
                f"{json.dumps(response_schema)}"
            )
            kwargs["response_format"] = {"type": "json_object"}
            kwargs["temperature"] = 0
        else:
            kwargs["temperature"] = 0.7

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": f"Text:\n{text}"},
                ],
                **kwargs,
            )
        except groq.RateLimitError as e:
            raise RateLimitedError(upstream_status=e.status_code) from e
        except groq.APIStatusError as e:
            logger.error("Groq API error status %s: %s", e.status_code, e.message)
            raise UpstreamServiceError(
                f"AI service failed (Status: {e.status_code}): {e.message}", upstream_status=e.status_code
            ) from e
        except groq.APIConnectionError as e:
            logger.error("Could not reach Groq: %s", e)
            raise UpstreamServiceError("AI service is unreachable. Please try again.") from e

        try:
            choice = completion.choices[0]
        except (AttributeError, IndexError) as e:
            raise MalformedResponseError() from e
        if getattr(choice, "finish_reason", None) == "content_filter":
            raise _blocked("content_filter")
        content = getattr(choice.message, "content", None)
        if not content:
            logger.error("Groq returned no message content: %r", completion)
            raise MalformedResponseError()
        return content


class GeminiClient(LLMClient):
    name = "gemini"

    def __init__(self, api_key: str, model: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.url = GEMINI_URL.format(model=model)
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_payload(self, system_prompt: str, text: str,
                      response_schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema
        return {
            "contents": [{"parts": [{"text": text}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "generationConfig": generation_config,
        }

    def generate(self, system_prompt: str, text: str,
                 response_schema: Optional[Dict[str, Any]] = None) -> str:
        payload = self.build_payload(system_prompt, text, response_schema)
        try:
            response = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Could not reach Gemini: %s", e.__class__.__name__)
            raise UpstreamServiceError("AI service is unreachable. Please try again.") from e

        if not response.ok:
            self._raise_for_error(response)

        try:
            result = response.json()
        except ValueError as e:
            raise MalformedResponseError() from e
        return self.extract_text(result)

    def _raise_for_error(self, response: requests.Response):
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text}
        logger.error("Gemini API error status %s: %s", response.status_code, str(body)[:500])

        if response.status_code == 429:
            raise RateLimitedError()
        reason = (body.get("promptFeedback") or {}).get("blockReason") if isinstance(body, dict) else None
        if reason:
            raise _blocked(reason)

        message = f"AI service failed (Status: {response.status_code})"
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            message = f"{message}: {error['message']}"
        raise UpstreamServiceError(message, upstream_status=response.status_code)

    @staticmethod
    def extract_text(result: Any) -> str:
        if not isinstance(result, dict):
            raise MalformedResponseError()
        reason = (result.get("promptFeedback") or {}).get("blockReason")
        if reason:
            raise _blocked(reason)
        try:
            candidate = result["candidates"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError() from e
        if candidate.get("finishReason") == "SAFETY":
            raise _blocked("SAFETY")
        try:
            text = candidate["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected response structure from Gemini: %r", result)
            raise MalformedResponseError() from e
        if not isinstance(text, str) or not text:
            raise MalformedResponseError()
        return text


def build_llm_client(settings: Settings) -> LLMClient:
    """
    Picks the provider named by LLM_PROVIDER, else whichever has a key
    (Groq first).
    """
    provider = settings.llm_provider
    if provider is None:
        if settings.groq_api_key:
            provider = "groq"
        elif settings.gemini_api_key:
            provider = "gemini"
        else:
            logger.error("Neither GROQ_API_KEY nor GEMINI_API_KEY is set")
            raise ServiceConfigurationError("Server configuration error")

    if provider == "groq":
        if not settings.groq_api_key:
            logger.error("GROQ_API_KEY is not set")
            raise ServiceConfigurationError("Server configuration error")
        return GroqClient(settings.groq_api_key, settings.groq_model, timeout=settings.upstream_timeout)
    if provider == "gemini":
        if not settings.gemini_api_key:
            logger.error("GEMINI_API_KEY is not set")
            raise ServiceConfigurationError("Server configuration error")
        return GeminiClient(settings.gemini_api_key, settings.gemini_model, timeout=settings.upstream_timeout)

    logger.error("Unknown LLM_PROVIDER %r", provider)
    raise ServiceConfigurationError("Server configuration error")
