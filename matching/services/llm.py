"""
LLM Client

Thin wrapper around the ``openai`` SDK pointed at any OpenAI-compatible
chat-completions endpoint (Qwen through DashScope compatible mode by
default). Retries with exponential backoff through tenacity and extracts
JSON from model replies that wrap their payload in markdown code fences.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Type

import openai
from django.conf import settings
from tenacity import (
    Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt,
    wait_exponential
)

from ..exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


CODE_FENCE_RE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL)

# Transport errors from the SDK, empty replies and unparseable JSON
RETRYABLE_ERRORS = (openai.OpenAIError, ValueError)

# Upper bound for a single backoff wait (seconds)
MAX_RETRY_WAIT = 30


def parse_json_reply(content: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of a model reply.

    Raises:
        ValueError: if the reply is not a JSON object
    """
    text = (content or '').strip()
    fenced = CODE_FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class LLMClient:
    """
    Chat-completions client configured from Django settings.

    Settings:
        LLM_API_KEY, LLM_API_BASE_URL, LLM_MODEL, LLM_TIMEOUT, LLM_MAX_RETRIES
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: float = 1.0,
    ):
        self.api_key = api_key if api_key is not None else getattr(settings, 'LLM_API_KEY', '')
        self.base_url = base_url or getattr(settings, 'LLM_API_BASE_URL', None)
        self.model = model or getattr(settings, 'LLM_MODEL', 'qwen-turbo')
        self.timeout = timeout or getattr(settings, 'LLM_TIMEOUT', 60.0)
        if max_retries is None:
            max_retries = getattr(settings, 'LLM_MAX_RETRIES', 3)
        self.max_retries = max(1, int(max_retries))
        self.retry_delay = retry_delay
        self._client = None

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                # Retries are driven by complete_json
                max_retries=0,
            )
        return self._client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _complete(self, prompt: str, json_mode: bool) -> str:
        kwargs = {
            'model': self.model,
            'messages': [{'role': 'user', 'content': prompt}],
        }
        if json_mode:
            kwargs['response_format'] = {'type': 'json_object'}

        response = self.client.chat.completions.create(**kwargs)
        usage = getattr(response, 'usage', None)
        if usage is not None:
            logger.debug(
                f"LLM usage: prompt={usage.prompt_tokens} "
                f"completion={usage.completion_tokens}"
            )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError('Empty response from LLM')
        return content

    def complete_json(
        self,
        prompt: str,
        error_class: Type[ExternalServiceError] = ExternalServiceError,
    ) -> Dict[str, Any]:
        """
        Send a prompt and return the parsed JSON object of the reply.

        Transport errors, empty replies and unparseable JSON are retried up
        to ``max_retries`` times.

        Raises:
            error_class: when every attempt failed
        """
        if not self.is_configured:
            raise error_class('LLM_API_KEY is not configured')

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_delay, max=MAX_RETRY_WAIT),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        logger.debug(f"LLM call (model={self.model}, prompt={len(prompt)} chars)")
        try:
            return retrying(self._complete_json, prompt)
        except RETRYABLE_ERRORS as e:
            raise error_class(
                f"LLM call failed after {self.max_retries} attempts: {e}",
                cause=e,
            ) from e

    def _complete_json(self, prompt: str) -> Dict[str, Any]:
        return parse_json_reply(self._complete(prompt, json_mode=True))
