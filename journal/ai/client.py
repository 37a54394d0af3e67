"""
Chat-completion client for the coach.

Talks to an OpenAI-compatible ``/chat/completions`` endpoint over plain
HTTP. When the configured model is rejected, each fallback model is tried
once before giving up.
"""
import re
from typing import Dict, List, Optional, Sequence

import requests

from journal.utils.logging import get_logger

logger = get_logger(__name__)

_MODEL_ERROR = re.compile(r"model|not\s*found|invalid", re.IGNORECASE)


class CompletionError(Exception):
    """The completion service could not produce a reply."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail


class ChatCompletionClient:
    """Minimal chat-completion client with model fallback."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        fallback_models: Sequence[str] = (),
        timeout: int = 60,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.fallback_models = list(fallback_models)
        self.timeout = timeout

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.api_key}',
        }

    def complete(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: float = 0.5,
    ) -> str:
        """
        Send ``messages`` and return the assistant reply text.

        Raises:
            CompletionError: missing API key, transport failure, or every
                model attempt returned an error
        """
        if not self.api_key:
            raise CompletionError("Missing OPENAI_API_KEY")

        model = model or self.model
        payload = {'model': model, 'messages': messages, 'temperature': temperature}
        if max_tokens is not None:
            payload['max_tokens'] = max_tokens

        response = self._post(payload)
        if not response.ok and self._is_model_error(response):
            for fallback in self.fallback_models:
                if fallback == model:
                    continue
                logger.warning(f"Model {model} rejected ({response.status_code}), trying {fallback}")
                response = self._post({**payload, 'model': fallback})
                if response.ok:
                    break

        if not response.ok:
            logger.error(f"Completion failed with HTTP {response.status_code}")
            raise CompletionError("OpenAI error", detail=response.text)

        try:
            data = response.json()
            choices = data.get('choices') or [{}]
            content = (choices[0].get('message') or {}).get('content') or ''
            return content.strip()
        except (ValueError, AttributeError, IndexError, TypeError) as e:
            logger.error(f"Unreadable completion response: {e}")
            raise CompletionError("OpenAI error", detail=response.text)

    def _post(self, payload: Dict) -> requests.Response:
        try:
            return requests.post(
                f"{self.base_url}/chat/completions",
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Completion request failed: {e}")
            raise CompletionError("Completion service unreachable", detail=str(e))

    @staticmethod
    def _is_model_error(response: requests.Response) -> bool:
        return response.status_code in (400, 404) or bool(_MODEL_ERROR.search(response.text or ""))
