"""
Language model adapters.

The chat pipeline only depends on the LanguageModel protocol:
complete(system_prompt, human_message) -> str. Adapters map provider
errors to CompletionFailure and retry transient ones with exponential
backoff; every request carries a timeout.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol, runtime_checkable

import ollama
from openai import OpenAI, APIConnectionError as OpenAIConnectionError, APIStatusError

from core.exceptions import CompletionFailure
from core.retry import call_with_retry

logger = logging.getLogger(__name__)


@runtime_checkable
class LanguageModel(Protocol):
    def complete(self, system_prompt: str, human_message: str) -> str:
        ...


def _messages(system_prompt: str, human_message: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": human_message},
    ]


class OllamaChatModel:
    def __init__(
        self,
        model: str = "llama3.1:latest",
        base_url: str = "http://localhost:11434",
        temperature: float = 0.2,
        output_tokens: int = 512,
        timeout: float = 120.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.output_tokens = output_tokens
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = ollama.Client(host=base_url, timeout=timeout)

    def complete(self, system_prompt: str, human_message: str) -> str:
        return call_with_retry(
            lambda: self._request(system_prompt, human_message),
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            description=f"Ollama chat ({self.model})",
        )

    def _request(self, system_prompt: str, human_message: str) -> str:
        try:
            response = self._client.chat(
                model=self.model,
                messages=_messages(system_prompt, human_message),
                options={
                    "temperature": self.temperature,
                    "num_predict": self.output_tokens,
                },
            )
        except ollama.ResponseError as e:
            raise CompletionFailure(
                f"Ollama chat failed for model '{self.model}'",
                original_error=e,
                status_code=getattr(e, "status_code", None),
            ) from e
        except Exception as e:
            name = type(e).__name__
            if "Connection" in name or "Timeout" in name or "refused" in str(e).lower():
                raise CompletionFailure(
                    f"Cannot connect to Ollama at {self.base_url}",
                    original_error=e,
                    retryable=True,
                ) from e
            raise CompletionFailure("Chat completion failed", original_error=e) from e

        message = response.get("message") or {}
        return message.get("content") or ""


class OpenAIChatModel:
    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        api_key: Optional[str] = None,
        temperature: float = 0.2,
        output_tokens: int = 512,
        timeout: float = 120.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OpenAI API key required. Set OPENAI_API_KEY environment variable.")

        self.model = model
        self.temperature = temperature
        self.output_tokens = output_tokens
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, human_message: str) -> str:
        return call_with_retry(
            lambda: self._request(system_prompt, human_message),
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            description=f"OpenAI chat ({self.model})",
        )

    def _request(self, system_prompt: str, human_message: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=_messages(system_prompt, human_message),
                temperature=self.temperature,
                max_tokens=self.output_tokens,
            )
        except OpenAIConnectionError as e:
            raise CompletionFailure(
                "Cannot connect to OpenAI API", original_error=e, retryable=True
            ) from e
        except APIStatusError as e:
            raise CompletionFailure(
                f"OpenAI chat failed for model '{self.model}'",
                original_error=e,
                status_code=e.status_code,
            ) from e

        if not response.choices:
            raise CompletionFailure("Empty response from API")
        return response.choices[0].message.content or ""
