# ============================================================================
# src/medication_identification/llm/openai_client.py
# ============================================================================
"""
OpenAI Client

Chat-completions backend. The openai SDK client is synchronous here, so
each call runs in the default executor to keep the event loop free.

Usage:
    client = OpenAIClient({'openai_api_key': '...', 'openai_model': 'gpt-4o-mini'})
    result = await client.generate(prompt, json_mode=True)
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import openai
from openai import OpenAI

from .base import BaseLLMClient, BackendType


DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class OpenAIClient(BaseLLMClient):
    """
    OpenAI chat-completions client.

    Config options:
        openai_api_key: API key (falls back to OPENAI_API_KEY in the environment)
        openai_model: Model name (default: gpt-4o-mini)
        openai_base_url: Optional OpenAI-compatible endpoint
        max_tokens / temperature: Generation defaults
        request_timeout: Per-request timeout in seconds (default: 30)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self._client: Optional[OpenAI] = None

        self.api_key = self.config.get('openai_api_key')
        self.base_url = self.config.get('openai_base_url')
        self._model_name = self.config.get('openai_model') or DEFAULT_OPENAI_MODEL
        self.request_timeout = self.config.get('request_timeout', 30)

        self.logger.info(f"Initialized OpenAI client: model={self._model_name}")

    @property
    def backend_type(self) -> BackendType:
        return BackendType.OPENAI

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def client(self) -> OpenAI:
        """Lazy load the SDK client."""
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.request_timeout,
                max_retries=0,  # Retry policy belongs to the caller
            )
        return self._client

    async def health_check(self) -> Dict[str, Any]:
        """Check that credentials work by listing models."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, lambda: self.client.models.list())
            return {
                "healthy": True,
                "backend": "openai",
                "model": self._model_name,
                "details": "OpenAI API reachable"
            }
        except openai.OpenAIError as e:
            return {
                "healthy": False,
                "backend": "openai",
                "model": self._model_name,
                "details": f"Health check failed: {str(e)}"
            }

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False
    ) -> Dict[str, Any]:
        """
        Generate response using chat completions.

        Args:
            prompt: Input prompt
            max_tokens: Max tokens to generate
            temperature: Sampling temperature
            json_mode: If True, request response_format=json_object

        Returns:
            Response dict with text, tokens, timing info
        """
        start_time = datetime.now()

        max_tokens = max_tokens or self.default_max_tokens
        temperature = temperature if temperature is not None else self.default_temperature

        request: Dict[str, Any] = {
            "model": self._model_name,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        def call_api():
            return self.client.chat.completions.create(**request)

        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, call_api)
        except openai.APITimeoutError:
            self._record_error()
            raise TimeoutError(f"OpenAI request timed out after {self.request_timeout}s")
        except openai.APIConnectionError as e:
            self._record_error()
            raise ConnectionError(f"Cannot reach OpenAI API: {e}") from e
        except openai.APIStatusError as e:
            self._record_error()
            self.logger.error(f"OpenAI API error ({e.status_code}): {e}")
            raise RuntimeError(f"OpenAI API error ({e.status_code})") from e
        except openai.OpenAIError as e:
            # Missing key and other client-side configuration problems
            self._record_error()
            raise RuntimeError(f"OpenAI client error: {e}") from e

        inference_time = (datetime.now() - start_time).total_seconds()
        self._record_inference(inference_time)

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        usage = response.usage

        self.logger.info(f"OpenAI completion in {inference_time:.2f}s")

        return {
            "text": text.strip(),
            "prompt_tokens": usage.prompt_tokens if usage else 0,
            "generated_tokens": usage.completion_tokens if usage else 0,
            "model": self._model_name,
            "backend": "openai",
            "inference_time": inference_time,
        }
