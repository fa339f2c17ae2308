# ============================================================================
# src/medication_identification/llm/ollama_client.py
# ============================================================================
"""
Ollama Client

Uses a local Ollama server for extraction when no cloud key is available.

Setup:
    1. Install Ollama: https://ollama.ai
    2. Pull model: ollama pull llama3.1:8b
    3. Start server: ollama serve (or it runs automatically)
"""

import aiohttp
import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from .base import BaseLLMClient, BackendType


DEFAULT_OLLAMA_MODEL = "llama3.1:8b"


class OllamaClient(BaseLLMClient):
    """
    Ollama-based inference client.

    Config options:
        ollama_host: Ollama server URL (default: http://localhost:11434)
        ollama_model: Model name (default: llama3.1:8b)
        max_tokens: Default max tokens (default: 1500)
        temperature: Default temperature (default: 0.1)
        request_timeout: Per-request timeout in seconds (default: 30)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        self.host = (self.config.get('ollama_host') or 'http://localhost:11434').rstrip('/')
        self._model_name = self.config.get('ollama_model') or DEFAULT_OLLAMA_MODEL
        self.request_timeout = self.config.get('request_timeout', 30)

        # HTTP session (created lazily, tied to event loop)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

        self.logger.info(f"Initialized Ollama client: {self.host} / {self._model_name}")

    @property
    def backend_type(self) -> BackendType:
        return BackendType.OLLAMA

    @property
    def model_name(self) -> str:
        return self._model_name

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for current event loop."""
        current_loop = asyncio.get_running_loop()

        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is not current_loop
        )

        if needs_new_session:
            if self._session is not None and not self._session.closed:
                try:
                    await self._session.close()
                except RuntimeError as e:
                    # Session belonged to a loop that is already gone
                    self.logger.debug(f"Dropping stale session: {e}")

            timeout = aiohttp.ClientTimeout(
                total=None,       # Overall limit enforced by wait_for
                sock_connect=10,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = current_loop

        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    async def health_check(self) -> Dict[str, Any]:
        """
        Check if Ollama server is running and model is available.
        """
        try:
            session = await self._get_session()

            async with session.get(f"{self.host}/api/tags") as response:
                if response.status != 200:
                    return {
                        "healthy": False,
                        "backend": "ollama",
                        "model": self._model_name,
                        "details": f"Ollama server returned status {response.status}"
                    }

                data = await response.json()
                models = [m.get('name', '') for m in data.get('models', [])]

                if not any(self._model_name in m for m in models):
                    return {
                        "healthy": False,
                        "backend": "ollama",
                        "model": self._model_name,
                        "details": f"Model not found. Available: {models}. Run: ollama pull {self._model_name}"
                    }

                return {
                    "healthy": True,
                    "backend": "ollama",
                    "model": self._model_name,
                    "details": "Ollama server running and model available"
                }

        except aiohttp.ClientConnectorError:
            return {
                "healthy": False,
                "backend": "ollama",
                "model": self._model_name,
                "details": f"Cannot connect to Ollama at {self.host}. Is it running? Try: ollama serve"
            }
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return {
                "healthy": False,
                "backend": "ollama",
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
        Generate response using Ollama.

        Args:
            prompt: Input prompt
            max_tokens: Max tokens to generate
            temperature: Sampling temperature
            json_mode: If True, constrain output to valid JSON using Ollama's format option

        Returns:
            Response dict with text, tokens, timing info
        """
        start_time = datetime.now()

        max_tokens = max_tokens or self.default_max_tokens
        temperature = temperature if temperature is not None else self.default_temperature

        payload = {
            "model": self._model_name,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_predict": max_tokens,
                "temperature": temperature,
            }
        }
        if json_mode:
            payload["format"] = "json"

        try:
            session = await self._get_session()

            async def _do_request():
                async with session.post(
                    f"{self.host}/api/generate",
                    json=payload
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise RuntimeError(f"Ollama error ({response.status}): {error_text}")
                    return await response.json()

            data = await asyncio.wait_for(_do_request(), timeout=self.request_timeout)

        except asyncio.TimeoutError:
            self._record_error()
            self.logger.error(
                f"Ollama request timed out after {self.request_timeout}s "
                f"(model={self._model_name})"
            )
            raise TimeoutError(f"LLM request timed out after {self.request_timeout}s")
        except aiohttp.ClientConnectorError:
            self._record_error()
            raise ConnectionError(
                f"Cannot connect to Ollama at {self.host}. "
                "Make sure Ollama is running: ollama serve"
            )
        except aiohttp.ClientError as e:
            self._record_error()
            self.logger.error(f"Ollama inference failed: {e}")
            raise RuntimeError(f"Ollama request failed: {e}") from e

        generated_text = data.get('response', '')
        inference_time = (datetime.now() - start_time).total_seconds()
        self._record_inference(inference_time)

        generated_tokens = data.get('eval_count', 0)
        self.logger.info(f"Generated {generated_tokens} tokens in {inference_time:.2f}s")

        return {
            "text": generated_text.strip(),
            "prompt_tokens": data.get('prompt_eval_count', 0),
            "generated_tokens": generated_tokens,
            "model": self._model_name,
            "backend": "ollama",
            "inference_time": inference_time,
        }
