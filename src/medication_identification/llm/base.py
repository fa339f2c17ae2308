# ============================================================================
# src/medication_identification/llm/base.py
# ============================================================================
"""
Base Language Model Client Interface

Defines the abstract interface that all inference backends implement.
Supported backends:
- openai: OpenAI chat completions (or any compatible endpoint)
- ollama: Ollama server (local, no API key)

Backends raise plain TimeoutError / ConnectionError / RuntimeError; the
AI extractor maps those into ExtractionError.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional
import logging


class BackendType(Enum):
    """Supported inference backends."""
    OPENAI = "openai"
    OLLAMA = "ollama"


class BaseLLMClient(ABC):
    """
    Abstract base class for language model clients.

    All backends must implement:
    - generate(): Async text generation
    - health_check(): Verify backend is available
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

        self.default_max_tokens = self.config.get('max_tokens', 1500)
        self.default_temperature = self.config.get('temperature', 0.1)

        self._inference_count = 0
        self._error_count = 0
        self._total_inference_time = 0.0

    @property
    @abstractmethod
    def backend_type(self) -> BackendType:
        """Return the backend type."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier."""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False
    ) -> Dict[str, Any]:
        """
        Generate response from prompt.

        Args:
            prompt: Input text prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 = deterministic)
            json_mode: If True, ask the backend to constrain output to JSON

        Returns:
            {
                "text": str,              # Generated text
                "prompt_tokens": int,     # Input token count
                "generated_tokens": int,  # Output token count
                "model": str,             # Model identifier
                "backend": str,           # Backend type
                "inference_time": float   # Seconds
            }

        Raises:
            TimeoutError: Backend did not answer in time
            ConnectionError: Backend unreachable
            RuntimeError: Backend answered with an error
        """
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """
        Check if the backend is available and ready.

        Returns:
            {
                "healthy": bool,
                "backend": str,
                "model": str,
                "details": str
            }
        """
        pass

    async def close(self):
        """Release network resources. Default: nothing to release."""
        return None

    def _record_inference(self, inference_time: float):
        self._inference_count += 1
        self._total_inference_time += inference_time

    def _record_error(self):
        self._error_count += 1

    def get_statistics(self) -> Dict[str, Any]:
        """Get inference statistics."""
        avg_time = (
            self._total_inference_time / self._inference_count
            if self._inference_count > 0
            else 0.0
        )

        return {
            "backend": self.backend_type.value,
            "model": self.model_name,
            "inference_count": self._inference_count,
            "error_count": self._error_count,
            "total_inference_time": self._total_inference_time,
            "avg_inference_time": avg_time,
        }
