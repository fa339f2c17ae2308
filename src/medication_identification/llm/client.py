# ============================================================================
# src/medication_identification/llm/client.py
# ============================================================================
"""
Language Model Client Factory

Usage:
    from medication_identification.llm.client import create_client

    client = create_client()                       # backend from settings
    client = create_client({'backend': 'ollama'})  # explicit override

    result = await client.generate(prompt, json_mode=True)
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseLLMClient, BackendType
from .ollama_client import OllamaClient, DEFAULT_OLLAMA_MODEL
from .openai_client import OpenAIClient, DEFAULT_OPENAI_MODEL
from ..core.config import get_llm_config
from ..utils.exceptions import ConfigurationError

_logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "openai"

# Keyed by (backend, connection params) so HTTP sessions are reused
_client_cache: Dict[tuple, BaseLLMClient] = {}


def create_client(config: Optional[Dict[str, Any]] = None) -> BaseLLMClient:
    """
    Factory function to create a language model client.

    Settings are merged with the passed config; passed values win.
    Returns a cached instance when backend and connection params match.

    Args:
        config: Optional overrides, at minimum:
            - backend: "openai" | "ollama"

    Returns:
        Configured client instance

    Raises:
        ConfigurationError: If backend type is not supported
    """
    config = {**get_llm_config(), **(config or {})}
    backend = (config.get('backend') or DEFAULT_BACKEND).lower()

    if backend == BackendType.OLLAMA.value:
        cache_key = (backend, config.get('ollama_host'), config.get('ollama_model'))
    elif backend == BackendType.OPENAI.value:
        cache_key = (backend, config.get('openai_base_url'), config.get('openai_model'),
                     config.get('openai_api_key'))
    else:
        raise ConfigurationError(
            f"Unknown backend: {backend}. Supported backends: openai, ollama"
        )

    if cache_key in _client_cache:
        _logger.debug(f"Reusing cached {backend} client")
        return _client_cache[cache_key]

    if backend == BackendType.OLLAMA.value:
        client: BaseLLMClient = OllamaClient(config)
    else:
        client = OpenAIClient(config)

    _client_cache[cache_key] = client
    _logger.info(f"Created and cached {backend} client: model={client.model_name}")
    return client


def clear_client_cache():
    """Forget cached clients (tests, settings reload)."""
    _client_cache.clear()


__all__ = [
    "create_client",
    "clear_client_cache",
    "BaseLLMClient",
    "BackendType",
    "OllamaClient",
    "OpenAIClient",
    "DEFAULT_BACKEND",
    "DEFAULT_OLLAMA_MODEL",
    "DEFAULT_OPENAI_MODEL",
]
