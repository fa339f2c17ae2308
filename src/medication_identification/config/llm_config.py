# ============================================================================
# src/medication_identification/config/llm_config.py
# ============================================================================
"""
Language Model Settings
- Backend selection (openai / ollama)
- Model, generation defaults
- Caller-side timeout
- Malformed JSON handling
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMSettings(BaseSettings):
    LLM_BACKEND: Literal["openai", "ollama"] = Field(
        default="openai",
        description="Inference backend used for the AI extraction fallback"
    )
    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        description="API key for the OpenAI backend"
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Chat completion model for the OpenAI backend"
    )
    OPENAI_BASE_URL: Optional[str] = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints"
    )
    OLLAMA_HOST: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )
    OLLAMA_MODEL: str = Field(
        default="llama3.1:8b",
        description="Model name served by Ollama"
    )
    LLM_MAX_TOKENS: int = Field(
        default=1500,
        ge=1,
        description="Maximum tokens the model may generate per extraction"
    )
    LLM_TEMPERATURE: float = Field(
        default=0.1,
        ge=0.0, le=2.0,
        description="Sampling temperature (low for structured output)"
    )
    AI_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0.0,
        description="Caller-enforced timeout for one AI extraction call"
    )
    AI_REPAIR_MALFORMED_JSON: bool = Field(
        default=False,
        description="Run malformed model output through json_repair before giving up"
    )
    REMOTE_EXTRACTION_URL: Optional[str] = Field(
        default=None,
        description="If set, the orchestrator calls this HTTP extraction endpoint instead of a local model"
    )

llm_settings = LLMSettings()
