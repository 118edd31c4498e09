from __future__ import annotations
import logging
import os
from typing import Optional

from tasktalk.config import Config
from .types import LLM
from .providers.ollama_http import OllamaHTTP
from .providers.openai_http import OpenAIHTTP
from .providers.anthropic_http import AnthropicHTTP

logger = logging.getLogger(__name__)


def build_llm(cfg: Config, provider: Optional[str] = None, model: Optional[str] = None) -> Optional[LLM]:
    """Provider named by config (or override); None when unset or missing credentials."""
    provider = (provider or cfg.llm_provider or "").strip().lower()
    timeout = cfg.llm_timeout_s
    if not provider:
        return None
    if provider == "ollama":
        return OllamaHTTP(cfg.ollama_base_url, model or cfg.ollama_model, timeout=timeout)
    if provider == "openai":
        k = os.getenv("OPENAI_API_KEY")
        if not k:
            logger.warning("llm provider openai selected but OPENAI_API_KEY is not set")
            return None
        return OpenAIHTTP(k, os.getenv("OPENAI_BASE_URL", "https://api.openai.com"),
                          model or os.getenv("OPENAI_MODEL", "gpt-4.1-mini"), timeout=timeout)
    if provider == "anthropic":
        k = os.getenv("ANTHROPIC_API_KEY")
        if not k:
            logger.warning("llm provider anthropic selected but ANTHROPIC_API_KEY is not set")
            return None
        return AnthropicHTTP(k, os.getenv("ANTHROPIC_API_BASE_URL", "https://api.anthropic.com"),
                             model or os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-latest"), timeout=timeout)
    logger.warning("unknown llm provider %r", provider)
    return None
