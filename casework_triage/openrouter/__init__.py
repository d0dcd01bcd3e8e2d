"""OpenRouter client module."""

from casework_triage.openrouter.client import LLMResponse, OpenRouterClient, OpenRouterError

__all__ = ["LLMResponse", "OpenRouterClient", "OpenRouterError"]
