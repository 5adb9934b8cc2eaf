from typing import Callable, Dict, Optional
import logging

from app.config import Settings, get_settings
from app.services.llm.interface import LLMClient
from app.services.llm.anthropic_client import AnthropicClient
from app.services.llm.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


class LLMFactory:
    """
    Factory for creating LLM clients based on configuration.
    Supported providers: gemini, anthropic
    """
    _clients: Dict[str, Callable[[Settings], LLMClient]] = {
        "gemini": lambda s: GeminiClient(api_key=s.google_ai_api_key),
        "anthropic": lambda s: AnthropicClient(api_key=s.anthropic_api_key),
    }

    @staticmethod
    def get_client(settings: Optional[Settings] = None, provider: Optional[str] = None) -> Optional[LLMClient]:
        """
        Returns an instance of the configured LLM client, or None when the
        provider has no credentials. Callers treat None as "AI unavailable".
        """
        settings = settings or get_settings()
        provider = (provider or settings.llm_provider or "gemini").lower()

        builder = LLMFactory._clients.get(provider)
        if not builder:
            logger.warning(f"Unknown LLM provider '{provider}', falling back to Gemini.")
            builder = LLMFactory._clients["gemini"]

        try:
            return builder(settings)
        except ValueError as e:
            logger.warning(f"{e} - AI features will use fallback content")
            return None
