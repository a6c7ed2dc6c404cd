from typing import Dict, Optional, Type
import logging

from app.config import get_settings
from app.core.logic_config import logic_config
from app.services.llm.interface import LLMClient
from app.services.llm.anthropic_client import AnthropicClient

logger = logging.getLogger(__name__)


class LLMFactory:
    """
    Factory for creating LLM clients based on configuration.
    Supported providers: anthropic
    """
    _clients: Dict[str, Type[LLMClient]] = {
        "anthropic": AnthropicClient,
    }

    @staticmethod
    def get_client(provider: Optional[str] = None) -> LLMClient:
        """
        Returns an instance of the configured LLM client.
        """
        settings = get_settings()
        # ENV wins over logic_config; an explicit argument wins over both
        provider = provider or settings.llm_provider or logic_config.llm.default_provider

        client_class = LLMFactory._clients.get(provider.lower())

        if not client_class:
            logger.warning(f"Unknown LLM provider '{provider}', falling back to Anthropic.")
            client_class = AnthropicClient

        return client_class(api_key=settings.anthropic_api_key)
