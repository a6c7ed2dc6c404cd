from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from app.config import get_settings
from app.core.logic_config import CardSettings, logic_config
from app.prompts import registry

logger = logging.getLogger(__name__)


class CardGenerationError(Exception):
    pass


class GammaClient:
    def __init__(
        self,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_s: Optional[float] = None,
        card_settings: Optional[CardSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_base = (api_base or settings.gamma_api_base).strip()
        self.api_key = (api_key or settings.gamma_api_key or "").strip()
        self.timeout_s = timeout_s or settings.gamma_timeout_s
        self.card_settings = card_settings or logic_config.card
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _payload(self, recipient_name: str, riddle: str) -> dict[str, Any]:
        return {
            "topic": registry.render("card_topic", recipient_name=recipient_name, riddle=riddle),
            "style": self.card_settings.style,
            "numCards": self.card_settings.num_cards,
            "imageGeneration": {"enabled": True, "model": self.card_settings.image_model},
            "sharing": {"externalAccess": True},
        }

    async def generate(self, recipient_name: str, riddle: str) -> str:
        """Creates a one-page card and returns its shareable url."""
        if not self.api_key:
            raise CardGenerationError("GAMMA_API_KEY environment variable is not set")

        logger.info(f"[Gamma] Generating card for {recipient_name}")
        url = f"{self.api_base.rstrip('/')}/generations"

        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            response = await client.post(url, headers=self._headers(), json=self._payload(recipient_name, riddle))

        if response.status_code >= 400:
            raise CardGenerationError(f"Gamma API error: {response.status_code} - {response.text}")

        card_url = response.json().get("gammaUrl")
        if not card_url:
            raise CardGenerationError("Gamma API response has no gammaUrl")

        logger.info(f"[Gamma] Card generated: {card_url}")
        return card_url
