from __future__ import annotations

import logging
from typing import Optional

from app.core.logic_config import LLMSettings, logic_config
from app.prompts import registry
from app.services.llm.factory import LLMFactory
from app.services.llm.interface import LLMClient, Message

logger = logging.getLogger(__name__)


class RiddleGenerationError(Exception):
    pass


class RiddleGenerator:
    """Writes the 4-line gift riddle printed on the card."""

    def __init__(self, client: Optional[LLMClient] = None, settings: Optional[LLMSettings] = None):
        self.settings = settings or logic_config.llm
        self.client = client or LLMFactory.get_client(self.settings.default_provider)

    async def generate(self, recipient_name: str, gift_idea: str) -> str:
        logger.info(f"[Riddle] Generating riddle for {recipient_name}: {gift_idea}")

        response = await self.client.generate_text(
            messages=[
                Message(
                    role="user",
                    content=registry.render(
                        "riddle_user", recipient_name=recipient_name, gift_idea=gift_idea
                    ),
                )
            ],
            model=self.settings.riddle_model,
            system_prompt=registry.get_prompt("riddle_system"),
            max_tokens=self.settings.riddle_max_tokens,
            temperature=self.settings.riddle_temperature,
        )

        riddle = (response.content or "").strip()
        if not riddle:
            raise RiddleGenerationError(f"Empty riddle returned for {recipient_name}")

        logger.info(f"[Riddle] Generated: {riddle}")
        return riddle
