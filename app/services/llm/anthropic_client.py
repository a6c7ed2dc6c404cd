from typing import List, Optional
from anthropic import AsyncAnthropic
import logging

from app.services.llm.interface import LLMClient, Message, LLMResponse

logger = logging.getLogger(__name__)

class AnthropicClient(LLMClient):
    """
    Adapter for Anthropic API.
    """
    def __init__(self, api_key: Optional[str] = None):
        self.client = AsyncAnthropic(api_key=api_key)

    async def generate_text(
        self,
        messages: List[Message],
        model: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        stops: Optional[List[str]] = None,
    ) -> LLMResponse:
        try:
            kwargs = {
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": [{"role": m.role, "content": m.content} for m in messages],
            }

            if system_prompt:
                kwargs["system"] = system_prompt

            if stops:
                kwargs["stop_sequences"] = stops

            response = await self.client.messages.create(**kwargs)

            content = response.content[0].text if response.content else ""
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens
            }

            return LLMResponse(
                content=content,
                model=model,
                raw_response=response,
                usage=usage
            )

        except Exception as e:
            logger.error(f"Anthropic API call failed: {e}")
            raise
