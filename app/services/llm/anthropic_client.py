import logging
from typing import List, Optional

from anthropic import AsyncAnthropic

from app.services.llm.interface import LLMClient, LLMResponse, Message

logger = logging.getLogger(__name__)

JSON_PREFILL = "{"


class AnthropicClient(LLMClient):
    """
    Anthropic Messages API adapter, the alternate provider for card copy.

    There is no native JSON mode, so ``json_mode`` prefills the assistant turn
    with an opening brace and glues it back onto the reply.
    """

    provider = "anthropic"

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY not configured")
        self.client = AsyncAnthropic(api_key=api_key)

    async def generate_text(
        self,
        messages: List[Message],
        model: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        if json_mode:
            payload.append({"role": "assistant", "content": JSON_PREFILL})

        kwargs = {"model": model, "max_tokens": max_tokens, "temperature": temperature, "messages": payload}
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self.client.messages.create(**kwargs)
        except Exception as e:
            logger.error(f"Anthropic API call failed on {model}: {e}")
            raise

        content = "".join(block.text for block in response.content if block.type == "text")
        if json_mode:
            content = JSON_PREFILL + content

        return LLMResponse(
            content=content,
            model=response.model,
            finish_reason=response.stop_reason,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
        )
