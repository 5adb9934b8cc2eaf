import logging
from typing import List, Optional

from google import genai
from google.genai import types
from google.genai.errors import APIError

from app.services.llm.interface import LLMClient, LLMResponse, Message

logger = logging.getLogger(__name__)


class GeminiClient(LLMClient):
    """Google Gemini adapter on the async surface of the google-genai SDK."""

    provider = "gemini"

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("GOOGLE_AI_API_KEY not configured")
        self.client = genai.Client(api_key=api_key)

    @staticmethod
    def _to_contents(messages: List[Message]) -> List[types.Content]:
        return [
            types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[types.Part(text=m.content)],
            )
            for m in messages
        ]

    async def generate_text(
        self,
        messages: List[Message],
        model: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        # Older env files carry the "models/" prefix
        model = model.removeprefix("models/")
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            system_instruction=system_prompt or None,
            response_mime_type="application/json" if json_mode else None,
        )
        contents = self._to_contents(messages)

        try:
            response = await self.client.aio.models.generate_content(
                model=model, contents=contents, config=config
            )
        except APIError as e:
            # Single attempt; callers decide whether to fall back
            logger.error(f"Gemini API error ({e.code}) on {model}: {e}")
            raise

        finish_reason = None
        if response.candidates and response.candidates[0].finish_reason:
            reason = response.candidates[0].finish_reason
            finish_reason = str(getattr(reason, "value", reason))

        usage = {}
        if response.usage_metadata:
            usage = {
                "input_tokens": response.usage_metadata.prompt_token_count or 0,
                "output_tokens": response.usage_metadata.candidates_token_count or 0,
            }

        return LLMResponse(content=response.text or "", model=model, finish_reason=finish_reason, usage=usage)
