from abc import ABC, abstractmethod
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class LLMResponse(BaseModel):
    content: str
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Dict[str, int] = Field(default_factory=dict)

    @property
    def truncated(self) -> bool:
        return (self.finish_reason or "").lower() in ("max_tokens", "length")


class LLMClient(ABC):
    """
    Text generation provider used for card copy, prompt analysis and image prompts.

    Implementations raise on transport or API errors; turning failures into
    canned content is the caller's job.
    """

    provider: str = "unknown"

    @abstractmethod
    async def generate_text(
        self,
        messages: List[Message],
        model: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        ``json_mode`` asks the provider for a bare JSON object, natively where
        supported.
        """
