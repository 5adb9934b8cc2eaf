from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Tone(str, Enum):
    CELEBRATORY = "celebratory"
    ELEGANT = "elegant"
    PLAYFUL = "playful"
    ROMANTIC = "romantic"
    PROFESSIONAL = "professional"


class IllustrationStyle(str, Enum):
    ANIME = "anime"
    WATERCOLOR = "watercolor"
    LINEART = "lineart"
    OILPAINTING = "oilpainting"
    CARTOON = "cartoon"


class LayerType(str, Enum):
    CONTAINER = "container"
    TEXT = "text"
    IMAGE = "image"
    SHAPE = "shape"


class LayerTree(BaseModel):
    """Recursive visual composition of a card. Only containers hold children."""

    id: str
    type: LayerType
    content: Optional[str] = None
    style: dict[str, Any] = Field(default_factory=dict)
    children: list[LayerTree] = Field(default_factory=list)

    @model_validator(mode="after")
    def _only_containers_have_children(self) -> "LayerTree":
        if self.children and self.type != LayerType.CONTAINER:
            raise ValueError(f"Layer '{self.id}' of type '{self.type.value}' cannot have children")
        return self

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, layer_id: str) -> Optional[LayerTree]:
        return next((node for node in self.walk() if node.id == layer_id), None)


class PromptAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    occasion: str = "celebration"
    recipient: Optional[str] = None
    age: Optional[int] = None
    interests: list[str] = Field(default_factory=list)
    tone: Tone = Tone.CELEBRATORY
    illustration_style: IllustrationStyle = IllustrationStyle.CARTOON


class MadlibInput(BaseModel):
    recipient_name: str = Field(..., min_length=1)
    occasion: str = Field(..., min_length=1)
    age: Optional[int] = Field(None, ge=0, le=150)
    interests: list[str] = Field(..., min_length=1)
    style: Optional[str] = None
    message: Optional[str] = None
    recipient_image: Optional[str] = None


class MessageRequest(BaseModel):
    recipient_name: str = Field(..., min_length=1)
    occasion: str = Field(..., min_length=1)
    age: Optional[int] = Field(None, ge=0, le=150)
    interests: list[str] = Field(default_factory=list)
    style: Optional[str] = None


class CardDesign(BaseModel):
    id: str
    image_url: str
    prompt_used: str
    style: str
    created_at: datetime


class GenerateCardsResponse(BaseModel):
    designs: list[CardDesign]
    message: str
    input: MadlibInput


class RefineRequest(BaseModel):
    original_prompt: str = Field(..., min_length=1)
    refinement_request: str = Field(..., min_length=1)


class GrammarRequest(BaseModel):
    text: str = Field(..., min_length=1)


class GrammarResponse(BaseModel):
    original: str
    corrected: str
    has_changes: bool
