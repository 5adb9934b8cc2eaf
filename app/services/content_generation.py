import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from starlette import status

from app.config import Settings
from app.core.logic_config import LogicConfig, logic_config
from app.prompts import registry
from app.schemas.cards import (
    CardDesign,
    IllustrationStyle,
    MadlibInput,
    MessageRequest,
    PromptAnalysis,
    Tone,
)
from app.services.llm.interface import LLMClient, Message
from app.services.llm.output import (
    Fallback,
    Generated,
    Parsed,
    clean_plain_text,
    parse_json_object,
    parse_numbered_lines,
)
from app.utils.errors import AppError

logger = logging.getLogger(__name__)

CardInput = Union[MadlibInput, MessageRequest]


class GenerationUnavailableError(AppError):
    def __init__(self, message: str = "AI generation is not configured - check GOOGLE_AI_API_KEY"):
        super().__init__(
            "ai_not_configured",
            message,
            status.HTTP_503_SERVICE_UNAVAILABLE,
            error="AI service unavailable",
        )


class ContentGenerationService:
    """
    Card copy and image-prompt generation on top of an LLM provider.

    Core operations never raise: on network, timeout or parse failure they log
    a warning and return a ``Fallback`` result carrying canned content.
    ``refine_design`` is the exception, since there is no sensible canned
    refinement of a user's own prompt.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient],
        settings: Settings,
        config: LogicConfig = logic_config,
    ):
        self.llm_client = llm_client
        self.text_model = settings.text_model
        self.image_model = settings.google_image_model
        self.timeout = settings.generation_timeout_seconds
        self.config = config.generation

    @property
    def is_configured(self) -> bool:
        return self.llm_client is not None

    @property
    def provider(self) -> str:
        return getattr(self.llm_client, "provider", "none")

    async def _complete(self, call_type: str, prompt: str, max_tokens: int, json_mode: bool = False) -> str:
        if self.llm_client is None:
            raise GenerationUnavailableError()

        start_time = time.time()
        response = await asyncio.wait_for(
            self.llm_client.generate_text(
                messages=[Message(role="user", content=prompt)],
                model=self.text_model,
                system_prompt=registry.get_prompt("system"),
                max_tokens=max_tokens,
                temperature=self.config.temperature,
                json_mode=json_mode,
            ),
            timeout=self.timeout,
        )
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"LLM call '{call_type}' via {self.provider} finished in {latency_ms}ms")
        if response.truncated:
            logger.warning(f"LLM call '{call_type}' hit the {max_tokens} token limit, output may be cut off")
        return response.content

    # --- prompt analysis ---

    async def analyze_prompt(self, prompt: str) -> Generated[PromptAnalysis]:
        """Classifies a free-text card prompt into occasion, tone and illustration style."""
        try:
            text = await self._complete(
                "analyze_prompt",
                registry.render("analyze_prompt", prompt=self._sanitize_input(prompt, max_length=1000)),
                max_tokens=self.config.analysis_max_tokens,
                json_mode=True,
            )
            return Parsed(self._coerce_analysis(parse_json_object(text)))
        except Exception as e:
            logger.warning(f"Prompt analysis failed, using fallback analysis: {e}")
            return Fallback(PromptAnalysis(), reason=str(e))

    @staticmethod
    def _coerce_analysis(data: Dict[str, Any]) -> PromptAnalysis:
        age = data.get("age")
        if isinstance(age, str) and age.strip().isdigit():
            age = int(age.strip())
        if not isinstance(age, int) or isinstance(age, bool) or age <= 0:
            age = None

        interests = data.get("interests")
        interests = [str(i).strip() for i in interests if str(i).strip()] if isinstance(interests, list) else []

        recipient = data.get("recipient")
        recipient = recipient.strip() if isinstance(recipient, str) and recipient.strip() else None

        try:
            tone = Tone(str(data.get("tone") or "").lower())
        except ValueError:
            tone = Tone.CELEBRATORY

        raw_style = data.get("illustrationStyle") or data.get("illustration_style") or ""
        try:
            style = IllustrationStyle(str(raw_style).lower().replace(" ", ""))
        except ValueError:
            style = IllustrationStyle.CARTOON

        occasion = data.get("occasion")
        return PromptAnalysis(
            occasion=occasion.strip() if isinstance(occasion, str) and occasion.strip() else "celebration",
            recipient=recipient,
            age=age,
            interests=interests,
            tone=tone,
            illustration_style=style,
        )

    # --- card designs ---

    async def generate_image_prompts(self, card: MadlibInput) -> Generated[List[str]]:
        count = self.config.design_variations
        try:
            text = await self._complete(
                "image_prompts",
                registry.render(
                    "image_prompts",
                    count=count,
                    occasion=self._sanitize_input(card.occasion),
                    recipient_name=self._sanitize_input(card.recipient_name),
                    interests=", ".join(self._sanitize_input(i) for i in card.interests),
                    age=card.age or "not specified",
                    style=self._sanitize_input(card.style or "modern and colorful"),
                ),
                max_tokens=self.config.prompts_max_tokens,
            )
            return Parsed(parse_numbered_lines(text, expected=count))
        except Exception as e:
            logger.warning(f"Image prompt generation failed, using template prompts: {e}")
            return Fallback(self.fallback_prompts(card), reason=str(e))

    @staticmethod
    def fallback_prompts(card: CardInput) -> List[str]:
        occasion = card.occasion.lower()
        interests = ", ".join(card.interests)
        return [
            f"A vibrant, modern {occasion} card with colorful balloons, confetti, and celebration elements. "
            f"Include themes related to {interests}. Bright, joyful colors with a festive atmosphere.",
            f"An elegant {occasion} card with a minimalist design, featuring soft pastel colors and delicate decorations. "
            f"Subtle references to {interests}. Clean, sophisticated style.",
            f"A playful, fun {occasion} card with bold colors and dynamic composition. "
            f"Incorporate elements of {interests} in a creative way. Energetic and cheerful mood.",
        ]

    async def generate_card_designs(self, card: MadlibInput) -> List[CardDesign]:
        logger.info(f"Generating card designs: occasion={card.occasion!r} interests={card.interests}")
        prompts = await self.generate_image_prompts(card)
        designs = [
            self._create_card_design(prompt, index, card.style)
            for index, prompt in enumerate(prompts.value)
        ]
        logger.info(f"Generated {len(designs)} card designs (source={prompts.source})")
        return designs

    def _create_card_design(self, prompt: str, index: int, style: Optional[str]) -> CardDesign:
        # TODO: swap the placeholder for a real render once the image model is provisioned on Vertex AI
        design_id = f"card_{int(time.time() * 1000)}_{index}"
        image_url = f"{self.config.placeholder_image_base}?text={quote(prompt[:50])}"
        return CardDesign(
            id=design_id,
            image_url=image_url,
            prompt_used=prompt,
            style=style or "modern",
            created_at=datetime.now(timezone.utc),
        )

    # --- copy ---

    async def generate_message(self, card: CardInput) -> Generated[str]:
        age_line = f"They are turning {card.age} years old." if card.age else ""
        interests_line = f"They love: {', '.join(card.interests)}." if card.interests else ""
        try:
            text = await self._complete(
                "card_message",
                registry.render(
                    "card_message",
                    occasion=self._sanitize_input(card.occasion),
                    recipient_name=self._sanitize_input(card.recipient_name),
                    age_line=age_line,
                    interests_line=self._sanitize_input(interests_line),
                ),
                max_tokens=self.config.message_max_tokens,
            )
            message = clean_plain_text(text)
            if not message:
                raise ValueError("empty message")
            return Parsed(message)
        except Exception as e:
            logger.warning(f"Message generation failed, using template message: {e}")
            return Fallback(self.fallback_message(card), reason=str(e))

    @staticmethod
    def fallback_message(card: CardInput) -> str:
        return f"Happy {card.occasion}, {card.recipient_name}! Wishing you all the best!"

    async def refine_design(self, original_prompt: str, refinement_request: str) -> CardDesign:
        prompt = registry.render(
            "refine_design",
            original_prompt=self._sanitize_input(original_prompt, max_length=1000),
            refinement_request=self._sanitize_input(refinement_request),
        )
        try:
            text = await self._complete("refine_design", prompt, max_tokens=self.config.refine_max_tokens)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error refining design: {e}")
            raise AppError(
                "generation_failed",
                f"Failed to refine card: {e}",
                status.HTTP_502_BAD_GATEWAY,
                error="Failed to refine card",
            ) from e

        new_prompt = clean_plain_text(text)
        if not new_prompt:
            raise AppError(
                "generation_failed",
                "Model returned an empty prompt",
                status.HTTP_502_BAD_GATEWAY,
                error="Failed to refine card",
            )
        return self._create_card_design(new_prompt, 0, None)

    async def check_grammar(self, text: str) -> Generated[str]:
        try:
            output = await self._complete(
                "check_grammar",
                registry.render("check_grammar", text=text),
                max_tokens=self.config.grammar_max_tokens,
            )
            corrected = clean_plain_text(output)
            if not corrected:
                raise ValueError("empty correction")
            return Parsed(corrected)
        except Exception as e:
            logger.warning(f"Grammar check failed, returning original text: {e}")
            return Fallback(text, reason=str(e))

    async def test_connection(self) -> bool:
        if not self.is_configured:
            logger.warning("AI connection test skipped: no provider configured")
            return False
        try:
            text = await self._complete("test_connection", 'Say "Hello from Google AI!"', max_tokens=50)
            logger.info(f"AI connection test successful: {text.strip()[:80]}")
            return True
        except Exception as e:
            logger.error(f"AI connection test failed: {e}")
            return False

    # --- input hygiene ---

    def _sanitize_input(self, text: str, max_length: int = 500) -> str:
        """
        Truncates user input and strips tag/brace characters when it looks like
        a prompt-injection attempt.
        """
        if not text:
            return ""

        text = text[:max_length]

        if self._is_suspicious(text):
            logger.warning(f"Suspicious input detected: {text[:50]}...")
            text = re.sub(r'[<>{}/]', '', text)

        return text

    def _is_suspicious(self, text: str) -> bool:
        patterns = [
            r"ignore previous instructions",
            r"system prompt",
            r"you are now",
            r"new task:",
            r"assistant:",
            r"<system>",
            r"### system",
        ]
        text_lower = text.lower()
        return any(re.search(p, text_lower) for p in patterns)
