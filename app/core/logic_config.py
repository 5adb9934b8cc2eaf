import os
import yaml
import logging
from typing import Optional, Dict
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class GenerationSettings(BaseModel):
    analysis_max_tokens: int = 600
    prompts_max_tokens: int = 1200
    message_max_tokens: int = 300
    refine_max_tokens: int = 500
    grammar_max_tokens: int = 800
    temperature: float = 0.7
    design_variations: int = 3
    placeholder_image_base: str = "https://via.placeholder.com/800x1000/4A90E2/FFFFFF"


class GiftSettings(BaseModel):
    catalog_path: str = "config/merchants.yaml"
    recommend_limit: int = 3
    recommend_limit_max: int = 12
    card_validity_days: int = 365


class MockLatency(BaseModel):
    """Simulated provider latency in milliseconds, per mock operation."""
    catalog: int = 100
    search: int = 100
    merchant: int = 50
    issue: int = 200
    balance: int = 100
    wallet_pass: int = 150
    recommend: int = 100


class WorkflowSettings(BaseModel):
    style_animations: Dict[str, str] = Field(default_factory=lambda: {
        "anime": "sparkle",
        "watercolor": "fade-in",
        "lineart": "draw-on",
        "oilpainting": "slow-zoom",
        "cartoon": "bounce",
    })
    tone_fonts: Dict[str, str] = Field(default_factory=lambda: {
        "celebratory": "Fredoka",
        "elegant": "Playfair Display",
        "playful": "Comic Neue",
        "romantic": "Great Vibes",
        "professional": "Inter",
    })


class LogicConfig(BaseModel):
    """
    Centralized business logic configuration.
    Loads from configs/logic.yaml with hierarchy:
    1. Static Defaults (in code)
    2. YAML file (configs/logic.yaml, or LOGIC_CONFIG_PATH)
    """
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    gifts: GiftSettings = Field(default_factory=GiftSettings)
    mock_latency_ms: MockLatency = Field(default_factory=MockLatency)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "LogicConfig":
        config_path = config_path or os.environ.get("LOGIC_CONFIG_PATH", "configs/logic.yaml")

        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config_dict = yaml.safe_load(f) or {}
                return cls.model_validate(config_dict)
            except Exception as e:
                logger.error(f"Failed to load logic config from {config_path}: {e}")

        logger.info(f"Using default logic configuration (file not found: {config_path})")
        return cls()


# Global instance
logic_config = LogicConfig.load()
