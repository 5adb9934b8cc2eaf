from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env: str = Field("development", validation_alias=AliasChoices("ENV", "NODE_ENV"))
    port: int = Field(3001, alias="PORT")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    llm_provider: str = Field("gemini", alias="LLM_PROVIDER")
    google_ai_api_key: Optional[str] = Field(None, alias="GOOGLE_AI_API_KEY")
    google_text_model: str = Field("gemini-2.5-flash", alias="GOOGLE_TEXT_MODEL")
    google_image_model: str = Field("imagen-3", alias="GOOGLE_IMAGE_MODEL")
    anthropic_api_key: Optional[str] = Field(None, alias="ANTHROPIC_API_KEY")
    anthropic_model: str = Field("claude-3-5-haiku-latest", alias="ANTHROPIC_MODEL")
    generation_timeout_seconds: float = Field(15.0, alias="GENERATION_TIMEOUT_SECONDS")
    workflow_timeout_seconds: float = Field(15.0, alias="WORKFLOW_TIMEOUT_SECONDS")

    twilio_account_sid: Optional[str] = Field(None, alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: Optional[str] = Field(None, alias="TWILIO_AUTH_TOKEN")
    twilio_phone_number: str = Field("+18553890451", alias="TWILIO_PHONE_NUMBER")

    neocurrency_api_key: Optional[str] = Field(None, alias="NEOCURRENCY_API_KEY")
    neocurrency_sandbox: bool = Field(False, alias="NEOCURRENCY_SANDBOX")
    mock_latency_enabled: bool = Field(True, alias="MOCK_LATENCY_ENABLED")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def text_model(self) -> str:
        if self.llm_provider.lower() == "anthropic":
            return self.anthropic_model
        return self.google_text_model


@lru_cache()
def get_settings() -> Settings:
    return Settings()
