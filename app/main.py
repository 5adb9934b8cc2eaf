from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, get_settings
from app.dependencies import ServiceContainer, get_services
from app.utils.errors import install_exception_handlers
from routes.cards import router as cards_router
from routes.gift_cards import router as gift_cards_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _cors_origins(settings: Settings) -> list[str]:
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    return origins or ["*"]


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    settings = settings or get_settings()
    services = services or ServiceContainer.build(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Pop Gifts API starting ({settings.env}) on port {settings.port}")
        logger.info(
            f"AI provider: {services.content.provider}, "
            f"gift cards: {'mock' if services.gift_cards.use_mock else 'live'}, "
            f"sms: {'mock' if services.sms.use_mock else 'twilio'}"
        )
        yield
        logger.info("Pop Gifts API shutting down")

    app = FastAPI(title="Pop Gifts API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    origins = _cors_origins(settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    install_exception_handlers(app)
    app.include_router(cards_router)
    app.include_router(gift_cards_router)

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "healthy",
            "service": "pop-gifts-api",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.env,
        }

    if not settings.is_production:

        @app.get("/debug/env")
        async def debug_env(container: ServiceContainer = Depends(get_services)) -> dict:
            """Which integrations are configured. Never returns secret values."""
            return {
                "environment": settings.env,
                "ai": {
                    "provider": container.content.provider,
                    "configured": container.content.is_configured,
                    "text_model": container.content.text_model,
                    "image_model": container.content.image_model,
                    "connected": await container.content.test_connection(),
                },
                "gift_cards": {
                    "configured": bool(settings.neocurrency_api_key),
                    "sandbox": settings.neocurrency_sandbox,
                    "mock": container.gift_cards.use_mock,
                },
                "sms": {
                    "configured": bool(settings.twilio_account_sid and settings.twilio_auth_token),
                    "mock": container.sms.use_mock,
                    "from": settings.twilio_phone_number,
                },
            }

    return app


app = create_app()
