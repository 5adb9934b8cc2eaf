from __future__ import annotations

import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        http_status: int,
        fields: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.fields = fields or {}
        # Short human-readable title rendered as the "error" key
        self.error = error or code.replace("_", " ").capitalize()
        super().__init__(message)


class MerchantNotFoundError(AppError):
    def __init__(self, merchant_id: str):
        super().__init__(
            "merchant_not_found",
            f"Merchant {merchant_id} not found",
            status.HTTP_404_NOT_FOUND,
            {"merchant_id": merchant_id},
            error="Merchant not found",
        )


class AmountOutOfRangeError(AppError):
    def __init__(self, amount: float, min_value: float, max_value: float):
        super().__init__(
            "amount_out_of_range",
            f"Amount must be between ${min_value:g} and ${max_value:g}",
            status.HTTP_400_BAD_REQUEST,
            {"amount": amount, "min_value": min_value, "max_value": max_value},
            error="Invalid amount",
        )


class InvalidPlatformError(AppError):
    def __init__(self, platform: Optional[str]):
        super().__init__(
            "invalid_platform",
            'Platform must be either "apple" or "google"',
            status.HTTP_400_BAD_REQUEST,
            {"platform": platform},
            error="Invalid platform",
        )


def error_response(
    error: str,
    message: str,
    http_status: int,
    code: Optional[str] = None,
    fields: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    payload: dict[str, Any] = {"error": error, "message": message}
    if code:
        payload["code"] = code
    if fields:
        payload.update(fields)
    return JSONResponse(status_code=http_status, content=payload)


def _settings_for(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def available_routes(app: FastAPI) -> list[str]:
    routes = []
    for route in app.routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        for method in sorted(route.methods - {"HEAD", "OPTIONS"}):
            routes.append(f"{method} {route.path}")
    return routes


def _summarize_validation(exc: RequestValidationError) -> tuple[str, str, dict[str, Any]]:
    missing: list[str] = []
    invalid: list[dict[str, Any]] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if err.get("type") == "missing":
            missing.append(name)
        else:
            invalid.append({"field": name, "message": err.get("msg", "invalid value")})

    if missing:
        return "Missing required fields", f"Missing required fields: {', '.join(missing)}", {"required": missing}
    details = "; ".join(f"{item['field']}: {item['message']}" for item in invalid)
    return "Invalid request", details or "Invalid request", {"fields": invalid}


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        return error_response(exc.error, exc.message, exc.http_status, exc.code, exc.fields)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return error_response(
                "Not Found",
                f"Route {request.method} {request.url.path} not found",
                status.HTTP_404_NOT_FOUND,
                fields={"availableRoutes": available_routes(request.app)},
            )
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        fields = exc.detail if isinstance(exc.detail, dict) else None
        return error_response("HTTP error", message, exc.status_code, "http_error", fields)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        error, message, fields = _summarize_validation(exc)
        return error_response(error, message, status.HTTP_400_BAD_REQUEST, "validation_error", fields)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        fields = None
        if not _settings_for(request).is_production:
            fields = {"stack": traceback.format_exception(type(exc), exc, exc.__traceback__)}
        return error_response(
            "Internal Server Error",
            str(exc) or "Unexpected error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            fields,
        )
