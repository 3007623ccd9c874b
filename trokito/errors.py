from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class DomainError(Exception):
    """Domain-level exception normalized by the global error handler."""

    default_code = "domain_error"

    def __init__(
        self,
        detail: str,
        *,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        code: str | None = None,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.code = code or self.default_code


class InvalidAmount(DomainError):
    default_code = "invalid_amount"


class InsufficientPayment(DomainError):
    default_code = "insufficient_payment"


class InvalidConfiguration(DomainError):
    default_code = "invalid_configuration"


class ValidationNormalizeMiddleware:
    """Normalize FastAPI 422 validation responses into 400 with a short error body."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        status_code = 500
        headers: List[Tuple[bytes, bytes]] = []
        body_chunks: List[bytes] = []

        async def send_wrapper(message: Dict[str, Any]) -> None:
            nonlocal status_code, headers
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                headers = list(message.get("headers", []))
                return
            if message["type"] == "http.response.body":
                body_chunks.append(message.get("body", b"") or b"")
                if message.get("more_body"):
                    return

            if status_code == 422:
                payload = json.dumps(
                    {"error": "Invalid input.", "code": "invalid_input"}
                ).encode("utf-8")
                filtered = [
                    (key, value)
                    for key, value in headers
                    if key.lower() not in {b"content-length", b"content-type"}
                ]
                filtered.append((b"content-type", b"application/json"))
                filtered.append((b"content-length", str(len(payload)).encode()))
                await send(
                    {
                        "type": "http.response.start",
                        "status": 400,
                        "headers": filtered,
                    }
                )
                await send({"type": "http.response.body", "body": payload})
                return

            await send(
                {
                    "type": "http.response.start",
                    "status": status_code,
                    "headers": headers,
                }
            )
            await send(
                {
                    "type": "http.response.body",
                    "body": b"".join(body_chunks),
                }
            )

        await self.app(scope, receive, send_wrapper)


async def _domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, DomainError)
    return JSONResponse(
        {"error": exc.detail, "code": exc.code}, status_code=exc.status_code
    )


def install_error_handling(app: FastAPI) -> FastAPI:
    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_middleware(ValidationNormalizeMiddleware)
    return app


__all__ = [
    "DomainError",
    "InsufficientPayment",
    "InvalidAmount",
    "InvalidConfiguration",
    "ValidationNormalizeMiddleware",
    "install_error_handling",
]
