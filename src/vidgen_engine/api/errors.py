"""Mapping of domain errors to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vidgen_engine.domain.errors import (
    AuthError,
    InvalidStateError,
    NotFoundError,
    ProviderError,
    QueueExhaustedError,
    RateLimitExceededError,
    ValidationError,
    VidGenError,
)
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)

STATUS_CODES: list[tuple[type[VidGenError], int, str]] = [
    (AuthError, status.HTTP_401_UNAUTHORIZED, "unauthorized"),
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (RateLimitExceededError, status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited"),
    (QueueExhaustedError, status.HTTP_409_CONFLICT, "queue_exhausted"),
    (InvalidStateError, status.HTTP_409_CONFLICT, "invalid_state"),
    (ProviderError, status.HTTP_502_BAD_GATEWAY, "provider_error"),
]


def _classify(exc: VidGenError) -> tuple[int, str]:
    for error_type, code, label in STATUS_CODES:
        if isinstance(exc, error_type):
            return code, label
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"


async def vidgen_error_handler(request: Request, exc: VidGenError) -> JSONResponse:
    code, label = _classify(exc)
    headers: dict[str, str] = {}
    if isinstance(exc, AuthError):
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after_seconds)

    if code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc))
    else:
        logger.info("request_rejected", path=request.url.path, status_code=code, error=label)

    return JSONResponse(
        status_code=code,
        content={"error": label, "detail": str(exc)},
        headers=headers or None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation_error", "detail": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(VidGenError, vidgen_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
