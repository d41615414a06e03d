"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from walletsigner.config import Settings
from walletsigner.errors import (
    AddressNotFoundError,
    AuthorizationError,
    ChainNotImplementedError,
    ChainParameterError,
    DuplicateAddressError,
    PassphraseMismatchError,
    SignerError,
    UnsupportedChainError,
)
from walletsigner.service import SignerService

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases
ERROR_STATUS: list[tuple[type[SignerError], int]] = [
    (AuthorizationError, 401),
    (AddressNotFoundError, 404),
    (UnsupportedChainError, 400),
    (ChainParameterError, 400),
    (DuplicateAddressError, 409),
    (PassphraseMismatchError, 409),
    (ChainNotImplementedError, 501),
]


def status_for(exc: SignerError) -> int:
    """HTTP status for a signer error (500 when unmapped)."""
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 500


async def signer_error_handler(request: Request, exc: SignerError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.code}: {exc}")

    body = {"success": False, "error": str(exc), "code": exc.code}
    if isinstance(exc, AuthorizationError):
        body["details"] = {"reason": exc.reason.value}
    return JSONResponse(status_code=status, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Request validation failed",
            "code": "validation_error",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def create_app(service: SignerService, settings: Settings) -> FastAPI:
    """Create and configure the FastAPI application.

    The service is built (and its integrity check run) by the caller; the
    app only exposes it.
    """
    app = FastAPI(
        title="Wallet Signer API",
        description="Custodial transaction signer",
        version="0.1.0",
        debug=settings.debug,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )
    app.state.service = service
    app.state.settings = settings

    app.add_exception_handler(SignerError, signer_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Register routes
    from walletsigner.api.routes import health, signer

    app.include_router(health.router, tags=["Health"])
    app.include_router(signer.router)

    return app
