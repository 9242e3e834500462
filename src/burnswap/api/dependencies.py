"""Shared FastAPI dependencies and error translation."""

import logging

from fastapi import Header, HTTPException, Request

from burnswap.config import get_settings
from burnswap.engine.bootstrap import EngineServices, build_engine
from burnswap.errors import (
    AdminSignatureRejected,
    DeadlineNotIncreasing,
    GatewayError,
    NotInitialized,
    PermitError,
    TimeoutNotReached,
    Unauthorized,
    ZeroOutputRejected,
)
from burnswap.ledger.database import get_session_factory
from burnswap.utils.locks import LockTimeoutError

logger = logging.getLogger(__name__)


async def require_admin_token(x_admin_token: str = Header(None)) -> bool:
    """Verify relayer token from header on mutating endpoints.

    If ADMIN_TOKEN is not set, allows access (dev mode).
    """
    settings = get_settings()

    if not settings.admin_token:
        return True

    if x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")

    return True


def get_services(request: Request) -> EngineServices:
    """Engine services attached to the app, built on first use."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = build_engine(get_session_factory())
        request.app.state.services = services
    return services


def to_http_exception(error: Exception) -> HTTPException:
    """Map an engine error to an HTTP error."""
    if isinstance(error, (Unauthorized, AdminSignatureRejected)):
        status = 403
    elif isinstance(error, PermitError):
        status = 400
    elif isinstance(
        error, (GatewayError, TimeoutNotReached, DeadlineNotIncreasing, ZeroOutputRejected)
    ):
        status = 409
    elif isinstance(error, (NotInitialized, LockTimeoutError)):
        status = 503
    else:
        status = 400
    logger.debug(f"Request failed with {type(error).__name__}: {error}")
    return HTTPException(
        status_code=status, detail={"error": type(error).__name__, "message": str(error)}
    )
