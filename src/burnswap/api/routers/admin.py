"""Administrative endpoints.

The relayer token only gates access to the endpoints. Each request carries
an administrator signature over the call, and the recovered signer must be
the configured administrator.
"""

from fastapi import APIRouter, Depends

from burnswap.api.dependencies import get_services, require_admin_token, to_http_exception
from burnswap.api.schemas import (
    AdminEventResponse,
    SetDeadlineRequest,
    SetRatioRequest,
    SignedAdminRequest,
    TransferAdministrationRequest,
    WithdrawRequest,
    stringify_amounts,
)
from burnswap.engine.bootstrap import EngineServices
from burnswap.engine.events import event_payload
from burnswap.errors import ExchangeError
from burnswap.utils.locks import LockTimeoutError

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin_token)])


async def _execute(services: EngineServices, request: SignedAdminRequest) -> AdminEventResponse:
    try:
        event = await services.admin.execute(request.to_call(), request.signature_bytes())
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)
    return AdminEventResponse(
        kind=event.kind.value, payload=stringify_amounts(event_payload(event))
    )


@router.post("/withdraw", response_model=AdminEventResponse)
async def withdraw(
    request: WithdrawRequest, services: EngineServices = Depends(get_services)
) -> AdminEventResponse:
    """Withdraw an asset from custody to the administrator."""
    return await _execute(services, request)


@router.post("/ratio", response_model=AdminEventResponse)
async def set_ratio(
    request: SetRatioRequest, services: EngineServices = Depends(get_services)
) -> AdminEventResponse:
    """Set the exchange ratio."""
    return await _execute(services, request)


@router.post("/deadline", response_model=AdminEventResponse)
async def set_deadline(
    request: SetDeadlineRequest, services: EngineServices = Depends(get_services)
) -> AdminEventResponse:
    """Push the withdraw deadline later."""
    return await _execute(services, request)


@router.post("/administrator", response_model=AdminEventResponse)
async def transfer_administration(
    request: TransferAdministrationRequest, services: EngineServices = Depends(get_services)
) -> AdminEventResponse:
    """Hand over the administrator role."""
    return await _execute(services, request)
