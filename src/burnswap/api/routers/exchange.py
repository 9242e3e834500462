"""Exchange endpoints: state, quotes, events and relayed exchanges."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from burnswap.api.dependencies import get_services, require_admin_token, to_http_exception
from burnswap.api.schemas import (
    BalancesResponse,
    EventResponse,
    ExchangeRequest,
    ExchangeResponse,
    FundReserveRequest,
    FundReserveResponse,
    QuoteResponse,
    StateResponse,
    stringify_amounts,
)
from burnswap.config import RATIO_SCALE
from burnswap.engine.bootstrap import EngineServices
from burnswap.engine.events import event_payload
from burnswap.errors import ExchangeError
from burnswap.ledger.models import EventKind
from burnswap.utils.locks import LockTimeoutError

router = APIRouter(prefix="/api/v1/exchange")


@router.get("/state", response_model=StateResponse)
async def get_state(services: EngineServices = Depends(get_services)) -> StateResponse:
    """Current configuration and custody balances."""
    try:
        state = await services.exchange.get_state()
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)

    return StateResponse(
        source_asset=state.source_asset,
        target_asset=state.target_asset,
        engine_address=state.engine_address,
        administrator=state.administrator,
        admin_nonce=state.admin_nonce,
        ratio=str(state.ratio),
        ratio_scale=str(RATIO_SCALE),
        withdraw_deadline=state.withdraw_deadline,
        withdrawal_unlocked=state.withdrawal_unlocked,
        reserve=str(state.reserve),
        source_custody=str(state.source_custody),
        source_total_supply=str(state.source_total_supply),
    )


@router.get("/quote", response_model=QuoteResponse)
async def get_quote(
    source_amount: int = Query(..., ge=0),
    services: EngineServices = Depends(get_services),
) -> QuoteResponse:
    """Target amount paid for source_amount at the current ratio."""
    try:
        target_amount = await services.exchange.quote(source_amount)
        state = await services.exchange.get_state()
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)

    return QuoteResponse(
        source_amount=str(source_amount),
        target_amount=str(target_amount),
        ratio=str(state.ratio),
    )


@router.get("/balances/{holder}", response_model=BalancesResponse)
async def get_balances(
    holder: str, services: EngineServices = Depends(get_services)
) -> BalancesResponse:
    """Source and target balances of an address."""
    try:
        balances = await services.exchange.get_balances(holder)
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)

    return BalancesResponse(
        holder=holder, source=str(balances["source"]), target=str(balances["target"])
    )


@router.get("/events", response_model=list[EventResponse])
async def list_events(
    kind: Optional[str] = None,
    requester: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    services: EngineServices = Depends(get_services),
) -> list[EventResponse]:
    """Event log in emission order."""
    try:
        event_kind = EventKind(kind) if kind else None
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown event kind: {kind}")

    try:
        events = await services.exchange.list_events(
            kind=event_kind, requester=requester, limit=limit, offset=offset
        )
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)

    return [
        EventResponse(
            id=logged.id,
            kind=logged.kind.value,
            requester=logged.requester,
            payload=stringify_amounts(event_payload(logged.event)),
            created_at=logged.created_at,
        )
        for logged in events
    ]


@router.post("", response_model=ExchangeResponse)
async def exchange(
    request: ExchangeRequest,
    services: EngineServices = Depends(get_services),
    _: bool = Depends(require_admin_token),
) -> ExchangeResponse:
    """Burn the caller's source asset and pay out the target asset."""
    try:
        result = await services.exchange.exchange(
            request.caller, request.source_amount, request.permit_bytes()
        )
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)

    return ExchangeResponse(
        requester=result.requester,
        source_amount=str(result.source_amount),
        target_amount=str(result.target_amount),
        permit_applied=result.permit_applied,
        event_id=result.event_id,
    )


@router.post("/reserve", response_model=FundReserveResponse)
async def fund_reserve(
    request: FundReserveRequest,
    services: EngineServices = Depends(get_services),
    _: bool = Depends(require_admin_token),
) -> FundReserveResponse:
    """Pull target asset from the funder into the reserve."""
    try:
        reserve = await services.exchange.fund_reserve(
            request.funder, request.amount, request.permit_bytes()
        )
    except (ExchangeError, LockTimeoutError) as e:
        raise to_http_exception(e)

    return FundReserveResponse(reserve=str(reserve))

