# src/mp_order/api/router.py
"""Buyer-facing order API: checkout (hosted / manual), payment retry, reads."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.actor import Actor
from src.mp_gateway.auth.dependencies import get_current_actor, get_optional_actor
from src.mp_gateway.middleware.request_log import get_request_id
from src.mp_order.application.schemas import CheckoutRequest, ManualOrderRequest
from src.mp_order.application.service import OrderIntakeService, get_order_service
from src.mp_settlement.api.events import status_stream
from src.mp_settlement.infrastructure.feed import StatusFeed, order_channel

router = APIRouter(tags=["orders"])


def _wrap(data: dict, request: Request, message: str = "success") -> ApiResponse:
    resp = success_response(data, message)
    resp.request_id = get_request_id(request)
    return resp


@router.post("/checkout", status_code=201)
async def checkout(
    body: CheckoutRequest,
    request: Request,
    actor: Annotated[Actor | None, Depends(get_optional_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderIntakeService, Depends(get_order_service)],
) -> ApiResponse:
    data = await service.checkout(body, actor, db)
    return _wrap(data.model_dump(), request)


@router.post("/orders/manual", status_code=201)
async def submit_manual_order(
    body: ManualOrderRequest,
    request: Request,
    actor: Annotated[Actor | None, Depends(get_optional_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderIntakeService, Depends(get_order_service)],
) -> ApiResponse:
    data = await service.submit_manual(body, actor, db)
    return _wrap(data.model_dump(), request, data.verification_message or "success")


@router.post("/orders/{order_id}/checkout-session")
async def retry_checkout_session(
    order_id: str,
    request: Request,
    actor: Annotated[Actor | None, Depends(get_optional_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderIntakeService, Depends(get_order_service)],
) -> ApiResponse:
    data = await service.retry_checkout(order_id, actor, db)
    return _wrap(data.model_dump(), request)


@router.get("/orders")
async def list_my_orders(
    request: Request,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderIntakeService, Depends(get_order_service)],
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(
        None, pattern=r"^\d{1,19}$", description="Pagination cursor (order ID)"
    ),
) -> ApiResponse:
    data = await service.list_my_orders(actor, limit, cursor, db)
    return _wrap(data.model_dump(mode="json"), request)


@router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    request: Request,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderIntakeService, Depends(get_order_service)],
) -> ApiResponse:
    data = await service.get_order(order_id, actor, db)
    return _wrap(data.model_dump(mode="json"), request)


@router.get("/orders/{order_id}/events")
async def order_events(
    order_id: str,
    request: Request,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderIntakeService, Depends(get_order_service)],
) -> StreamingResponse:
    await service.get_readable(order_id, actor, db)
    await db.close()  # the stream may stay open for minutes
    return status_stream(request, StatusFeed(), order_channel(order_id))
