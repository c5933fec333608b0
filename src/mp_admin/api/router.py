# src/mp_admin/api/router.py
"""Admin REST API: overrides, order listing, finance reporting, invariant sweep."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_admin.application.schemas import SetOrderStatusRequest, SetPaymentStatusRequest
from src.mp_admin.application.service import AdminService, get_admin_service
from src.mp_common.database import get_db_session
from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import OrderStatus, PaymentMethod, PaymentStatus
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.actor import Actor
from src.mp_gateway.auth.dependencies import require_admin
from src.mp_gateway.middleware.request_log import get_request_id
from src.mp_settlement.api.events import status_stream
from src.mp_settlement.infrastructure.feed import ALL_ORDERS_CHANNEL, StatusFeed

router = APIRouter(prefix="/admin", tags=["admin"])

AdminActor = Annotated[Actor, Depends(require_admin)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[AdminService, Depends(get_admin_service)]


def _wrap(data: object, request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = get_request_id(request)
    return resp


@router.put("/orders/{order_id}/payment-status")
async def set_payment_status(
    order_id: str, body: SetPaymentStatusRequest, request: Request,
    actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    result = await service.set_payment_status(order_id, body.status, actor, db)
    return _wrap(result.model_dump(mode="json"), request)


@router.put("/orders/{order_id}/status")
async def set_order_status(
    order_id: str, body: SetOrderStatusRequest, request: Request,
    actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    result = await service.set_order_status(order_id, body.status, actor, db)
    return _wrap(result.model_dump(mode="json"), request)


@router.post("/orders/{order_id}/release")
async def force_release(
    order_id: str, request: Request, actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    result = await service.force_release(order_id, actor, db)
    return _wrap(result.model_dump(mode="json"), request)


@router.post("/orders/{order_id}/cancel")
async def cancel_and_refund(
    order_id: str, request: Request, actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    result = await service.cancel_and_refund(order_id, actor, db)
    return _wrap(result.model_dump(mode="json"), request)


@router.get("/orders")
async def list_orders(
    request: Request,
    actor: AdminActor,
    db: Db,
    service: Service,
    status: OrderStatus | None = Query(None, description="Filter by order status"),
    payment_status: PaymentStatus | None = Query(None, description="Filter by payment status"),
    payment_method: PaymentMethod | None = Query(None, description="Filter by payment method"),
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    cursor: str | None = Query(
        None, pattern=r"^\d{1,19}$", description="Pagination cursor (order ID)"
    ),
) -> ApiResponse:
    data = await service.list_orders(
        status, payment_status, payment_method.value if payment_method else None,
        limit, cursor, db,
    )
    return _wrap(data.model_dump(mode="json"), request)


@router.get("/orders/events")
async def all_order_events(request: Request, actor: AdminActor) -> StreamingResponse:
    return status_stream(request, StatusFeed(), ALL_ORDERS_CHANNEL)


@router.get("/orders/{order_id}/audit")
async def order_audit_trail(
    order_id: str, request: Request, actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    entries = await service.get_audit_trail(order_id, db)
    return _wrap([e.model_dump(mode="json") for e in entries], request)


@router.get("/finance/summary")
async def finance_summary(
    request: Request, actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    data = await service.finance_summary(db)
    return _wrap(data.model_dump(), request)


@router.get("/finance/vendors")
async def finance_vendors(
    request: Request, actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    data = await service.vendor_summaries(db)
    return _wrap([v.model_dump() for v in data], request)


@router.get("/finance/export")
async def finance_export(actor: AdminActor, db: Db, service: Service) -> Response:
    body = await service.export_csv(db)
    filename = f"settlement-{utc_now():%Y%m%d}.csv"
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/invariants")
async def verify_invariants(
    request: Request, actor: AdminActor, db: Db, service: Service,
) -> ApiResponse:
    data = await service.verify_invariants(db)
    return _wrap(data.model_dump(), request)
