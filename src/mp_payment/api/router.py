"""Gateway webhook endpoint.

Signature verification needs the exact bytes the gateway signed, so the body
is read raw instead of through a pydantic model.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_payment.application.service import PaymentService, get_payment_service

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook")
async def gateway_webhook(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[PaymentService, Depends(get_payment_service)],
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> ApiResponse:
    payload = await request.body()
    ack = await service.handle_webhook(payload, stripe_signature or "", db)
    return success_response(ack.model_dump())
