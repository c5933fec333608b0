"""Vendor self-service settlement view (same figures as the admin finance report)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_admin.application.service import AdminService, get_admin_service
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.actor import Actor
from src.mp_gateway.auth.dependencies import require_vendor
from src.mp_gateway.middleware.request_log import get_request_id

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("/me/settlement")
async def my_settlement(
    request: Request,
    actor: Annotated[Actor, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    data = await service.vendor_settlement(actor.vendor_id, db)
    resp = success_response(data.model_dump())
    resp.request_id = get_request_id(request)
    return resp
