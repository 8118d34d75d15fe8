"""
services/work_order/router.py
Work orders under /services: assignment (admin), status updates and
cash-out (assigned decorator or admin).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from config.database import DocumentStore, get_store
from services.work_order.orders import WorkOrders
from shared.middleware.auth import Caller, get_current_user, require_admin, require_decorator
from shared.models.models import ServiceStatus
from shared.schemas.schemas import (
    CashOutRequest,
    ServiceAssignRequest,
    ServiceResponse,
    ServiceStatusUpdateRequest,
)

router = APIRouter(prefix="/services", tags=["Services"])


def get_work_orders(store: DocumentStore = Depends(get_store)) -> WorkOrders:
    return WorkOrders(store)


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def assign_service(
    data: ServiceAssignRequest,
    current_user: Caller = Depends(require_admin),
    orders: WorkOrders = Depends(get_work_orders),
):
    """Assign a decorator to a paid booking. One service per booking."""
    service = await orders.assign(
        data.booking_id,
        data.decorator_email,
        current_user.email,
        decorator_name=data.decorator_name,
        decorator_phone=data.decorator_phone,
        service_type=data.service_type,
    )
    return ServiceResponse.model_validate(service)


@router.get("", response_model=list[ServiceResponse])
async def list_services(
    status_filter: Optional[ServiceStatus] = Query(None, alias="status"),
    current_user: Caller = Depends(require_admin),
    orders: WorkOrders = Depends(get_work_orders),
):
    return [ServiceResponse.model_validate(s) for s in await orders.list_all(status_filter)]


@router.get("/decorator", response_model=list[ServiceResponse])
async def my_services(
    current_user: Caller = Depends(require_decorator),
    orders: WorkOrders = Depends(get_work_orders),
):
    """Services assigned to the calling decorator."""
    return [ServiceResponse.model_validate(s) for s in await orders.list_for_decorator(current_user.email)]


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str,
    current_user: Caller = Depends(get_current_user),
    orders: WorkOrders = Depends(get_work_orders),
):
    service = await orders.get_or_404(service_id)
    orders.ensure_assignee(service, current_user.email, current_user.is_admin)
    return ServiceResponse.model_validate(service)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service_status(
    service_id: str,
    data: ServiceStatusUpdateRequest,
    current_user: Caller = Depends(get_current_user),
    orders: WorkOrders = Depends(get_work_orders),
):
    """Advance the service one step: Assigned → Confirmed → Completed."""
    service = await orders.update_status(
        service_id, data.status, current_user.email, is_admin=current_user.is_admin
    )
    return ServiceResponse.model_validate(service)


@router.post("/cashout/{service_id}", response_model=ServiceResponse)
async def cash_out(
    service_id: str,
    data: Optional[CashOutRequest] = None,
    current_user: Caller = Depends(get_current_user),
    orders: WorkOrders = Depends(get_work_orders),
):
    """Record the decorator's share of the booking payment and complete the service."""
    service = await orders.cash_out(
        service_id,
        current_user.email,
        tracking_number=data.tracking_number if data else None,
        is_admin=current_user.is_admin,
    )
    return ServiceResponse.model_validate(service)
