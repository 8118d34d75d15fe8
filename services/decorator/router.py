"""
services/decorator/router.py
Decorator applications: apply, admin review queue, approval.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from config.database import DocumentStore, get_store
from services.decorator.workflow import DecoratorApplications
from shared.middleware.auth import Caller, get_current_user, require_admin
from shared.models.models import ApplicationStatus
from shared.schemas.schemas import ApplicationResponse, DecoratorApplyRequest, InsertResponse

router = APIRouter(prefix="/decorators", tags=["Decorators"])


def get_applications(store: DocumentStore = Depends(get_store)) -> DecoratorApplications:
    return DecoratorApplications(store)


@router.post("/apply", response_model=InsertResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_decorator(
    data: DecoratorApplyRequest,
    current_user: Caller = Depends(get_current_user),
    applications: DecoratorApplications = Depends(get_applications),
):
    """Submit a decorator application for the caller. One per email."""
    application_id = await applications.apply(
        current_user.email, data.name, data.phone, data.nid, data.experience
    )
    return InsertResponse(inserted=True, id=application_id, message="Application submitted")


@router.get("/applications", response_model=list[ApplicationResponse])
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    current_user: Caller = Depends(require_admin),
    applications: DecoratorApplications = Depends(get_applications),
):
    """Review queue, oldest first."""
    docs = await applications.list(status_filter)
    return [ApplicationResponse.model_validate(d) for d in docs]


@router.get("/applications/me", response_model=ApplicationResponse)
async def my_application(
    current_user: Caller = Depends(get_current_user),
    applications: DecoratorApplications = Depends(get_applications),
):
    return ApplicationResponse.model_validate(await applications.get_by_email(current_user.email))


@router.patch("/approve/{application_id}", response_model=ApplicationResponse)
async def approve_application(
    application_id: str,
    current_user: Caller = Depends(require_admin),
    applications: DecoratorApplications = Depends(get_applications),
):
    """
    Approve an application and promote the applicant to decorator.
    Re-approving repairs a user record whose promotion previously failed.
    """
    application = await applications.approve(application_id)
    return ApplicationResponse.model_validate(application)
