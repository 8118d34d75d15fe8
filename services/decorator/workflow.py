"""
services/decorator/workflow.py
Decorator applications: apply once per email, admin approval promotes
the applicant's user record to the decorator role.
"""

import logging
from typing import List, Optional

from config.database import DocumentStore, DuplicateKeyError
from shared.models.models import (
    ApplicationStatus,
    Collections,
    UserRole,
    application_document,
    new_id,
    utcnow,
)
from shared.utils.errors import DuplicateApplication, NotFound
from shared.utils.saga import Saga

logger = logging.getLogger(__name__)


class DecoratorApplications:
    def __init__(self, store: DocumentStore):
        self.applications = store.collection(Collections.APPLICATIONS)
        self.users = store.collection(Collections.USERS)

    async def apply(self, applicant_email: str, name: str, phone: str, nid: str,
                    experience: str) -> str:
        """Insert a pending application. One per email, whatever its status."""
        if await self.applications.find_one({"email": applicant_email}):
            raise DuplicateApplication(email=applicant_email)

        doc = application_document(applicant_email, name, phone, nid, experience)
        try:
            application_id = await self.applications.insert_one(doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent apply for the same email
            raise DuplicateApplication(email=applicant_email)

        logger.info("Decorator application %s submitted by %s", application_id, applicant_email)
        return application_id

    async def approve(self, application_id: str) -> dict:
        """
        Mark the application approved, then promote the user to decorator.

        Approval is never rolled back, so a failure promoting the user is
        surfaced as PartialFailure for manual reconciliation. Re-approving
        an approved application re-asserts the role, which is how such a
        failure gets repaired.
        """
        application = await self.applications.find_one({"_id": application_id})
        if not application:
            raise NotFound("Application not found", application_id=application_id)

        email = application["email"]
        approved_at = application.get("approvedAt") or utcnow()

        async def mark_approved():
            await self.applications.update_one(
                {"_id": application_id},
                {"$set": {"status": ApplicationStatus.APPROVED.value, "approvedAt": approved_at}},
            )

        async def promote_user():
            await self.users.update_one(
                {"email": email},
                {
                    "$set": {"role": UserRole.DECORATOR.value},
                    "$setOnInsert": {
                        "_id": new_id(),
                        "name": application.get("name"),
                        "blocked": False,
                        "createdAt": approved_at,
                    },
                },
                upsert=True,
            )

        await (
            Saga("approve_decorator", application_id=application_id, email=email)
            .step("mark_application_approved", mark_approved)
            .step("promote_user_role", promote_user)
            .run()
        )
        logger.info("Decorator application %s approved; %s is now a decorator", application_id, email)

        application.update(status=ApplicationStatus.APPROVED.value, approvedAt=approved_at)
        return application

    async def list(self, status: Optional[ApplicationStatus] = None) -> List[dict]:
        query = {"status": status.value} if status else {}
        return await self.applications.find(query, sort=[("createdAt", 1)])

    async def get_by_email(self, email: str) -> dict:
        application = await self.applications.find_one({"email": email})
        if not application:
            raise NotFound("Application not found", email=email)
        return application
