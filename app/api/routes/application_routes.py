"""
Application Routes

POST /applications - Submit application (public; eligibility and duplicate checks)
GET /applications/student/{email} - A student's own applications (public)
GET /applications - List applications with filters (staff)
GET /applications/stats/overview - Application statistics (staff)
GET /applications/{id} - Application details (staff)
PATCH /applications/{id}/status - Change status (staff)
PATCH /applications/{id}/assign - Assign to a reviewer (admin only)
POST /applications/{id}/notes - Add a review note (staff)
"""

from datetime import datetime
from fastapi import APIRouter, Depends, Query
from pymongo.database import Database
from typing import Optional

from app.api.responses import paginated, success
from app.core.auth import get_current_admin, get_current_staff
from app.core.config import get_settings
from app.db.mongodb import get_database
from app.schemas.schemas import (
    ApplicationAssign, ApplicationCreate, ApplicationStatusUpdate, ReviewNoteCreate
)
from app.services.application_service import ApplicationService
from app.services.mongo_service import to_naive_utc
from app.services.query_builder import build_application_query, normalize_page, parse_sort

router = APIRouter(prefix="/applications", tags=["Applications"])


def get_application_service(db: Database = Depends(get_database)) -> ApplicationService:
    return ApplicationService(db, duplicate_window_days=get_settings().duplicate_window_days)


@router.post("", status_code=201)
def submit_application(data: ApplicationCreate, service: ApplicationService = Depends(get_application_service)):
    """
    Submit a new application.

    Rejected with 400 if the student applied to the same university in
    the last 30 days or does not meet its GPA / IELTS minimums.
    """
    return success(service.submit(data), message="Application submitted successfully")


@router.get("/student/{email}")
def student_applications(email: str, service: ApplicationService = Depends(get_application_service)):
    """Track applications by email, newest first."""
    docs = service.list_by_email(email)
    return success(docs, count=len(docs))


@router.get("")
def list_applications(
    status: Optional[str] = Query(None),
    university_id: Optional[str] = Query(None, alias="universityId"),
    email: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1),
    limit: int = Query(20),
    sort: str = Query("-createdAt", description="Field name, prefix with - for descending"),
    staff: dict = Depends(get_current_staff),
    service: ApplicationService = Depends(get_application_service)
):
    page, limit = normalize_page(page, limit, default_limit=20)
    query = build_application_query(
        status=status, university_id=university_id, email=email,
        start_date=to_naive_utc(start_date), end_date=to_naive_utc(end_date)
    )
    docs, total = service.list(query, parse_sort(sort, default="-createdAt"), page, limit)
    return paginated(docs, total, page, limit)


@router.get("/stats/overview")
def application_stats(
    staff: dict = Depends(get_current_staff),
    service: ApplicationService = Depends(get_application_service)
):
    return success(service.stats())


@router.get("/{application_id}")
def get_application(
    application_id: str,
    staff: dict = Depends(get_current_staff),
    service: ApplicationService = Depends(get_application_service)
):
    return success(service.get(application_id))


@router.patch("/{application_id}/status")
def update_application_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    staff: dict = Depends(get_current_staff),
    service: ApplicationService = Depends(get_application_service)
):
    status = update.status.value
    doc = service.update_status(application_id, status, update.notes)
    return success(doc, message=f"Application status updated to {status}")


@router.patch("/{application_id}/assign")
def assign_application(
    application_id: str,
    request: ApplicationAssign,
    admin: dict = Depends(get_current_admin),
    service: ApplicationService = Depends(get_application_service)
):
    doc = service.assign(application_id, request.assigned_to)
    return success(doc, message="Application assigned successfully")


@router.post("/{application_id}/notes")
def add_review_note(
    application_id: str,
    request: ReviewNoteCreate,
    staff: dict = Depends(get_current_staff),
    service: ApplicationService = Depends(get_application_service)
):
    notes = service.add_note(application_id, request.note, request.reviewer)
    return success({"notes": notes}, message="Review note added successfully")
