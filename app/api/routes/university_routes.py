"""
University Routes

GET /universities - List active universities with filters and pagination
GET /universities/compare?ids=a,b,c - Universities for side-by-side comparison (max 5)
GET /universities/stats/overview - Catalog statistics (admin only)
GET /universities/{id} - University details, application count, similar universities
POST /universities - Create university (admin only)
PUT /universities/{id} - Update university (admin only)
DELETE /universities/{id} - Soft delete university (admin only)
POST /universities/{id}/check-eligibility - Check GPA / IELTS against the minimums
"""

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database
from typing import Optional

from app.api.responses import paginated, success
from app.core.auth import get_current_admin
from app.db.mongodb import get_database
from app.schemas.schemas import EligibilityCheckRequest, UniversityCreate, UniversityUpdate
from app.services.query_builder import build_university_query, normalize_page, parse_sort
from app.services.university_service import UniversityService

router = APIRouter(prefix="/universities", tags=["Universities"])


def get_university_service(db: Database = Depends(get_database)) -> UniversityService:
    return UniversityService(db)


@router.get("")
def list_universities(
    country: Optional[str] = Query(None),
    degree: Optional[str] = Query(None, description="Bachelors, Masters, PhD, Diploma or All"),
    min_fee: Optional[float] = Query(0, alias="minFee"),
    max_fee: Optional[float] = Query(50000, alias="maxFee"),
    min_gpa: Optional[float] = Query(None, alias="minGPA"),
    max_gpa: Optional[float] = Query(4.0, alias="maxGPA"),
    min_ielts: Optional[float] = Query(None, alias="minIELTS"),
    max_ielts: Optional[float] = Query(9, alias="maxIELTS"),
    search: Optional[str] = Query(None, description="Search name, description and programs"),
    page: int = Query(1),
    limit: int = Query(10),
    sort: str = Query("name"),
    order: str = Query("asc", description="asc or desc"),
    service: UniversityService = Depends(get_university_service)
):
    """List active universities. GPA / IELTS ranges filter on the university minimums."""
    page, limit = normalize_page(page, limit, default_limit=10)
    query = build_university_query(
        country=country, degree=degree,
        min_fee=min_fee, max_fee=max_fee,
        min_gpa=min_gpa, max_gpa=max_gpa,
        min_ielts=min_ielts, max_ielts=max_ielts,
        search=search
    )
    docs, total = service.list(query, parse_sort(sort, order, default="name"), page, limit)
    return paginated(docs, total, page, limit)


@router.get("/compare")
def compare_universities(
    ids: Optional[str] = Query(None, description="Comma separated university ids"),
    service: UniversityService = Depends(get_university_service)
):
    """Fetch 2-5 universities for comparison. Extra ids beyond the fifth are ignored."""
    docs = service.compare(ids)
    return success(docs, count=len(docs))


@router.get("/stats/overview")
def university_stats(
    admin: dict = Depends(get_current_admin),
    service: UniversityService = Depends(get_university_service)
):
    return success(service.stats())


@router.get("/{university_id}")
def get_university(university_id: str, service: UniversityService = Depends(get_university_service)):
    """Get an active university with applicationCount and similarUniversities."""
    return success(service.get_detail(university_id))


@router.post("", status_code=201)
def create_university(
    data: UniversityCreate,
    admin: dict = Depends(get_current_admin),
    service: UniversityService = Depends(get_university_service)
):
    return success(service.create(data), message="University created successfully")


@router.put("/{university_id}")
def update_university(
    university_id: str,
    data: UniversityUpdate,
    admin: dict = Depends(get_current_admin),
    service: UniversityService = Depends(get_university_service)
):
    return success(service.update(university_id, data), message="University updated successfully")


@router.delete("/{university_id}")
def delete_university(
    university_id: str,
    admin: dict = Depends(get_current_admin),
    service: UniversityService = Depends(get_university_service)
):
    """Soft delete: the university disappears from reads, its applications remain."""
    service.soft_delete(university_id)
    return success(message="University deleted successfully")


@router.post("/{university_id}/check-eligibility")
def check_eligibility(
    university_id: str,
    request: EligibilityCheckRequest,
    service: UniversityService = Depends(get_university_service)
):
    """Check a student's GPA and IELTS against the university's minimums."""
    return success(service.check_eligibility(university_id, request.gpa, request.ielts))
