"""
Institution Routes (institution role required)

GET/PUT /institution/profile, GET /institution/stats
CRUD /institution/faculties
CRUD /institution/courses (GET supports ?faculty_id=)
GET /institution/applications?status=, GET /institution/applications/recent?limit=
PUT /institution/applications/{id}/status - Review (approval auto-rejects siblings)
CRUD /institution/admissions
GET /institution/students?status=approved
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from careerconnect.core.auth import get_current_institution
from careerconnect.services.institution_service import get_institution_service
from careerconnect.schemas.schemas import (
    InstitutionUpdate, FacultyCreate, FacultyUpdate, CourseCreate, CourseUpdate,
    CourseApplicationStatus, CourseApplicationStatusUpdate, ApplicationReviewResponse,
    AdmissionCreate, AdmissionUpdate, MessageResponse, to_document,
)

router = APIRouter(prefix="/institution", tags=["Institutions"])


@router.get("/profile")
async def get_profile(institution: dict = Depends(get_current_institution)):
    return get_institution_service().get_institution_data(institution["user_id"])


@router.put("/profile")
async def update_profile(data: InstitutionUpdate, institution: dict = Depends(get_current_institution)):
    return get_institution_service().update_institution_profile(
        institution["user_id"], to_document(data, partial=True)
    )


@router.get("/stats")
async def stats(institution: dict = Depends(get_current_institution)):
    return get_institution_service().get_institution_stats(institution["user_id"])


# ============================================================
# FACULTIES
# ============================================================

@router.get("/faculties")
async def list_faculties(institution: dict = Depends(get_current_institution)):
    return get_institution_service().get_faculties(institution["user_id"])


@router.post("/faculties", status_code=201)
async def add_faculty(data: FacultyCreate, institution: dict = Depends(get_current_institution)):
    fields = to_document(data)
    fields.pop("institution_id", None)
    return get_institution_service().add_faculty(institution["user_id"], fields)


@router.put("/faculties/{faculty_id}")
async def update_faculty(faculty_id: str, data: FacultyUpdate, institution: dict = Depends(get_current_institution)):
    return get_institution_service().update_faculty(
        institution["user_id"], faculty_id, to_document(data, partial=True)
    )


@router.delete("/faculties/{faculty_id}", response_model=MessageResponse)
async def delete_faculty(faculty_id: str, institution: dict = Depends(get_current_institution)):
    get_institution_service().delete_faculty(institution["user_id"], faculty_id)
    return MessageResponse(message="Faculty deleted")


# ============================================================
# COURSES
# ============================================================

@router.get("/courses")
async def list_courses(faculty_id: Optional[str] = None, institution: dict = Depends(get_current_institution)):
    return get_institution_service().get_courses(institution["user_id"], faculty_id)


@router.post("/courses", status_code=201)
async def add_course(data: CourseCreate, institution: dict = Depends(get_current_institution)):
    return get_institution_service().add_course(institution["user_id"], to_document(data))


@router.put("/courses/{course_id}")
async def update_course(course_id: str, data: CourseUpdate, institution: dict = Depends(get_current_institution)):
    return get_institution_service().update_course(
        institution["user_id"], course_id, to_document(data, partial=True)
    )


@router.delete("/courses/{course_id}", response_model=MessageResponse)
async def delete_course(course_id: str, institution: dict = Depends(get_current_institution)):
    get_institution_service().delete_course(institution["user_id"], course_id)
    return MessageResponse(message="Course deleted")


# ============================================================
# APPLICATIONS
# ============================================================

@router.get("/applications")
async def list_applications(
    status: Optional[CourseApplicationStatus] = None,
    institution: dict = Depends(get_current_institution),
):
    return get_institution_service().get_all_applications(
        institution["user_id"], status.value if status else None
    )


@router.get("/applications/recent")
async def recent_applications(
    limit: int = Query(5, ge=1, le=100),
    institution: dict = Depends(get_current_institution),
):
    return get_institution_service().get_recent_applications(institution["user_id"], limit)


@router.put("/applications/{application_id}/status", response_model=ApplicationReviewResponse)
async def review_application(
    application_id: str,
    data: CourseApplicationStatusUpdate,
    institution: dict = Depends(get_current_institution),
):
    return get_institution_service().update_application_status(
        institution["user_id"], application_id, data.status.value,
        reviewed_by=institution["user_id"], notes=data.notes,
    )


# ============================================================
# ADMISSIONS
# ============================================================

@router.get("/admissions")
async def list_admissions(institution: dict = Depends(get_current_institution)):
    return get_institution_service().get_admissions(institution["user_id"])


@router.post("/admissions", status_code=201)
async def publish_admission(data: AdmissionCreate, institution: dict = Depends(get_current_institution)):
    fields = to_document(data)
    fields.pop("institution_id", None)
    return get_institution_service().publish_admission(institution["user_id"], fields)


@router.put("/admissions/{admission_id}")
async def update_admission(admission_id: str, data: AdmissionUpdate, institution: dict = Depends(get_current_institution)):
    return get_institution_service().update_admission(
        institution["user_id"], admission_id, to_document(data, partial=True)
    )


@router.delete("/admissions/{admission_id}", response_model=MessageResponse)
async def delete_admission(admission_id: str, institution: dict = Depends(get_current_institution)):
    get_institution_service().delete_admission(institution["user_id"], admission_id)
    return MessageResponse(message="Admission deleted")


# ============================================================
# STUDENTS
# ============================================================

@router.get("/students")
async def list_students(
    status: CourseApplicationStatus = CourseApplicationStatus.approved,
    institution: dict = Depends(get_current_institution),
):
    return get_institution_service().get_students(institution["user_id"], status.value)
