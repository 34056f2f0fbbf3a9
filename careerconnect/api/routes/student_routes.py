"""
Student Routes (student role required)

GET/PUT /students/profile
PUT /students/qualifications, PUT /students/preferences - Re-run job matching
POST/DELETE /students/resume
GET/POST /students/documents, DELETE /students/documents/{id}
GET /students/notifications, /students/notifications/job-matches, /students/notifications/unread-count
PUT /students/notifications/{id}/read
GET /students/courses/{course_id}/eligibility, POST /students/courses/{course_id}/apply
GET /students/applications
GET /students/jobs?qualified_only=, /students/jobs/recommended
POST /students/jobs/{job_id}/apply, GET /students/jobs/{job_id}/applied
GET /students/job-applications
GET /students/admissions, POST /students/admissions/{id}/select
GET /students/dashboard
"""

from fastapi import APIRouter, Depends, Form, Query, UploadFile, File

from careerconnect.core.auth import get_current_student
from careerconnect.services.student_service import get_student_service
from careerconnect.utils.file_upload import read_upload, get_supported_formats
from careerconnect.schemas.schemas import (
    StudentProfileUpdate, QualificationsUpdate, JobPreferencesUpdate, DocumentType,
    CourseApplyRequest, JobApplyRequest, EligibilityResponse, StudentDashboardStats,
    MessageResponse, to_document,
)

router = APIRouter(prefix="/students", tags=["Students"])


# ============================================================
# PROFILE
# ============================================================

@router.get("/profile")
async def get_profile(student: dict = Depends(get_current_student)):
    return get_student_service().get_student_profile(student["user_id"], student)


@router.put("/profile")
async def update_profile(data: StudentProfileUpdate, student: dict = Depends(get_current_student)):
    return get_student_service().update_student_profile(student["user_id"], to_document(data, partial=True))


@router.put("/qualifications")
async def update_qualifications(data: QualificationsUpdate, student: dict = Depends(get_current_student)):
    return get_student_service().update_student_qualifications(
        student["user_id"], to_document(data, partial=True)
    )


@router.put("/preferences")
async def update_preferences(data: JobPreferencesUpdate, student: dict = Depends(get_current_student)):
    return get_student_service().update_job_preferences(student["user_id"], to_document(data, partial=True))


# ============================================================
# RESUME / DOCUMENTS
# ============================================================

@router.get("/uploads/formats")
async def upload_formats():
    """Accepted upload types and size limit."""
    return get_supported_formats()


@router.post("/resume", status_code=201)
async def upload_resume(file: UploadFile = File(...), student: dict = Depends(get_current_student)):
    upload = await read_upload(file, "resume")
    return get_student_service().upload_resume(student["user_id"], upload)


@router.delete("/resume", response_model=MessageResponse)
async def delete_resume(student: dict = Depends(get_current_student)):
    get_student_service().delete_resume(student["user_id"])
    return MessageResponse(message="Resume deleted")


@router.get("/documents")
async def list_documents(student: dict = Depends(get_current_student)):
    return get_student_service().get_student_documents(student["user_id"])


@router.post("/documents", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    document_type: DocumentType = Form(DocumentType.other),
    student: dict = Depends(get_current_student),
):
    upload = await read_upload(file, "document")
    return get_student_service().upload_document(student["user_id"], upload, document_type.value)


@router.delete("/documents/{document_id}", response_model=MessageResponse)
async def delete_document(document_id: str, student: dict = Depends(get_current_student)):
    get_student_service().delete_document(student["user_id"], document_id)
    return MessageResponse(message="Document deleted")


# ============================================================
# NOTIFICATIONS
# ============================================================

@router.get("/notifications")
async def list_notifications(limit: int = Query(10, ge=1, le=100), student: dict = Depends(get_current_student)):
    return get_student_service().get_student_notifications(student["user_id"], limit)


@router.get("/notifications/job-matches")
async def job_match_notifications(student: dict = Depends(get_current_student)):
    return get_student_service().get_job_match_notifications(student["user_id"])


@router.get("/notifications/unread-count")
async def unread_count(student: dict = Depends(get_current_student)):
    return {"unread": get_student_service().get_unread_notifications_count(student["user_id"])}


@router.put("/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_read(notification_id: str, student: dict = Depends(get_current_student)):
    get_student_service().mark_notification_as_read(student["user_id"], notification_id)
    return MessageResponse(message="Notification marked as read")


# ============================================================
# COURSES
# ============================================================

@router.get("/courses/{course_id}/eligibility", response_model=EligibilityResponse)
async def course_eligibility(course_id: str, student: dict = Depends(get_current_student)):
    return get_student_service().check_course_eligibility(student["user_id"], course_id)


@router.post("/courses/{course_id}/apply", status_code=201)
async def apply_for_course(course_id: str, data: CourseApplyRequest, student: dict = Depends(get_current_student)):
    return get_student_service().apply_for_course(student["user_id"], course_id, to_document(data))


@router.get("/applications")
async def list_applications(student: dict = Depends(get_current_student)):
    return get_student_service().get_student_applications(student["user_id"])


# ============================================================
# JOBS
# ============================================================

@router.get("/jobs")
async def list_jobs(qualified_only: bool = False, student: dict = Depends(get_current_student)):
    return get_student_service().get_jobs(student["user_id"], qualified_only=qualified_only)


@router.get("/jobs/recommended")
async def recommended_jobs(student: dict = Depends(get_current_student)):
    return get_student_service().get_recommended_jobs(student["user_id"])


@router.post("/jobs/{job_id}/apply", status_code=201)
async def apply_for_job(job_id: str, data: JobApplyRequest, student: dict = Depends(get_current_student)):
    return get_student_service().apply_for_job(student["user_id"], job_id, data.cover_letter)


@router.get("/jobs/{job_id}/applied")
async def has_applied(job_id: str, student: dict = Depends(get_current_student)):
    return {"applied": get_student_service().check_existing_application(student["user_id"], job_id)}


@router.get("/job-applications")
async def list_job_applications(student: dict = Depends(get_current_student)):
    return get_student_service().get_student_job_applications(student["user_id"])


# ============================================================
# ADMISSIONS / DASHBOARD
# ============================================================

@router.get("/admissions")
async def list_admissions(student: dict = Depends(get_current_student)):
    return get_student_service().get_student_admissions(student["user_id"])


@router.post("/admissions/{application_id}/select")
async def select_institution(application_id: str, student: dict = Depends(get_current_student)):
    return get_student_service().select_institution(student["user_id"], application_id)


@router.get("/dashboard", response_model=StudentDashboardStats)
async def dashboard(student: dict = Depends(get_current_student)):
    return get_student_service().get_dashboard_stats(student["user_id"])
