"""
Company Routes (company role required)

GET /companies/profile - Own profile (defaults when not yet created)
PUT /companies/profile - Create or update profile
POST /companies/profile/logo, /companies/profile/cover - Image uploads
POST /companies/jobs - Post a job
GET /companies/jobs - Own postings, GET /companies/jobs/stats
GET/PUT/DELETE /companies/jobs/{job_id}
GET /companies/applications - Applicants with candidate + job
GET /companies/applications/stats
GET /companies/applications/{id}, PUT /companies/applications/{id}/status
GET /companies/dashboard
"""

from fastapi import APIRouter, Depends, UploadFile, File

from careerconnect.core.auth import get_current_company
from careerconnect.services.company_service import get_company_service
from careerconnect.utils.file_upload import read_upload
from careerconnect.schemas.schemas import (
    CompanyProfileUpdate, JobCreate, JobUpdate, JobApplicationStatusUpdate,
    MessageResponse, to_document,
)

router = APIRouter(prefix="/companies", tags=["Companies"])


# ============================================================
# PROFILE
# ============================================================

@router.get("/profile")
async def get_profile(company: dict = Depends(get_current_company)):
    return get_company_service().get_company_profile(company["user_id"], company["email"])


@router.put("/profile")
async def update_profile(data: CompanyProfileUpdate, company: dict = Depends(get_current_company)):
    return get_company_service().create_or_update_company_profile(
        company["user_id"], to_document(data, partial=True)
    )


@router.post("/profile/logo")
async def upload_logo(file: UploadFile = File(...), company: dict = Depends(get_current_company)):
    upload = await read_upload(file, "image")
    return get_company_service().upload_logo(company["user_id"], upload)


@router.post("/profile/cover")
async def upload_cover(file: UploadFile = File(...), company: dict = Depends(get_current_company)):
    upload = await read_upload(file, "image")
    return get_company_service().upload_cover_image(company["user_id"], upload)


# ============================================================
# JOBS
# ============================================================

@router.post("/jobs", status_code=201)
async def create_job(data: JobCreate, company: dict = Depends(get_current_company)):
    return get_company_service().create_job(company["user_id"], to_document(data))


@router.get("/jobs")
async def list_jobs(company: dict = Depends(get_current_company)):
    return get_company_service().get_company_jobs(company["user_id"])


@router.get("/jobs/stats")
async def job_stats(company: dict = Depends(get_current_company)):
    return get_company_service().get_job_stats(company["user_id"])


@router.get("/jobs/{job_id}")
async def get_job(job_id: str, company: dict = Depends(get_current_company)):
    return get_company_service().get_job_by_id(company["user_id"], job_id)


@router.put("/jobs/{job_id}")
async def update_job(job_id: str, data: JobUpdate, company: dict = Depends(get_current_company)):
    return get_company_service().update_job(company["user_id"], job_id, to_document(data, partial=True))


@router.delete("/jobs/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: str, company: dict = Depends(get_current_company)):
    get_company_service().delete_job(company["user_id"], job_id)
    return MessageResponse(message="Job deleted")


# ============================================================
# APPLICATIONS
# ============================================================

@router.get("/applications")
async def list_applications(company: dict = Depends(get_current_company)):
    return get_company_service().get_company_applications(company["user_id"])


@router.get("/applications/stats")
async def application_stats(company: dict = Depends(get_current_company)):
    return get_company_service().get_application_stats(company["user_id"])


@router.get("/applications/{application_id}")
async def get_application(application_id: str, company: dict = Depends(get_current_company)):
    return get_company_service().get_application(company["user_id"], application_id)


@router.put("/applications/{application_id}/status")
async def update_application_status(
    application_id: str,
    data: JobApplicationStatusUpdate,
    company: dict = Depends(get_current_company),
):
    return get_company_service().update_application_status(
        company["user_id"], application_id, data.status.value, data.notes
    )


# ============================================================
# DASHBOARD
# ============================================================

@router.get("/dashboard")
async def dashboard(company: dict = Depends(get_current_company)):
    return get_company_service().get_dashboard_data(company["user_id"], company["email"])
