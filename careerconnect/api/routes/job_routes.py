"""
Job Board Routes (public)

GET /jobs - Active jobs (?type=, ?location=, ?search=)
GET /jobs/types - Job types in use
GET /jobs/locations - Locations in use
GET /jobs/{job_id} - Job details
"""

from typing import Optional

from fastapi import APIRouter

from careerconnect.services.job_service import get_job_service

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("")
async def list_jobs(type: Optional[str] = None, location: Optional[str] = None, search: Optional[str] = None):
    """Active postings, newest first."""
    return get_job_service().get_active_jobs({"type": type, "location": location, "search": search})


@router.get("/types")
async def job_types():
    return get_job_service().get_job_types()


@router.get("/locations")
async def locations():
    return get_job_service().get_locations()


@router.get("/{job_id}")
async def get_job(job_id: str):
    return get_job_service().get_job(job_id)
