"""
Job Service - job postings and the public job board.

Jobs carry a copy of the posting company's name, logo, industry and
location so the board can render without a join.
"""

from typing import Dict, List, Optional

from pymongo.collection import Collection

from careerconnect.core.errors import NotFoundError, PermissionDeniedError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import new_id, serialize_doc, serialize_docs, to_datetime, utcnow
from careerconnect.db.mongodb import COLLECTIONS, get_collection, index_spec
from careerconnect.db.queries import fetch_sorted

logger = get_logger(__name__)

JOB_DATES = ("created_at", "updated_at", "deadline")

JOB_DEFAULTS = {
    "status": "active",
    "is_active": True,
    "applicants_count": 0,
    "views": 0,
    "skills": [],
    "benefits": [],
    "remote": False,
    "urgency": "normal",
}


class JobService:
    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"])

    # ============================================================
    # CREATE / UPDATE / DELETE
    # ============================================================

    def create_job(self, job_data: dict, company: dict) -> dict:
        """
        Create a job posting for a company.

        Args:
            job_data: title, description, requirements, job_type, location, ...
            company: the company profile (id, company_name, logo, industry, location)
        """
        now = utcnow()
        doc = {**JOB_DEFAULTS, **{k: v for k, v in job_data.items() if v is not None}}
        doc.update({
            "_id": new_id(),
            "company_id": company["id"],
            "company_name": company.get("company_name") or "Unknown Company",
            "company_logo": company.get("logo") or "",
            "company_industry": company.get("industry") or "",
            "company_location": company.get("location") or "",
            "deadline": to_datetime(job_data.get("deadline")),
            "created_at": now,
            "updated_at": now,
        })
        if not doc.get("industry"):
            doc["industry"] = doc["company_industry"]

        self.collection.insert_one(doc)
        logger.info("job_created", job_id=doc["_id"], company_id=company["id"], title=doc.get("title"))
        return serialize_doc(doc, JOB_DATES)

    def update_job(self, job_id: str, updates: dict, company_id: Optional[str] = None) -> dict:
        self._get_owned(job_id, company_id)

        changes = dict(updates)
        if "deadline" in changes:
            changes["deadline"] = to_datetime(changes["deadline"])
        changes["updated_at"] = utcnow()

        self.collection.update_one({"_id": job_id}, {"$set": changes})
        logger.info("job_updated", job_id=job_id, fields=sorted(updates))
        return self.get_job(job_id)

    def delete_job(self, job_id: str, company_id: Optional[str] = None) -> None:
        self._get_owned(job_id, company_id)
        self.collection.delete_one({"_id": job_id})
        logger.info("job_deleted", job_id=job_id)

    def increment_applicant_count(self, job_id: str) -> None:
        self.collection.update_one(
            {"_id": job_id},
            {"$inc": {"applicants_count": 1}, "$set": {"updated_at": utcnow()}},
        )

    # ============================================================
    # READ
    # ============================================================

    def get_job(self, job_id: str) -> dict:
        doc = self.collection.find_one({"_id": job_id})
        if not doc:
            raise NotFoundError("Job not found")
        return serialize_doc(doc, JOB_DATES)

    def _get_owned(self, job_id: str, company_id: Optional[str]) -> dict:
        job = self.get_job(job_id)
        if company_id is not None and job.get("company_id") != company_id:
            raise PermissionDeniedError("You can only manage your own job postings")
        return job

    def get_company_jobs(self, company_id: str) -> List[dict]:
        result = fetch_sorted(
            self.collection,
            {"company_id": company_id},
            "created_at",
            hint=index_spec("jobs_by_company"),
            context="company jobs",
        )
        logger.info("company_jobs_loaded", company_id=company_id, count=len(result.docs), used_fallback=result.used_fallback)
        return serialize_docs(result.docs, JOB_DATES)

    def get_active_jobs(self, filters: Optional[Dict[str, str]] = None) -> List[dict]:
        """
        Active jobs, newest first, filtered in process.

        Filters:
            type: job type, case-insensitive exact match
            location: case-insensitive substring
            search: matches title, company name, description or department
        """
        filters = filters or {}
        result = fetch_sorted(
            self.collection,
            {"status": "active"},
            "created_at",
            hint=index_spec("jobs_by_status"),
            context="active jobs",
        )
        jobs = serialize_docs(result.docs, JOB_DATES)

        job_type = (filters.get("type") or "").lower()
        if job_type:
            jobs = [j for j in jobs if (j.get("job_type") or "").lower() == job_type]

        location = (filters.get("location") or "").lower()
        if location:
            jobs = [j for j in jobs if location in (j.get("location") or "").lower()]

        search = (filters.get("search") or "").lower()
        if search:
            jobs = [j for j in jobs if _matches_search(j, search)]

        return jobs

    def get_job_types(self) -> List[str]:
        return sorted(t for t in self.collection.distinct("job_type", {"status": "active"}) if t)

    def get_locations(self) -> List[str]:
        return sorted(loc for loc in self.collection.distinct("location", {"status": "active"}) if loc)


def _matches_search(job: dict, term: str) -> bool:
    for name in ("title", "company_name", "description", "department"):
        if term in (job.get(name) or "").lower():
            return True
    return False


def get_job_service() -> JobService:
    return JobService()
