"""
Company Service - profile, postings, applicants and the dashboard.

The company document is keyed by the owning user's id. Job applications
live in `job_applications` and are enriched with the candidate's
profile and the job they target.
"""

from functools import cmp_to_key
from typing import List, Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from careerconnect.core.errors import NotFoundError, PermissionDeniedError, ServiceError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import EPOCH, serialize_doc, serialize_docs, to_datetime, utcnow
from careerconnect.db.mongodb import COLLECTIONS, get_collection, index_spec
from careerconnect.db.queries import fetch_sorted
from careerconnect.services.admin_service import AdminService
from careerconnect.services.job_service import JobService
from careerconnect.services.storage_service import StorageService
from careerconnect.utils.file_upload import UploadedFile, safe_filename

logger = get_logger(__name__)

APPLICATION_DATES = ("applied_at", "updated_at", "reviewed_at")

PROFILE_DEFAULTS = {
    "company_name": "",
    "email": "",
    "phone": "",
    "industry": "",
    "location": "",
    "description": "",
    "website": "",
    "employees": "",
    "founded": "",
    "contact_person": "",
    "logo": "",
    "cover_image": "",
    "status": "pending",
    "profile_views": 0,
    "is_verified": False,
    "social_links": {},
    "benefits": [],
    "tech_stack": [],
}

UNKNOWN_CANDIDATE = {
    "full_name": "Unknown Candidate",
    "email": "N/A",
    "phone": "",
    "skills": [],
    "qualifications": {},
}

NEW_STATUSES = ("applied", "pending")


class CompanyService:
    def __init__(self, storage: Optional[StorageService] = None):
        self.companies: Collection = get_collection(COLLECTIONS["companies"])
        self.applications: Collection = get_collection(COLLECTIONS["job_applications"])
        self.students: Collection = get_collection(COLLECTIONS["students"])
        self.users: Collection = get_collection(COLLECTIONS["users"])
        self.jobs = JobService()
        self._storage = storage

    @property
    def storage(self) -> StorageService:
        if self._storage is None:
            self._storage = StorageService()
        return self._storage

    # ============================================================
    # PROFILE
    # ============================================================

    def get_company_profile(self, company_id: str, email: str = "") -> dict:
        """Company profile with defaults filled in; a blank profile when none exists."""
        doc = self.companies.find_one({"_id": company_id})
        if not doc:
            return {**PROFILE_DEFAULTS, "id": company_id, "user_id": company_id, "email": email, "exists": False}

        profile = {**PROFILE_DEFAULTS, **serialize_doc(doc, ("created_at", "updated_at"))}
        profile["exists"] = True
        return profile

    def create_or_update_company_profile(self, company_id: str, data: dict) -> dict:
        now = utcnow()
        existing = self.companies.find_one({"_id": company_id})
        if existing:
            self.companies.update_one({"_id": company_id}, {"$set": {**data, "updated_at": now}})
            logger.info("company_profile_updated", company_id=company_id)
        else:
            settings = AdminService().get_settings()
            status = "approved" if settings.get("auto_approve_companies") else "pending"
            doc = {**PROFILE_DEFAULTS, **data}
            doc.update({
                "_id": company_id,
                "user_id": company_id,
                "status": status,
                "created_at": now,
                "updated_at": now,
            })
            if status == "approved":
                doc["approved_at"] = now
            self.companies.insert_one(doc)
            logger.info("company_profile_created", company_id=company_id, status=status)
        return self.get_company_profile(company_id)

    def update_company_profile(self, company_id: str, updates: dict) -> dict:
        result = self.companies.update_one(
            {"_id": company_id}, {"$set": {**updates, "updated_at": utcnow()}}
        )
        if result.matched_count == 0:
            raise NotFoundError("Company profile not found")
        logger.info("company_profile_updated", company_id=company_id, fields=sorted(updates))
        return self.get_company_profile(company_id)

    def _upload_image(self, company_id: str, upload: UploadedFile, folder: str, field: str) -> dict:
        existing = self.companies.find_one({"_id": company_id}) or {}
        stored = self.storage.upload_file(
            upload.content,
            upload.filename,
            upload.content_type,
            f"{folder}/{company_id}_{safe_filename(upload.filename)}",
            metadata={"company_id": company_id, "kind": field},
        )
        if existing.get(f"{field}_public_id"):
            self.storage.delete_file(
                existing[f"{field}_public_id"], existing.get(f"{field}_storage_type", ""), "image"
            )
        updates = {
            field: stored.url,
            f"{field}_public_id": stored.public_id,
            f"{field}_storage_type": stored.storage_type,
        }
        if existing:
            return self.update_company_profile(company_id, updates)
        return self.create_or_update_company_profile(company_id, updates)

    def upload_logo(self, company_id: str, upload: UploadedFile) -> dict:
        return self._upload_image(company_id, upload, "company-logos", "logo")

    def upload_cover_image(self, company_id: str, upload: UploadedFile) -> dict:
        return self._upload_image(company_id, upload, "company-covers", "cover_image")

    # ============================================================
    # JOBS
    # ============================================================

    def create_job(self, company_id: str, job_data: dict) -> dict:
        company = self.get_company_profile(company_id)
        return self.jobs.create_job(job_data, company)

    def get_company_jobs(self, company_id: str) -> List[dict]:
        return self.jobs.get_company_jobs(company_id)

    def get_job_by_id(self, company_id: str, job_id: str) -> dict:
        job = self.jobs.get_job(job_id)
        if job.get("company_id") != company_id:
            raise NotFoundError("Job not found")
        return job

    def update_job(self, company_id: str, job_id: str, updates: dict) -> dict:
        return self.jobs.update_job(job_id, updates, company_id=company_id)

    def delete_job(self, company_id: str, job_id: str) -> None:
        self.jobs.delete_job(job_id, company_id=company_id)

    def get_job_stats(self, company_id: str) -> dict:
        return _job_stats(self.get_company_jobs(company_id))

    # ============================================================
    # APPLICATIONS
    # ============================================================

    def get_candidate_profile(self, candidate_id: str) -> dict:
        """Student profile, else the user account, else a placeholder."""
        if candidate_id:
            student = self.students.find_one({"_id": candidate_id})
            if student:
                return {**UNKNOWN_CANDIDATE, **serialize_doc(student)}
            user = self.users.find_one({"_id": candidate_id}, {"password_hash": 0})
            if user:
                return {**UNKNOWN_CANDIDATE, **serialize_doc(user)}
        return {**UNKNOWN_CANDIDATE, "id": candidate_id}

    def _enrich(self, application: dict) -> dict:
        application["candidate"] = self.get_candidate_profile(application.get("student_id"))
        job = self.jobs.collection.find_one({"_id": application.get("job_id")})
        application["job"] = serialize_doc(job, ("created_at", "deadline")) if job else None
        return application

    def get_company_applications(self, company_id: str) -> List[dict]:
        result = fetch_sorted(
            self.applications,
            {"company_id": company_id},
            "applied_at",
            hint=index_spec("job_applications_by_company"),
            context="company applications",
        )
        enriched = []
        for application in serialize_docs(result.docs, APPLICATION_DATES):
            try:
                enriched.append(self._enrich(application))
            except PyMongoError as exc:
                logger.warning("application_enrichment_failed", application_id=application["id"], error=str(exc))
                enriched.append(application)
        logger.info("company_applications_loaded", company_id=company_id, count=len(enriched), used_fallback=result.used_fallback)
        return enriched

    def get_application(self, company_id: str, application_id: str) -> dict:
        doc = self.applications.find_one({"_id": application_id})
        if not doc:
            raise NotFoundError("Application not found")
        if doc.get("company_id") != company_id:
            raise PermissionDeniedError("This application belongs to another company")
        return self._enrich(serialize_doc(doc, APPLICATION_DATES))

    def update_application_status(self, company_id: str, application_id: str, status: str, notes: str = "") -> dict:
        self.get_application(company_id, application_id)
        changes = {"status": status, "updated_at": utcnow()}
        if notes:
            changes["notes"] = notes
        self.applications.update_one({"_id": application_id}, {"$set": changes})
        logger.info("company_application_status_updated", application_id=application_id, status=status)
        return self.get_application(company_id, application_id)

    def get_application_stats(self, company_id: str, applications: Optional[List[dict]] = None) -> dict:
        if applications is None:
            applications = self.get_company_applications(company_id)

        def count(*statuses):
            return sum(1 for a in applications if a.get("status") in statuses)

        return {
            "total": len(applications),
            "new": count(*NEW_STATUSES),
            "reviewed": count("reviewed"),
            "interview": count("interview"),
            "rejected": count("rejected"),
            "hired": count("hired"),
            "withdrawn": count("withdrawn"),
        }

    # ============================================================
    # DASHBOARD
    # ============================================================

    def get_dashboard_data(self, company_id: str, email: str = "") -> dict:
        """
        Everything the company dashboard shows in one call.

        Each part is loaded independently; a part that fails is logged
        and replaced with an empty default.
        """
        company = self._part("profile", lambda: self.get_company_profile(company_id, email), {})
        jobs = self._part("jobs", lambda: self.get_company_jobs(company_id), [])
        applications = self._part("applications", lambda: self.get_company_applications(company_id), [])

        job_stats = _job_stats(jobs)
        application_stats = self.get_application_stats(company_id, applications)
        total = len(applications)

        pipeline = {
            "new": application_stats["new"],
            "reviewed": application_stats["reviewed"],
            "interview": application_stats["interview"],
            "hired": application_stats["hired"],
        }
        percentages = {
            stage: round(count / max(total, 1) * 100, 1) for stage, count in pipeline.items()
        }

        return {
            "company": company,
            "stats": {
                "total_jobs": job_stats["total_jobs"],
                "active_jobs": job_stats["active_jobs"],
                "applications": total,
                "profile_views": company.get("profile_views", 0) if company else 0,
                "total_applicants": job_stats["total_applicants"],
            },
            "recent_applications": applications[:5],
            "job_listings": jobs[:3],
            "top_candidates": select_top_candidates(applications),
            "pipeline_stats": pipeline,
            "pipeline_percentages": percentages,
            "hire_rate": round(pipeline["hired"] / total * 100) if total else 0,
            "application_stats": application_stats,
            "job_stats": job_stats,
        }

    def _part(self, name: str, loader, default):
        try:
            return loader()
        except (ServiceError, PyMongoError) as exc:
            logger.warning("dashboard_part_failed", part=name, error=str(exc))
            return default


def _job_stats(jobs: List[dict]) -> dict:
    return {
        "total_jobs": len(jobs),
        "active_jobs": sum(1 for j in jobs if j.get("status") == "active" and j.get("is_active", True)),
        "paused_jobs": sum(1 for j in jobs if j.get("status") == "paused"),
        "closed_jobs": sum(1 for j in jobs if j.get("status") == "closed"),
        "total_applicants": sum(j.get("applicants_count") or 0 for j in jobs),
        "total_views": sum(j.get("views") or 0 for j in jobs),
    }


def _compare_candidates(a: dict, b: dict) -> int:
    score_a, score_b = a.get("match_score"), b.get("match_score")
    if score_a is not None and score_b is not None and score_a != score_b:
        return -1 if score_a > score_b else 1
    date_a = to_datetime(a.get("applied_at")) or EPOCH
    date_b = to_datetime(b.get("applied_at")) or EPOCH
    if date_a == date_b:
        return 0
    return -1 if date_a > date_b else 1


def select_top_candidates(applications: List[dict], limit: int = 3) -> List[dict]:
    """Applicants in interview/review or scoring above 70, best first."""
    candidates = [
        a for a in applications
        if a.get("status") in ("interview", "reviewed") or (a.get("match_score") or 0) > 70
    ]
    return sorted(candidates, key=cmp_to_key(_compare_candidates))[:limit]


def get_company_service() -> CompanyService:
    return CompanyService()
