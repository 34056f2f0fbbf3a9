"""
Student Service - profile, documents, course and job applications.

Course applications are checked against the course requirements and
the per-institution limits before they are stored. Whenever the
student's qualifications or preferences change, active jobs are
re-matched and new matches produce a `job_match` notification.
"""

import time
from typing import List, Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from careerconnect.core.errors import ConflictError, InvalidRequestError, NotFoundError, ServiceError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import new_id, serialize_doc, serialize_docs, utcnow
from careerconnect.db.mongodb import COLLECTIONS, get_collection, index_spec
from careerconnect.db.queries import fetch_sorted
from careerconnect.services import eligibility
from careerconnect.services.eligibility import NOT_SPECIFIED
from careerconnect.services.job_service import JOB_DATES, JobService
from careerconnect.services.storage_service import StorageService
from careerconnect.utils.file_upload import UploadedFile, safe_filename

logger = get_logger(__name__)

MAX_ACTIVE_APPLICATIONS_PER_INSTITUTION = 2
ACTIVE_APPLICATION_STATUSES = ["pending", "under_review", "approved"]
APPLICATION_DATES = ("applied_at", "created_at", "updated_at", "reviewed_at")


def default_qualifications() -> dict:
    return {
        "education_level": NOT_SPECIFIED,
        "overall_grade": NOT_SPECIFIED,
        "institution": "",
        "graduation_year": "",
        "subjects": [],
        "certificates": [],
    }


def default_job_preferences() -> dict:
    return {"industries": [], "job_types": [], "locations": [], "min_salary": None}


def normalise_qualifications(quals) -> dict:
    """Unwrap object-valued fields written by older clients and fill gaps."""
    if not isinstance(quals, dict):
        return default_qualifications()
    quals = {**default_qualifications(), **quals}

    level = quals.get("education_level")
    if isinstance(level, dict):
        quals["education_level"] = level.get("description") or NOT_SPECIFIED
    elif not level:
        quals["education_level"] = NOT_SPECIFIED

    grade = quals.get("overall_grade")
    if isinstance(grade, dict):
        quals["overall_grade"] = grade.get("grade") or NOT_SPECIFIED
    elif not grade:
        quals["overall_grade"] = NOT_SPECIFIED

    if not isinstance(quals.get("subjects"), list):
        quals["subjects"] = []
    if not isinstance(quals.get("certificates"), list):
        quals["certificates"] = []
    return quals


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


class StudentService:
    def __init__(self, storage: Optional[StorageService] = None):
        self.students: Collection = get_collection(COLLECTIONS["students"])
        self.courses: Collection = get_collection(COLLECTIONS["courses"])
        self.institutions: Collection = get_collection(COLLECTIONS["institutions"])
        self.applications: Collection = get_collection(COLLECTIONS["applications"])
        self.job_applications: Collection = get_collection(COLLECTIONS["job_applications"])
        self.documents: Collection = get_collection(COLLECTIONS["documents"])
        self.notifications: Collection = get_collection(COLLECTIONS["notifications"])
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

    def initialize_student_profile(self, student_id: str, user_data: Optional[dict] = None) -> dict:
        user_data = user_data or {}
        existing = self.students.find_one({"_id": student_id})
        if existing:
            return self.get_student_profile(student_id)

        now = utcnow()
        doc = {
            "_id": student_id,
            "user_id": student_id,
            "full_name": user_data.get("full_name", ""),
            "email": user_data.get("email", ""),
            "phone": user_data.get("phone", ""),
            "address": "",
            "date_of_birth": "",
            "qualifications": default_qualifications(),
            "job_preferences": default_job_preferences(),
            "skills": [],
            "experience": None,
            "resume_url": "",
            "has_transcript": False,
            "created_at": now,
            "updated_at": now,
        }
        doc["profile_completion"] = eligibility.calculate_profile_completion(doc)
        self.students.insert_one(doc)
        logger.info("student_profile_initialized", student_id=student_id)
        return self.get_student_profile(student_id)

    def get_student_profile(self, student_id: str, user_data: Optional[dict] = None) -> dict:
        doc = self.students.find_one({"_id": student_id})
        if not doc:
            return self.initialize_student_profile(student_id, user_data)

        profile = serialize_doc(doc, ("created_at", "updated_at"))
        profile["qualifications"] = normalise_qualifications(profile.get("qualifications"))
        profile["job_preferences"] = {**default_job_preferences(), **(profile.get("job_preferences") or {})}
        profile.setdefault("skills", [])
        profile["profile_completion"] = eligibility.calculate_profile_completion(profile)
        return profile

    def _save(self, student_id: str, changes: dict) -> dict:
        self.get_student_profile(student_id)
        self.students.update_one({"_id": student_id}, {"$set": {**changes, "updated_at": utcnow()}})
        profile = self.get_student_profile(student_id)
        self.students.update_one(
            {"_id": student_id}, {"$set": {"profile_completion": profile["profile_completion"]}}
        )
        return profile

    def update_student_profile(self, student_id: str, updates: dict) -> dict:
        profile = self._save(student_id, updates)
        logger.info("student_profile_updated", student_id=student_id, completion=profile["profile_completion"])
        return profile

    def update_student_qualifications(self, student_id: str, qualifications: dict) -> dict:
        current = self.get_student_profile(student_id)["qualifications"]
        profile = self._save(student_id, {"qualifications": {**current, **qualifications}})
        self.check_job_matches(student_id)
        return profile

    def update_job_preferences(self, student_id: str, preferences: dict) -> dict:
        current = self.get_student_profile(student_id)["job_preferences"]
        profile = self._save(student_id, {"job_preferences": {**current, **preferences}})
        self.check_job_matches(student_id)
        return profile

    # ============================================================
    # RESUME / DOCUMENTS
    # ============================================================

    def upload_resume(self, student_id: str, upload: UploadedFile) -> dict:
        profile = self.get_student_profile(student_id)
        path = f"resumes/{student_id}/{_timestamp_ms()}_{safe_filename(upload.filename)}"
        stored = self.storage.upload_file(
            upload.content, upload.filename, upload.content_type, path,
            metadata={"student_id": student_id, "kind": "resume"},
        )
        if profile.get("resume_public_id"):
            self.storage.delete_file(profile["resume_public_id"], profile.get("resume_storage_type", ""))

        self._save(student_id, {
            "resume_url": stored.url,
            "resume_name": upload.filename,
            "resume_public_id": stored.public_id,
            "resume_storage_type": stored.storage_type,
            "resume_uploaded_at": utcnow(),
        })
        logger.info("resume_uploaded", student_id=student_id, storage_type=stored.storage_type)
        return stored.to_dict()

    def delete_resume(self, student_id: str) -> None:
        profile = self.get_student_profile(student_id)
        if not profile.get("resume_url"):
            raise NotFoundError("No resume on file")
        if profile.get("resume_public_id"):
            self.storage.delete_file(profile["resume_public_id"], profile.get("resume_storage_type", ""))
        self._save(student_id, {
            "resume_url": "",
            "resume_name": "",
            "resume_public_id": "",
            "resume_storage_type": "",
        })
        logger.info("resume_deleted", student_id=student_id)

    def upload_document(self, student_id: str, upload: UploadedFile, document_type: str) -> dict:
        path = (
            f"students/{student_id}/documents/"
            f"{document_type}_{_timestamp_ms()}_{safe_filename(upload.filename)}"
        )
        stored = self.storage.upload_file(
            upload.content, upload.filename, upload.content_type, path,
            metadata={"student_id": student_id, "document_type": document_type},
        )
        doc = {
            "_id": new_id(),
            "student_id": student_id,
            "name": upload.filename,
            "type": document_type,
            "url": stored.url,
            "path": stored.path,
            "public_id": stored.public_id,
            "storage_type": stored.storage_type,
            "resource_type": stored.resource_type,
            "size": stored.size,
            "content_type": upload.content_type,
            "status": "active",
            "uploaded_at": utcnow(),
        }
        self.documents.insert_one(doc)

        if document_type == "transcript":
            self._save(student_id, {"has_transcript": True, "transcript_url": stored.url})

        logger.info("document_uploaded", student_id=student_id, document_type=document_type)
        self.check_job_matches(student_id)
        return serialize_doc(doc, ("uploaded_at",))

    def get_student_documents(self, student_id: str) -> List[dict]:
        result = fetch_sorted(
            self.documents,
            {"student_id": student_id},
            "uploaded_at",
            hint=index_spec("documents_by_student"),
            context="student documents",
        )
        return serialize_docs(result.docs, ("uploaded_at",))

    def delete_document(self, student_id: str, document_id: str) -> None:
        doc = self.documents.find_one({"_id": document_id, "student_id": student_id})
        if not doc:
            raise NotFoundError("Document not found")
        self.storage.delete_file(doc.get("public_id"), doc.get("storage_type", ""), doc.get("resource_type", "raw"))
        self.documents.delete_one({"_id": document_id})
        if doc.get("type") == "transcript":
            remaining = self.documents.count_documents({"student_id": student_id, "type": "transcript"})
            if remaining == 0:
                self._save(student_id, {"has_transcript": False, "transcript_url": ""})
        logger.info("document_deleted", student_id=student_id, document_id=document_id)

    # ============================================================
    # NOTIFICATIONS
    # ============================================================

    def get_student_notifications(self, student_id: str, limit: int = 10) -> List[dict]:
        try:
            result = fetch_sorted(
                self.notifications,
                {"user_id": student_id},
                "created_at",
                hint=index_spec("notifications_by_user"),
                limit=limit,
                context="student notifications",
            )
        except ServiceError as exc:
            logger.warning("student_notifications_unavailable", student_id=student_id, error=exc.message)
            return []
        notifications = serialize_docs(result.docs, ("created_at", "read_at"))
        for notification in notifications:
            notification.setdefault("read", False)
        return notifications

    def get_job_match_notifications(self, student_id: str) -> List[dict]:
        result = fetch_sorted(
            self.notifications,
            {"user_id": student_id, "type": "job_match"},
            "created_at",
            hint=index_spec("notifications_by_user_type"),
            context="job match notifications",
        )
        return serialize_docs(result.docs, ("created_at", "read_at"))

    def mark_notification_as_read(self, student_id: str, notification_id: str) -> None:
        result = self.notifications.update_one(
            {"_id": notification_id, "user_id": student_id},
            {"$set": {"read": True, "read_at": utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Notification not found")

    def get_unread_notifications_count(self, student_id: str) -> int:
        notifications = self.get_student_notifications(student_id, limit=100)
        return sum(1 for n in notifications if not n.get("read"))

    # ============================================================
    # COURSES / COURSE APPLICATIONS
    # ============================================================

    def get_courses(self, institution_id: Optional[str] = None) -> List[dict]:
        filter_ = {"status": "active"}
        if institution_id:
            filter_["institution_id"] = institution_id
        return serialize_docs(self.courses.find(filter_).sort("name", 1), ("created_at", "updated_at"))

    def get_institutions(self) -> List[dict]:
        return serialize_docs(
            self.institutions.find({"status": "active"}).sort("name", 1), ("created_at", "updated_at")
        )

    def _get_course(self, course_id: str) -> dict:
        course = self.courses.find_one({"_id": course_id})
        if not course:
            raise NotFoundError("Course not found")
        return serialize_doc(course)

    def check_course_eligibility(self, student_id: str, course_id: str) -> dict:
        student = self.get_student_profile(student_id)
        course = self._get_course(course_id)
        return eligibility.check_course_eligibility(student, course)

    def apply_for_course(self, student_id: str, course_id: str, extra: Optional[dict] = None) -> dict:
        """
        Apply for a course.

        Rules:
            - the student must meet the course requirements
            - at most 2 active applications per institution
            - one application per course
        """
        student = self.get_student_profile(student_id)
        course = self._get_course(course_id)

        result = eligibility.check_course_eligibility(student, course)
        if not result["eligible"]:
            raise InvalidRequestError(f"Not eligible: {result['reason']}")

        institution_id = course.get("institution_id")
        active = self.applications.count_documents({
            "student_id": student_id,
            "institution_id": institution_id,
            "status": {"$in": ACTIVE_APPLICATION_STATUSES},
        })
        if active >= MAX_ACTIVE_APPLICATIONS_PER_INSTITUTION:
            raise ConflictError("You can only apply to a maximum of 2 courses per institution")

        if self.applications.find_one({"student_id": student_id, "course_id": course_id}):
            raise ConflictError("You have already applied for this course")

        institution = self.institutions.find_one({"_id": institution_id}) or {}
        now = utcnow()
        doc = {
            **(extra or {}),
            "_id": new_id(),
            "student_id": student_id,
            "student_name": student.get("full_name", ""),
            "student_email": student.get("email", ""),
            "course_id": course_id,
            "course_name": course.get("name", ""),
            "faculty_id": course.get("faculty_id"),
            "institution_id": institution_id,
            "institution_name": institution.get("name") or course.get("institution_name", ""),
            "level": course.get("level", ""),
            "status": "pending",
            "eligibility_status": "qualified",
            "selected": False,
            "applied_at": now,
            "created_at": now,
            "updated_at": now,
        }
        self.applications.insert_one(doc)
        logger.info("course_application_created", student_id=student_id, course_id=course_id, institution_id=institution_id)
        return serialize_doc(doc, APPLICATION_DATES)

    def get_student_applications(self, student_id: str) -> List[dict]:
        result = fetch_sorted(
            self.applications,
            {"student_id": student_id},
            "applied_at",
            hint=index_spec("applications_by_student"),
            context="student applications",
        )
        return serialize_docs(result.docs, APPLICATION_DATES)

    # ============================================================
    # JOBS
    # ============================================================

    def get_jobs(self, student_id: Optional[str] = None, qualified_only: bool = False) -> List[dict]:
        """Active jobs that have no deadline or whose deadline has not passed."""
        now = utcnow()
        result = fetch_sorted(
            self.jobs.collection,
            {"status": "active", "$or": [{"deadline": None}, {"deadline": {"$gte": now}}]},
            "created_at",
            hint=index_spec("jobs_by_status"),
            context="open jobs",
        )
        jobs = serialize_docs(result.docs, JOB_DATES)
        if qualified_only and student_id:
            student = self.get_student_profile(student_id)
            jobs = [j for j in jobs if eligibility.check_job_qualification(student, j)]
        return jobs

    def get_recommended_jobs(self, student_id: str) -> List[dict]:
        student = self.get_student_profile(student_id)
        recommended = []
        for job in self.get_jobs():
            if eligibility.check_job_qualification(student, job) and eligibility.check_job_preferences(student, job):
                recommended.append({**job, "match_score": eligibility.calculate_match_score(job)})
        return recommended

    def check_job_matches(self, student_id: str) -> int:
        """Notify the student about newly matching jobs; returns how many were created."""
        try:
            matches = self.get_recommended_jobs(student_id)
            notified = {
                n.get("job_id")
                for n in self.notifications.find({"user_id": student_id, "type": "job_match"}, {"job_id": 1})
            }
        except (ServiceError, PyMongoError) as exc:
            logger.warning("job_matching_failed", student_id=student_id, error=str(exc))
            return 0

        created = 0
        for job in matches:
            if job["id"] in notified:
                continue
            self.notifications.insert_one({
                "_id": new_id(),
                "user_id": student_id,
                "type": "job_match",
                "title": "New Job Match!",
                "message": f"You're qualified for: {job.get('title', '')} at {job.get('company_name', '')}",
                "job_id": job["id"],
                "metadata": {
                    "job_id": job["id"],
                    "job_title": job.get("title", ""),
                    "company_name": job.get("company_name", ""),
                    "match_score": job["match_score"],
                },
                "read": False,
                "created_at": utcnow(),
            })
            created += 1

        if created:
            logger.info("job_match_notifications_created", student_id=student_id, count=created)
        return created

    def check_existing_application(self, student_id: str, job_id: str) -> bool:
        return self.job_applications.find_one({"student_id": student_id, "job_id": job_id}) is not None

    def apply_for_job(self, student_id: str, job_id: str, cover_letter: str = "") -> dict:
        job = self.jobs.get_job(job_id)
        if job.get("status") != "active" or not job.get("is_active", True):
            raise InvalidRequestError("This job is no longer accepting applications")
        if self.check_existing_application(student_id, job_id):
            raise ConflictError("You have already applied for this job")

        student = self.get_student_profile(student_id)
        qualified = eligibility.check_job_qualification(student, job)
        now = utcnow()
        doc = {
            "_id": new_id(),
            "student_id": student_id,
            "student_name": student.get("full_name", ""),
            "student_email": student.get("email", ""),
            "job_id": job_id,
            "job_title": job.get("title", ""),
            "company_id": job.get("company_id"),
            "company_name": job.get("company_name", ""),
            "cover_letter": cover_letter,
            "resume_url": student.get("resume_url", ""),
            "match_score": eligibility.calculate_match_score(job) if qualified else 0,
            "status": "pending",
            "applied_at": now,
            "updated_at": now,
        }
        self.job_applications.insert_one(doc)
        self.jobs.increment_applicant_count(job_id)
        logger.info("job_application_created", student_id=student_id, job_id=job_id)
        return serialize_doc(doc, APPLICATION_DATES)

    def get_student_job_applications(self, student_id: str) -> List[dict]:
        result = fetch_sorted(
            self.job_applications,
            {"student_id": student_id},
            "applied_at",
            hint=index_spec("job_applications_by_student"),
            context="student job applications",
        )
        return serialize_docs(result.docs, APPLICATION_DATES)

    # ============================================================
    # ADMISSIONS
    # ============================================================

    def get_student_admissions(self, student_id: str) -> List[dict]:
        docs = self.applications.find({"student_id": student_id, "status": "approved"})
        admissions = []
        for admission in serialize_docs(docs, APPLICATION_DATES):
            institution = self.institutions.find_one({"_id": admission.get("institution_id")}) or {}
            course = self.courses.find_one({"_id": admission.get("course_id")}) or {}
            admission["institution_name"] = (
                institution.get("name") or admission.get("institution_name") or "Unknown Institution"
            )
            admission["course_name"] = course.get("name") or admission.get("course_name") or "Unknown Course"
            admission["selected"] = bool(admission.get("selected"))
            admissions.append(admission)
        return admissions

    def select_institution(self, student_id: str, application_id: str) -> dict:
        """Accept one admission offer; every other offer is marked unselected."""
        chosen = self.applications.find_one(
            {"_id": application_id, "student_id": student_id, "status": "approved"}
        )
        if not chosen:
            raise NotFoundError("Admission not found")

        now = utcnow()
        self.applications.update_many(
            {"student_id": student_id, "status": "approved", "_id": {"$ne": application_id}},
            {"$set": {"selected": False, "updated_at": now}},
        )
        self.applications.update_one(
            {"_id": application_id}, {"$set": {"selected": True, "selected_at": now, "updated_at": now}}
        )
        logger.info("institution_selected", student_id=student_id, application_id=application_id)
        return serialize_doc(self.applications.find_one({"_id": application_id}), APPLICATION_DATES)

    # ============================================================
    # DASHBOARD
    # ============================================================

    def get_dashboard_stats(self, student_id: str) -> dict:
        def safe(name, loader):
            try:
                return loader()
            except (ServiceError, PyMongoError) as exc:
                logger.warning("student_dashboard_part_failed", part=name, error=str(exc))
                return 0

        return {
            "pending_applications": safe("applications", lambda: self.applications.count_documents(
                {"student_id": student_id, "status": "pending"})),
            "admissions": safe("admissions", lambda: self.applications.count_documents(
                {"student_id": student_id, "status": "approved"})),
            "pending_job_applications": safe("job_applications", lambda: self.job_applications.count_documents(
                {"student_id": student_id, "status": "pending"})),
            "job_matches": safe("job_matches", lambda: len(self.get_recommended_jobs(student_id))),
            "unread_notifications": safe("notifications", lambda: self.get_unread_notifications_count(student_id)),
            "profile_completion": safe("profile", lambda: self.get_student_profile(student_id)["profile_completion"]),
        }


def get_student_service() -> StudentService:
    return StudentService()
