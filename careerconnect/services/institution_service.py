"""
Institution Service - faculties, courses, admissions and applicant review.

Faculties, courses and published admissions are stored in their own
collections and carry `institution_id`. Counters on the institution
(faculty_count) and on faculties (course_count) are recomputed from the
collections after each add/delete.
"""

from typing import List, Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from careerconnect.core.errors import ConflictError, InvalidRequestError, NotFoundError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import new_id, serialize_doc, serialize_docs, to_datetime, utcnow
from careerconnect.db.mongodb import COLLECTIONS, get_collection, index_spec
from careerconnect.db.queries import fetch_sorted

logger = get_logger(__name__)

APPLICATION_DATES = ("created_at", "applied_at", "updated_at", "reviewed_at")
ADMISSION_DATES = ("created_at", "updated_at", "deadline", "start_date", "end_date")

AUTO_REJECT_NOTE = "Automatically rejected because student was admitted to another program in this institution"

DEFAULT_INSTITUTION = {
    "name": "Your Institution",
    "type": "University",
    "location": "Lesotho",
    "description": "",
    "email": "",
    "phone": "",
    "website": "",
    "established_year": "",
    "accreditation_status": "accredited",
    "status": "active",
    "faculty_count": 0,
    "total_faculties": 0,
    "total_students": 0,
    "total_courses": 0,
}


class InstitutionService:
    def __init__(self):
        self.institutions: Collection = get_collection(COLLECTIONS["institutions"])
        self.faculties: Collection = get_collection(COLLECTIONS["faculties"])
        self.courses: Collection = get_collection(COLLECTIONS["courses"])
        self.applications: Collection = get_collection(COLLECTIONS["applications"])
        self.admissions: Collection = get_collection(COLLECTIONS["admissions"])
        self.users: Collection = get_collection(COLLECTIONS["users"])

    # ============================================================
    # INSTITUTION PROFILE
    # ============================================================

    def initialize_institution(self, institution_id: str, data: Optional[dict] = None) -> dict:
        """Create the institution document with defaults if it does not exist."""
        existing = self.institutions.find_one({"_id": institution_id})
        if existing:
            return serialize_doc(existing, ("created_at", "updated_at"))

        now = utcnow()
        doc = {**DEFAULT_INSTITUTION, **(data or {}), "_id": institution_id, "created_at": now, "updated_at": now}
        self.institutions.insert_one(doc)
        logger.info("institution_initialized", institution_id=institution_id)
        return serialize_doc(doc, ("created_at", "updated_at"))

    def get_institution_data(self, institution_id: str) -> dict:
        return self.initialize_institution(institution_id)

    def update_institution_profile(self, institution_id: str, updates: dict) -> dict:
        self.initialize_institution(institution_id)
        self.institutions.update_one({"_id": institution_id}, {"$set": {**updates, "updated_at": utcnow()}})
        logger.info("institution_profile_updated", institution_id=institution_id, fields=sorted(updates))
        return self.get_institution_data(institution_id)

    # ============================================================
    # FACULTIES
    # ============================================================

    def _refresh_faculty_count(self, institution_id: str) -> int:
        count = self.faculties.count_documents({"institution_id": institution_id})
        self.institutions.update_one(
            {"_id": institution_id},
            {"$set": {"faculty_count": count, "total_faculties": count, "updated_at": utcnow()}},
        )
        return count

    def _refresh_course_count(self, faculty_id: str) -> int:
        count = self.courses.count_documents({"faculty_id": faculty_id})
        self.faculties.update_one({"_id": faculty_id}, {"$set": {"course_count": count, "updated_at": utcnow()}})
        return count

    def get_faculties(self, institution_id: str) -> List[dict]:
        docs = self.faculties.find({"institution_id": institution_id}).sort("created_at", -1)
        return serialize_docs(docs, ("created_at", "updated_at"))

    def _get_faculty(self, institution_id: str, faculty_id: str) -> dict:
        doc = self.faculties.find_one({"_id": faculty_id, "institution_id": institution_id})
        if not doc:
            raise NotFoundError("Faculty not found")
        return serialize_doc(doc, ("created_at", "updated_at"))

    def add_faculty(self, institution_id: str, data: dict) -> dict:
        self.initialize_institution(institution_id)
        now = utcnow()
        doc = {
            "_id": new_id(),
            "status": "active",
            **data,
            "institution_id": institution_id,
            "course_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        self.faculties.insert_one(doc)
        self._refresh_faculty_count(institution_id)
        logger.info("faculty_added", institution_id=institution_id, faculty_id=doc["_id"])
        return serialize_doc(doc, ("created_at", "updated_at"))

    def update_faculty(self, institution_id: str, faculty_id: str, updates: dict) -> dict:
        self._get_faculty(institution_id, faculty_id)
        self.faculties.update_one({"_id": faculty_id}, {"$set": {**updates, "updated_at": utcnow()}})
        if updates.get("name"):
            self.courses.update_many({"faculty_id": faculty_id}, {"$set": {"faculty_name": updates["name"]}})
        return self._get_faculty(institution_id, faculty_id)

    def delete_faculty(self, institution_id: str, faculty_id: str) -> None:
        self._get_faculty(institution_id, faculty_id)
        if self.courses.count_documents({"faculty_id": faculty_id}) > 0:
            raise ConflictError(
                "Cannot delete faculty with existing courses. Please delete or move the courses first."
            )
        self.faculties.delete_one({"_id": faculty_id})
        self._refresh_faculty_count(institution_id)
        logger.info("faculty_deleted", institution_id=institution_id, faculty_id=faculty_id)

    # ============================================================
    # COURSES
    # ============================================================

    def get_courses(self, institution_id: str, faculty_id: Optional[str] = None) -> List[dict]:
        filter_ = {"institution_id": institution_id}
        if faculty_id:
            filter_["faculty_id"] = faculty_id
        return serialize_docs(self.courses.find(filter_).sort("created_at", -1), ("created_at", "updated_at"))

    def _get_course(self, institution_id: str, course_id: str) -> dict:
        doc = self.courses.find_one({"_id": course_id, "institution_id": institution_id})
        if not doc:
            raise NotFoundError("Course not found")
        return serialize_doc(doc, ("created_at", "updated_at"))

    def add_course(self, institution_id: str, data: dict) -> dict:
        faculty_id = data.get("faculty_id")
        if not faculty_id:
            raise InvalidRequestError("Faculty ID is required")
        faculty = self._get_faculty(institution_id, faculty_id)

        now = utcnow()
        doc = {
            "_id": new_id(),
            "status": "active",
            **data,
            "institution_id": institution_id,
            "faculty_name": faculty.get("name", ""),
            "enrolled_students": 0,
            "created_at": now,
            "updated_at": now,
        }
        self.courses.insert_one(doc)
        self._refresh_course_count(faculty_id)
        logger.info("course_added", institution_id=institution_id, course_id=doc["_id"], faculty_id=faculty_id)
        return serialize_doc(doc, ("created_at", "updated_at"))

    def update_course(self, institution_id: str, course_id: str, updates: dict) -> dict:
        current = self._get_course(institution_id, course_id)
        changes = dict(updates)
        new_faculty = changes.get("faculty_id")
        if new_faculty:
            changes["faculty_name"] = self._get_faculty(institution_id, new_faculty).get("name", "")
        self.courses.update_one({"_id": course_id}, {"$set": {**changes, "updated_at": utcnow()}})
        if new_faculty:
            self._refresh_course_count(new_faculty)
            if current.get("faculty_id") and current["faculty_id"] != new_faculty:
                self._refresh_course_count(current["faculty_id"])
        return self._get_course(institution_id, course_id)

    def delete_course(self, institution_id: str, course_id: str) -> None:
        course = self._get_course(institution_id, course_id)
        self.courses.delete_one({"_id": course_id})
        if course.get("faculty_id"):
            self._refresh_course_count(course["faculty_id"])
        logger.info("course_deleted", institution_id=institution_id, course_id=course_id)

    # ============================================================
    # APPLICATIONS
    # ============================================================

    def get_recent_applications(self, institution_id: str, limit: int = 5) -> List[dict]:
        result = fetch_sorted(
            self.applications,
            {"institution_id": institution_id},
            "created_at",
            hint=index_spec("applications_by_institution"),
            limit=limit,
            context="recent institution applications",
        )
        return serialize_docs(result.docs, APPLICATION_DATES)

    def get_all_applications(self, institution_id: str, status: Optional[str] = None) -> List[dict]:
        filter_ = {"institution_id": institution_id}
        hint = index_spec("applications_by_institution")
        if status:
            filter_["status"] = status
            hint = index_spec("applications_by_institution_status")
        result = fetch_sorted(self.applications, filter_, "created_at", hint=hint, context="institution applications")
        return serialize_docs(result.docs, APPLICATION_DATES)

    def update_application_status(
        self,
        institution_id: str,
        application_id: str,
        status: str,
        reviewed_by: str,
        notes: str = "",
    ) -> dict:
        """
        Review a course application.

        Approving admits the student: it fails if the student already holds
        an approved place here, and otherwise rejects the student's other
        pending applications to this institution.
        """
        if not application_id or not institution_id:
            raise InvalidRequestError("Application ID and institution ID are required")

        application = self.applications.find_one({"_id": application_id, "institution_id": institution_id})
        if not application:
            raise NotFoundError("Application not found")

        now = utcnow()
        student_id = application.get("student_id")

        if status != "approved":
            changes = {"status": status, "reviewed_at": now, "reviewed_by": reviewed_by, "updated_at": now}
            if notes:
                changes["review_notes"] = notes
            self.applications.update_one({"_id": application_id}, {"$set": changes})
            logger.info("application_reviewed", application_id=application_id, status=status)
            return {"application_id": application_id, "status": status, "auto_rejected_count": 0}

        admitted = self.applications.find_one({
            "student_id": student_id,
            "institution_id": institution_id,
            "status": "approved",
            "_id": {"$ne": application_id},
        })
        if admitted:
            course_name = admitted.get("course_name") or "another program"
            raise ConflictError(
                f"Student is already admitted to {course_name} in this institution. "
                "Cannot admit to multiple programs."
            )

        self.applications.update_one({"_id": application_id}, {"$set": {
            "status": "approved",
            "reviewed_at": now,
            "reviewed_by": reviewed_by,
            "review_notes": notes or f"Application approved on {now.date().isoformat()}",
            "updated_at": now,
        }})
        rejected = self.applications.update_many(
            {
                "student_id": student_id,
                "institution_id": institution_id,
                "status": "pending",
                "_id": {"$ne": application_id},
            },
            {"$set": {
                "status": "rejected",
                "reviewed_at": now,
                "reviewed_by": reviewed_by,
                "review_notes": AUTO_REJECT_NOTE,
                "updated_at": now,
            }},
        )
        logger.info(
            "application_approved",
            application_id=application_id,
            student_id=student_id,
            auto_rejected=rejected.modified_count,
        )
        return {
            "application_id": application_id,
            "status": "approved",
            "auto_rejected_count": rejected.modified_count,
        }

    # ============================================================
    # STATS
    # ============================================================

    def get_institution_stats(self, institution_id: str) -> dict:
        try:
            return {
                "total_students": self.applications.count_documents(
                    {"institution_id": institution_id, "status": "approved"}),
                "active_courses": self.courses.count_documents(
                    {"institution_id": institution_id, "status": "active"}),
                "pending_applications": self.applications.count_documents(
                    {"institution_id": institution_id, "status": "pending"}),
                "published_admissions": self.admissions.count_documents(
                    {"institution_id": institution_id, "status": "published"}),
                "total_faculties": self.faculties.count_documents({"institution_id": institution_id}),
            }
        except PyMongoError as exc:
            logger.warning("institution_stats_failed", institution_id=institution_id, error=str(exc))
            return {
                "total_students": 0,
                "active_courses": 0,
                "pending_applications": 0,
                "published_admissions": 0,
                "total_faculties": 0,
            }

    # ============================================================
    # ADMISSIONS
    # ============================================================

    def get_admissions(self, institution_id: str) -> List[dict]:
        docs = self.admissions.find({"institution_id": institution_id}).sort("created_at", -1)
        return serialize_docs(docs, ADMISSION_DATES)

    def _get_admission(self, institution_id: str, admission_id: str) -> dict:
        doc = self.admissions.find_one({"_id": admission_id, "institution_id": institution_id})
        if not doc:
            raise NotFoundError("Admission not found")
        return serialize_doc(doc, ADMISSION_DATES)

    def publish_admission(self, institution_id: str, data: dict) -> dict:
        now = utcnow()
        doc = {
            "_id": new_id(),
            "status": "published",
            **data,
            "institution_id": institution_id,
            "application_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        for field in ("deadline", "start_date", "end_date"):
            if field in doc:
                doc[field] = to_datetime(doc[field])
        self.admissions.insert_one(doc)
        logger.info("admission_published", institution_id=institution_id, admission_id=doc["_id"])
        return serialize_doc(doc, ADMISSION_DATES)

    def update_admission(self, institution_id: str, admission_id: str, updates: dict) -> dict:
        self._get_admission(institution_id, admission_id)
        changes = dict(updates)
        for field in ("deadline", "start_date", "end_date"):
            if field in changes:
                changes[field] = to_datetime(changes[field])
        self.admissions.update_one({"_id": admission_id}, {"$set": {**changes, "updated_at": utcnow()}})
        return self._get_admission(institution_id, admission_id)

    def delete_admission(self, institution_id: str, admission_id: str) -> None:
        self._get_admission(institution_id, admission_id)
        self.admissions.delete_one({"_id": admission_id})
        logger.info("admission_deleted", institution_id=institution_id, admission_id=admission_id)

    # ============================================================
    # STUDENTS
    # ============================================================

    def get_students(self, institution_id: str, status: str = "approved") -> List[dict]:
        """Applicants with the given status, joined with their account and course."""
        students = []
        for application in self.get_all_applications(institution_id, status=status):
            student = {**application}
            try:
                user = self.users.find_one({"_id": application.get("student_id")}) or {}
                course = self.courses.find_one({"_id": application.get("course_id")}) or {}
            except PyMongoError as exc:
                logger.warning("student_enrichment_failed", application_id=application["id"], error=str(exc))
                user, course = {}, {}
            student.update({
                "full_name": user.get("full_name") or application.get("student_name") or "Unknown Student",
                "email": user.get("email") or application.get("student_email") or "",
                "phone": user.get("phone") or "",
                "course_name": course.get("name") or application.get("course_name") or "Unknown Course",
            })
            students.append(student)
        return students


def get_institution_service() -> InstitutionService:
    return InstitutionService()
