"""
Admin Service - platform moderation, analytics and maintenance.

Every mutation performed here writes an `activities` document so the
admin dashboard can show an audit feed. Read-side aggregation works
over fully fetched collections; a collection that fails to load is
treated as empty so one bad read never blanks the whole dashboard.
"""

import time
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from bson import json_util
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from careerconnect.core.config import DEFAULT_JWT_SECRET, get_settings
from careerconnect.core.errors import NotFoundError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import new_id, serialize_doc, serialize_docs, to_datetime, utcnow
from careerconnect.db.mongodb import COLLECTIONS, get_collection, get_mongo_client, index_spec
from careerconnect.db.queries import fetch_sorted
from careerconnect.db.subscriptions import subscribe

logger = get_logger(__name__)

SETTINGS_DOC_ID = "global_settings"

DEFAULT_SETTINGS = {
    "site_name": "CareerConnect Platform",
    "site_description": "Connecting students with opportunities",
    "admin_email": "admin@careerconnect.com",
    "support_email": "support@careerconnect.com",
    "auto_approve_companies": False,
    "require_company_verification": True,
    "max_admission_duration": 180,
    "email_notifications": True,
    "system_alerts": True,
    "weekly_reports": True,
    "require_strong_passwords": True,
    "session_timeout": 60,
    "max_login_attempts": 5,
    "updated_by": "system",
}

ADMIN_RECIPIENTS = ["admin", "all"]
EMPLOYER_ROLES = ("employer", "company")
ADMIN_ROLES = ("admin", "super-admin")
BACKUP_COLLECTIONS = ("users", "companies", "institutions", "admissions", "faculties")


def _month_start(moment: datetime, months_back: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months_back
    return datetime(month_index // 12, month_index % 12 + 1, 1)


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0


class AdminService:
    def __init__(self):
        self.settings_collection: Collection = get_collection(COLLECTIONS["system_settings"])
        self.companies: Collection = get_collection(COLLECTIONS["companies"])
        self.institutions: Collection = get_collection(COLLECTIONS["institutions"])
        self.faculties: Collection = get_collection(COLLECTIONS["faculties"])
        self.admissions: Collection = get_collection(COLLECTIONS["admissions"])
        self.users: Collection = get_collection(COLLECTIONS["users"])
        self.notifications: Collection = get_collection(COLLECTIONS["notifications"])
        self.activities: Collection = get_collection(COLLECTIONS["activities"])
        self.backups: Collection = get_collection(COLLECTIONS["backups"])

    # ============================================================
    # ACTIVITY LOG
    # ============================================================

    def log_activity(
        self,
        activity_type: str,
        action: str,
        priority: str = "medium",
        created_by: str = "admin",
        **fields,
    ) -> str:
        doc = {
            "_id": new_id(),
            "type": activity_type,
            "action": action,
            "priority": priority,
            "created_by": created_by,
            "created_at": utcnow(),
            **{k: v for k, v in fields.items() if v is not None},
        }
        self.activities.insert_one(doc)
        logger.info("activity_logged", type=activity_type, priority=priority)
        return doc["_id"]

    def get_recent_activities(self, limit: int = 50) -> List[dict]:
        result = fetch_sorted(
            self.activities, {}, "created_at",
            hint=index_spec("activities_by_date"), limit=limit, context="recent activities",
        )
        return serialize_docs(result.docs, ("created_at",))

    # ============================================================
    # SYSTEM SETTINGS
    # ============================================================

    def get_settings(self) -> dict:
        """Global settings, creating the defaults on first read."""
        doc = self.settings_collection.find_one({"_id": SETTINGS_DOC_ID})
        if not doc:
            doc = {"_id": SETTINGS_DOC_ID, **DEFAULT_SETTINGS, "updated_at": utcnow()}
            self.settings_collection.insert_one(doc)
            logger.info("system_settings_initialized")
        return {**DEFAULT_SETTINGS, **serialize_doc(doc, ("updated_at",))}

    def update_settings(self, updates: dict, updated_by: str = "admin") -> dict:
        self.get_settings()
        changes = {**updates, "updated_at": utcnow(), "updated_by": updated_by}
        self.settings_collection.update_one({"_id": SETTINGS_DOC_ID}, {"$set": changes})
        self.log_activity("settings_updated", "System settings updated", priority="low",
                          created_by=updated_by, fields=sorted(updates))
        return self.get_settings()

    def reset_settings(self, updated_by: str = "admin") -> dict:
        doc = {**DEFAULT_SETTINGS, "updated_at": utcnow(), "updated_by": updated_by}
        self.settings_collection.replace_one({"_id": SETTINGS_DOC_ID}, doc, upsert=True)
        self.log_activity("settings_reset", "System settings reset to defaults", created_by=updated_by)
        return self.get_settings()

    def subscribe_to_settings(self, callback: Callable[[dict], None]) -> Callable[[], None]:
        """Deliver the settings on every change; defaults when missing or on error."""
        def transform(docs: List[dict]) -> dict:
            if not docs:
                return dict(DEFAULT_SETTINGS)
            return {**DEFAULT_SETTINGS, **serialize_doc(docs[0], ("updated_at",))}

        return subscribe(self.settings_collection, {"_id": SETTINGS_DOC_ID}, callback, transform=transform)

    # ============================================================
    # COMPANIES
    # ============================================================

    def get_all_companies(self) -> List[dict]:
        return serialize_docs(self.companies.find().sort("created_at", -1), ("created_at", "updated_at"))

    def get_companies_by_status(self, status: str) -> List[dict]:
        return serialize_docs(
            self.companies.find({"status": status}).sort("created_at", -1), ("created_at", "updated_at")
        )

    def get_company_by_id(self, company_id: str) -> Optional[dict]:
        return serialize_doc(self.companies.find_one({"_id": company_id}), ("created_at", "updated_at"))

    def _set_company(self, company_id: str, changes: dict) -> dict:
        result = self.companies.update_one({"_id": company_id}, {"$set": {**changes, "updated_at": utcnow()}})
        if result.matched_count == 0:
            raise NotFoundError("Company not found")
        return self.get_company_by_id(company_id)

    def approve_company(self, company_id: str) -> dict:
        company = self._set_company(company_id, {"status": "approved", "approved_at": utcnow()})
        self.log_activity("company_approved", "Company approved", company_id=company_id)
        return company

    def suspend_company(self, company_id: str, reason: str = "") -> dict:
        company = self._set_company(company_id, {
            "status": "suspended",
            "suspension_reason": reason,
            "suspended_at": utcnow(),
        })
        self.log_activity("company_suspended", "Company suspended", priority="high",
                          company_id=company_id, reason=reason)
        return company

    def activate_company(self, company_id: str) -> dict:
        company = self._set_company(company_id, {
            "status": "approved",
            "suspension_reason": "",
            "suspended_at": None,
        })
        self.log_activity("company_activated", "Company activated", company_id=company_id)
        return company

    def reject_company(self, company_id: str, reason: str = "") -> dict:
        company = self._set_company(company_id, {
            "status": "rejected",
            "rejection_reason": reason,
            "rejected_at": utcnow(),
        })
        self.log_activity("company_rejected", "Company rejected", company_id=company_id, reason=reason)
        return company

    def delete_company(self, company_id: str) -> None:
        result = self.companies.delete_one({"_id": company_id})
        if result.deleted_count == 0:
            raise NotFoundError("Company not found")
        self.log_activity("company_deleted", "Company deleted", priority="high", company_id=company_id)

    # ============================================================
    # INSTITUTIONS / FACULTIES (generic CRUD with audit)
    # ============================================================

    def _list(self, collection: Collection, dates=("created_at", "updated_at")) -> List[dict]:
        return serialize_docs(collection.find().sort("created_at", -1), dates)

    def _get(self, collection: Collection, doc_id: str, label: str, dates=("created_at", "updated_at")) -> dict:
        doc = collection.find_one({"_id": doc_id})
        if not doc:
            raise NotFoundError(f"{label} not found")
        return serialize_doc(doc, dates)

    def _add(self, collection: Collection, data: dict, defaults: dict) -> str:
        now = utcnow()
        doc = {"_id": new_id(), **defaults, **data, "created_at": now, "updated_at": now}
        collection.insert_one(doc)
        return doc["_id"]

    def _update(self, collection: Collection, doc_id: str, updates: dict, label: str) -> None:
        result = collection.update_one({"_id": doc_id}, {"$set": {**updates, "updated_at": utcnow()}})
        if result.matched_count == 0:
            raise NotFoundError(f"{label} not found")

    def _delete(self, collection: Collection, doc_id: str, label: str) -> None:
        if collection.delete_one({"_id": doc_id}).deleted_count == 0:
            raise NotFoundError(f"{label} not found")

    def get_all_institutions(self) -> List[dict]:
        return self._list(self.institutions)

    def get_institution_by_id(self, institution_id: str) -> dict:
        return self._get(self.institutions, institution_id, "Institution")

    def add_institution(self, data: dict) -> dict:
        institution_id = self._add(self.institutions, data, {"status": "active"})
        self.log_activity("institution_added", f"Institution added: {data.get('name', '')}",
                          institution_id=institution_id)
        return self.get_institution_by_id(institution_id)

    def update_institution(self, institution_id: str, updates: dict) -> dict:
        self._update(self.institutions, institution_id, updates, "Institution")
        self.log_activity("institution_updated", "Institution updated", priority="low",
                          institution_id=institution_id)
        return self.get_institution_by_id(institution_id)

    def delete_institution(self, institution_id: str) -> None:
        self._delete(self.institutions, institution_id, "Institution")
        self.log_activity("institution_deleted", "Institution deleted", priority="high",
                          institution_id=institution_id)

    def get_all_faculties(self) -> List[dict]:
        return self._list(self.faculties)

    def get_faculty_by_id(self, faculty_id: str) -> dict:
        return self._get(self.faculties, faculty_id, "Faculty")

    def add_faculty(self, data: dict) -> dict:
        faculty_id = self._add(self.faculties, data, {"status": "active", "course_count": 0})
        self.log_activity("faculty_added", f"Faculty added: {data.get('name', '')}", faculty_id=faculty_id)
        return self.get_faculty_by_id(faculty_id)

    def update_faculty(self, faculty_id: str, updates: dict) -> dict:
        self._update(self.faculties, faculty_id, updates, "Faculty")
        self.log_activity("faculty_updated", "Faculty updated", priority="low", faculty_id=faculty_id)
        return self.get_faculty_by_id(faculty_id)

    def delete_faculty(self, faculty_id: str) -> None:
        self._delete(self.faculties, faculty_id, "Faculty")
        self.log_activity("faculty_deleted", "Faculty deleted", priority="high", faculty_id=faculty_id)

    # ============================================================
    # ADMISSIONS
    # ============================================================

    ADMISSION_DATES = ("created_at", "updated_at", "start_date", "end_date", "deadline")

    def get_all_admissions(self) -> List[dict]:
        return self._list(self.admissions, self.ADMISSION_DATES)

    def get_admission_by_id(self, admission_id: str) -> dict:
        return self._get(self.admissions, admission_id, "Admission", self.ADMISSION_DATES)

    def _normalise_admission(self, data: dict) -> dict:
        data = dict(data)
        for field in ("start_date", "end_date", "deadline"):
            if field in data:
                data[field] = to_datetime(data[field])
        return data

    def add_admission(self, data: dict) -> dict:
        admission_id = self._add(
            self.admissions, self._normalise_admission(data), {"status": "upcoming", "applicant_count": 0}
        )
        self.log_activity("admission_added", f"Admission added: {data.get('title', '')}", admission_id=admission_id)
        return self.get_admission_by_id(admission_id)

    def update_admission(self, admission_id: str, updates: dict) -> dict:
        self._update(self.admissions, admission_id, self._normalise_admission(updates), "Admission")
        self.log_activity("admission_updated", "Admission updated", priority="low", admission_id=admission_id)
        return self.get_admission_by_id(admission_id)

    def update_admission_status(self, admission_id: str, status: str) -> dict:
        self._update(self.admissions, admission_id, {"status": status}, "Admission")
        self.log_activity("admission_status_updated", f"Admission status changed to {status}",
                          admission_id=admission_id, status=status)
        return self.get_admission_by_id(admission_id)

    def delete_admission(self, admission_id: str) -> None:
        self._delete(self.admissions, admission_id, "Admission")
        self.log_activity("admission_deleted", "Admission deleted", priority="high", admission_id=admission_id)

    # ============================================================
    # USERS
    # ============================================================

    USER_PROJECTION = {"password_hash": 0}

    def get_all_users(self) -> List[dict]:
        return serialize_docs(self.users.find({}, self.USER_PROJECTION).sort("created_at", -1), ("created_at",))

    def get_users_by_role(self, role: str) -> List[dict]:
        return serialize_docs(
            self.users.find({"role": role}, self.USER_PROJECTION).sort("created_at", -1), ("created_at",)
        )

    def get_user_by_id(self, user_id: str) -> dict:
        doc = self.users.find_one({"_id": user_id}, self.USER_PROJECTION)
        if not doc:
            raise NotFoundError("User not found")
        return serialize_doc(doc, ("created_at",))

    def update_user_status(self, user_id: str, status: str) -> dict:
        self._update(self.users, user_id, {"status": status}, "User")
        self.log_activity("user_status_updated", f"User status changed to {status}", user_id=user_id, status=status)
        return self.get_user_by_id(user_id)

    def update_user_role(self, user_id: str, role: str) -> dict:
        self._update(self.users, user_id, {"role": role}, "User")
        self.log_activity("user_role_updated", f"User role changed to {role}", priority="high",
                          user_id=user_id, role=role)
        return self.get_user_by_id(user_id)

    # ============================================================
    # NOTIFICATIONS
    # ============================================================

    def get_admin_notifications(self, limit: int = 0) -> List[dict]:
        result = fetch_sorted(
            self.notifications,
            {"recipient": {"$in": ADMIN_RECIPIENTS}},
            "created_at",
            hint=index_spec("notifications_by_recipient"),
            limit=limit,
            context="admin notifications",
        )
        return serialize_docs(result.docs, ("created_at", "read_at"))

    def mark_notification_as_read(self, notification_id: str) -> None:
        self._update(self.notifications, notification_id, {"read": True, "read_at": utcnow()}, "Notification")

    def create_notification(self, data: dict) -> dict:
        doc = {"_id": new_id(), "recipient": "admin", "type": "system", **data, "read": False,
               "created_at": utcnow()}
        self.notifications.insert_one(doc)
        logger.info("notification_created", notification_id=doc["_id"], recipient=doc["recipient"])
        return serialize_doc(doc)

    def delete_notification(self, notification_id: str) -> None:
        self._delete(self.notifications, notification_id, "Notification")

    # ============================================================
    # LIVE SUBSCRIPTIONS
    # ============================================================

    def subscribe_to_activities(self, callback, limit: int = 50):
        return subscribe(self.activities, {}, callback, sort=[("created_at", -1)], limit=limit)

    def subscribe_to_pending_companies(self, callback):
        return subscribe(self.companies, {"status": "pending"}, callback)

    def subscribe_to_new_companies(self, callback, limit: int = 10):
        return subscribe(self.companies, {}, callback, sort=[("created_at", -1)], limit=limit)

    def subscribe_to_admin_notifications(self, callback):
        return subscribe(
            self.notifications, {"recipient": {"$in": ADMIN_RECIPIENTS}}, callback, sort=[("created_at", -1)]
        )

    def subscribe_to_users(self, callback):
        def transform(docs):
            return [
                {k: v for k, v in d.items() if k != "password_hash"} for d in serialize_docs(docs)
            ]
        return subscribe(self.users, {}, callback, sort=[("created_at", -1)], transform=transform)

    # ============================================================
    # ANALYTICS
    # ============================================================

    def _fetch_all(self, name: str, filter_: Optional[dict] = None) -> List[dict]:
        """Whole collection, or [] when it cannot be read."""
        try:
            return list(get_collection(COLLECTIONS[name]).find(filter_ or {}))
        except PyMongoError as exc:
            logger.warning("collection_fetch_failed", collection=name, error=str(exc))
            return []

    def get_dashboard_stats(self) -> dict:
        companies = self._fetch_all("companies")
        users = self._fetch_all("users")
        institutions = self._fetch_all("institutions")
        admissions = self._fetch_all("admissions")
        faculties = self._fetch_all("faculties")
        courses = self._fetch_all("courses")
        jobs = self._fetch_all("jobs")

        def count(docs, field, *values):
            return sum(1 for d in docs if d.get(field) in values)

        stats = {
            "total_companies": len(companies),
            "pending_companies": count(companies, "status", "pending"),
            "approved_companies": count(companies, "status", "approved"),
            "suspended_companies": count(companies, "status", "suspended"),
            "total_users": len(users),
            "total_students": count(users, "role", "student"),
            "total_employers": count(users, "role", *EMPLOYER_ROLES),
            "total_institution_users": count(users, "role", "institution"),
            "total_admins": count(users, "role", *ADMIN_ROLES),
            "total_institutions": len(institutions),
            "total_admissions": len(admissions),
            "active_admissions": count(admissions, "status", "active"),
            "total_faculties": len(faculties),
            "total_courses": sum(len(f.get("courses") or []) for f in faculties) + len(courses),
            "total_jobs": len(jobs),
            "active_jobs": count(jobs, "status", "active"),
        }
        logger.info("dashboard_stats_computed", companies=stats["total_companies"], users=stats["total_users"])
        return stats

    def get_registration_trends(self) -> Dict[str, int]:
        """Company registrations per YYYY-MM."""
        trends: Dict[str, int] = {}
        for company in self._fetch_all("companies"):
            created = to_datetime(company.get("created_at"))
            if created is None:
                continue
            key = created.strftime("%Y-%m")
            trends[key] = trends.get(key, 0) + 1
        return dict(sorted(trends.items()))

    def get_admission_statistics(self) -> dict:
        applications = self._fetch_all("applications")
        total = len(applications)
        approved = sum(1 for a in applications if a.get("status") == "approved")
        return {
            "total_applications": total,
            "approved_applications": approved,
            "pending_applications": sum(1 for a in applications if a.get("status") == "pending"),
            "rejected_applications": sum(1 for a in applications if a.get("status") == "rejected"),
            "approval_rate": _rate(approved, total),
        }

    def get_user_growth_data(self, months: int = 6, now: Optional[datetime] = None) -> List[dict]:
        """
        Users registered per month for the last `months` months (oldest first).
        Growth is the percent change against the previous month.
        """
        now = now or utcnow()
        created = [to_datetime(u.get("created_at")) for u in self._fetch_all("users")]
        created = [c for c in created if c is not None]

        def count_between(start, end):
            return sum(1 for c in created if start <= c < end)

        data = []
        previous = count_between(_month_start(now, months), _month_start(now, months - 1))
        for back in range(months - 1, -1, -1):
            start = _month_start(now, back)
            end = _month_start(now, back - 1)
            users = count_between(start, end)
            growth = round((users - previous) / previous * 100, 1) if previous else 0
            data.append({"month": start.strftime("%b"), "year": start.year, "users": users, "growth": growth})
            previous = users
        return data

    def get_company_statistics(self) -> dict:
        companies = self._fetch_all("companies")
        industries: Dict[str, int] = {}
        for company in companies:
            industry = company.get("industry") or "Other"
            industries[industry] = industries.get(industry, 0) + 1
        return {
            "total": len(companies),
            "approved": sum(1 for c in companies if c.get("status") == "approved"),
            "pending": sum(1 for c in companies if c.get("status") == "pending"),
            "suspended": sum(1 for c in companies if c.get("status") == "suspended"),
            "industry_distribution": industries,
        }

    def _ping(self) -> Optional[float]:
        """Database round trip in milliseconds, None when unreachable."""
        started = time.perf_counter()
        try:
            get_mongo_client().admin.command("ping")
        except PyMongoError as exc:
            logger.warning("database_ping_failed", error=str(exc))
            return None
        return round((time.perf_counter() - started) * 1000, 2)

    def get_system_health(self) -> dict:
        stats = self.get_dashboard_stats()
        database_ok = self._ping() is not None
        return {
            "overall_health": "good" if database_ok else "degraded",
            "database_status": "healthy" if database_ok else "unreachable",
            "user_growth": "positive" if stats["total_users"] > 0 else "neutral",
            "company_approval_rate": _rate(stats["approved_companies"], stats["total_companies"]),
            "active_admissions_rate": _rate(stats["active_admissions"], stats["total_admissions"]),
            "last_updated": utcnow(),
        }

    # ============================================================
    # DIAGNOSTICS
    # ============================================================

    def run_system_diagnostics(self) -> dict:
        settings = get_settings()
        checks = {}

        latency = self._ping()
        checks["database"] = {
            "status": "healthy" if latency is not None else "unhealthy",
            "response_time_ms": latency,
        }

        try:
            stored_files = get_collection(f"{settings.gridfs_bucket}.files").count_documents({})
            storage_status = "healthy"
        except PyMongoError as exc:
            logger.warning("storage_check_failed", error=str(exc))
            stored_files, storage_status = None, "unhealthy"
        checks["storage"] = {
            "status": storage_status,
            "primary": "cloudinary" if settings.cloudinary_enabled else "gridfs",
            "gridfs_files": stored_files,
        }

        active_users = sum(1 for u in self._fetch_all("users") if u.get("status", "active") == "active")
        checks["authentication"] = {
            "status": "degraded" if settings.jwt_secret_key == DEFAULT_JWT_SECRET else "healthy",
            "active_users": active_users,
            "token_lifetime_minutes": settings.jwt_expire_minutes,
        }

        counts = {}
        for name in ("users", "companies", "jobs", "applications", "job_applications", "notifications"):
            try:
                counts[name] = get_collection(COLLECTIONS[name]).estimated_document_count()
            except PyMongoError:
                counts[name] = None
        checks["performance"] = {
            "status": "healthy" if all(v is not None for v in counts.values()) else "degraded",
            "document_counts": counts,
        }

        issues = [
            {"component": name, "status": check["status"]}
            for name, check in checks.items() if check["status"] != "healthy"
        ]
        logger.info("system_diagnostics_completed", issues=len(issues))
        return {"checks": checks, "issues": issues, "timestamp": utcnow()}

    # ============================================================
    # REPORTS
    # ============================================================

    def build_system_report(self) -> dict:
        """Tabular report sections (rows of plain dicts) for export."""
        stats = self.get_dashboard_stats()
        admission_stats = self.get_admission_statistics()
        company_stats = self.get_company_statistics()
        users = self._fetch_all("users")

        role_counts: Dict[str, int] = {}
        for user in users:
            role = user.get("role") or "unknown"
            role_counts[role] = role_counts.get(role, 0) + 1

        total_companies = company_stats["total"]
        industries = [
            {
                "industry": industry,
                "companies": count,
                "percentage": f"{count / total_companies * 100:.1f}%" if total_companies else "0.0%",
            }
            for industry, count in sorted(company_stats["industry_distribution"].items(), key=lambda i: -i[1])
        ]

        companies = [
            {
                "name": c.get("company_name") or c.get("name") or "",
                "email": c.get("email", ""),
                "industry": c.get("industry") or "Other",
                "employees": c.get("employees", ""),
                "location": c.get("location", ""),
                "status": c.get("status", ""),
                "registration_date": to_datetime(c.get("created_at")),
                "contact_person": c.get("contact_person", ""),
            }
            for c in self._fetch_all("companies")
        ]
        institutions = [
            {
                "name": i.get("name", ""),
                "type": i.get("type", ""),
                "location": i.get("location", ""),
                "status": i.get("status", ""),
                "created_at": to_datetime(i.get("created_at")),
            }
            for i in self._fetch_all("institutions")
        ]
        admissions = [
            {
                "title": a.get("title", ""),
                "institution_id": a.get("institution_id", ""),
                "status": a.get("status", ""),
                "start_date": to_datetime(a.get("start_date")),
                "end_date": to_datetime(a.get("end_date")),
                "applicant_count": a.get("applicant_count", 0),
            }
            for a in self._fetch_all("admissions")
        ]

        return {
            "generated_at": utcnow(),
            "platform_overview": [
                {"metric": "Total Users", "value": stats["total_users"]},
                {"metric": "Total Companies", "value": stats["total_companies"]},
                {"metric": "Approved Companies", "value": stats["approved_companies"]},
                {"metric": "Pending Companies", "value": stats["pending_companies"]},
                {"metric": "Total Institutions", "value": stats["total_institutions"]},
                {"metric": "Total Admissions", "value": stats["total_admissions"]},
                {"metric": "Active Jobs", "value": stats["active_jobs"]},
            ],
            "user_growth": self.get_user_growth_data(),
            "users_by_role": [{"role": r, "count": n} for r, n in sorted(role_counts.items())],
            "companies": companies,
            "industry_distribution": industries,
            "institutions": institutions,
            "admissions": admissions,
            "summary": {
                "total_users": stats["total_users"],
                "total_companies": total_companies,
                "total_institutions": stats["total_institutions"],
                "total_applications": admission_stats["total_applications"],
                "admission_approval_rate": f"{admission_stats['approval_rate']}%",
            },
        }

    # ============================================================
    # MAINTENANCE
    # ============================================================

    def cleanup_old_data(self, days_old: int = 30) -> dict:
        """Delete read notifications older than `days_old` days."""
        cutoff = utcnow() - timedelta(days=days_old)
        result = self.notifications.delete_many({"created_at": {"$lt": cutoff}, "read": True})
        self.log_activity("data_cleanup", f"Removed {result.deleted_count} old notifications", priority="low")
        logger.info("old_data_cleaned", deleted=result.deleted_count, cutoff=cutoff.isoformat())
        return {"cleaned_count": result.deleted_count, "cutoff": cutoff}

    def backup_data(self, created_by: str = "admin") -> dict:
        """Snapshot the core collections into `backups` (password hashes excluded)."""
        data = {}
        for name in BACKUP_COLLECTIONS:
            projection = {"password_hash": 0} if name == "users" else None
            data[name] = list(get_collection(COLLECTIONS[name]).find({}, projection))

        size = len(json_util.dumps(data))
        doc = {
            "_id": new_id(),
            "created_at": utcnow(),
            "created_by": created_by,
            "collections": list(BACKUP_COLLECTIONS),
            "counts": {name: len(docs) for name, docs in data.items()},
            "size": size,
            "data": data,
        }
        self.backups.insert_one(doc)
        self.log_activity("data_backup", "Platform data backed up", priority="low", backup_id=doc["_id"])
        logger.info("backup_created", backup_id=doc["_id"], size=size)
        return {"backup_id": doc["_id"], "size": size, "counts": doc["counts"], "created_at": doc["created_at"]}


def get_admin_service() -> AdminService:
    return AdminService()
