from datetime import datetime, timedelta

import pytest

from careerconnect.core.errors import NotFoundError
from careerconnect.db.documents import utcnow
from careerconnect.services.admin_service import DEFAULT_SETTINGS, AdminService


@pytest.fixture
def service(db):
    return AdminService()


def test_settings_created_on_first_read_and_merged_on_update(service, db):
    settings = service.get_settings()
    assert settings["site_name"] == DEFAULT_SETTINGS["site_name"]
    assert db["system_settings"].count_documents({}) == 1

    updated = service.update_settings({"max_login_attempts": 3}, updated_by="ops@example.com")
    assert updated["max_login_attempts"] == 3
    assert updated["updated_by"] == "ops@example.com"
    assert updated["session_timeout"] == DEFAULT_SETTINGS["session_timeout"]

    reset = service.reset_settings()
    assert reset["max_login_attempts"] == DEFAULT_SETTINGS["max_login_attempts"]


def test_company_moderation_writes_activities(service, db):
    db["companies"].insert_one({"_id": "c1", "company_name": "Acme", "status": "pending"})

    service.approve_company("c1")
    assert db["companies"].find_one({"_id": "c1"})["status"] == "approved"

    service.suspend_company("c1", "Spam postings")
    company = db["companies"].find_one({"_id": "c1"})
    assert company["status"] == "suspended"
    assert company["suspension_reason"] == "Spam postings"

    service.activate_company("c1")
    company = db["companies"].find_one({"_id": "c1"})
    assert company["status"] == "approved"
    assert company["suspended_at"] is None

    activities = service.get_recent_activities()
    assert {a["type"] for a in activities} == {"company_approved", "company_suspended", "company_activated"}
    suspended = next(a for a in activities if a["type"] == "company_suspended")
    assert suspended["priority"] == "high"
    assert suspended["company_id"] == "c1"
    assert suspended["created_by"] == "admin"


def test_moderating_missing_company(service):
    with pytest.raises(NotFoundError):
        service.approve_company("missing")


def test_add_institution_defaults_to_active(service, db):
    institution = service.add_institution({"name": "Tech College"})

    assert institution["status"] == "active"
    assert db["activities"].count_documents({"type": "institution_added"}) == 1


def test_add_admission_defaults(service):
    admission = service.add_admission({"title": "2025 intake", "start_date": "2025-01-10T00:00:00"})

    assert admission["status"] == "upcoming"
    assert admission["applicant_count"] == 0
    assert admission["start_date"] == datetime(2025, 1, 10)


def test_dashboard_stats(service, db):
    db["companies"].insert_many([
        {"_id": "c1", "status": "pending"},
        {"_id": "c2", "status": "approved"},
        {"_id": "c3", "status": "suspended"},
    ])
    db["users"].insert_many([
        {"_id": "u1", "role": "student"},
        {"_id": "u2", "role": "company"},
        {"_id": "u3", "role": "employer"},
        {"_id": "u4", "role": "admin"},
    ])
    db["faculties"].insert_one({"_id": "f1", "courses": ["a", "b"]})
    db["courses"].insert_one({"_id": "k1"})
    db["admissions"].insert_many([{"_id": "ad1", "status": "active"}, {"_id": "ad2", "status": "upcoming"}])
    db["jobs"].insert_many([{"_id": "j1", "status": "active"}, {"_id": "j2", "status": "closed"}])

    stats = service.get_dashboard_stats()

    assert stats["total_companies"] == 3
    assert stats["pending_companies"] == 1
    assert stats["approved_companies"] == 1
    assert stats["suspended_companies"] == 1
    assert stats["total_students"] == 1
    assert stats["total_employers"] == 2
    assert stats["total_admins"] == 1
    assert stats["total_courses"] == 3
    assert stats["active_admissions"] == 1
    assert stats["active_jobs"] == 1


def test_admission_statistics_approval_rate(service, db):
    db["applications"].insert_many([
        {"_id": "a1", "status": "approved"},
        {"_id": "a2", "status": "pending"},
        {"_id": "a3", "status": "rejected"},
    ])

    stats = service.get_admission_statistics()

    assert stats["approval_rate"] == 33.3
    assert stats["pending_applications"] == 1


def test_admission_statistics_without_applications(service):
    assert service.get_admission_statistics()["approval_rate"] == 0


def test_registration_trends_and_industries(service, db):
    db["companies"].insert_many([
        {"_id": "c1", "industry": "Tech", "created_at": datetime(2024, 3, 5)},
        {"_id": "c2", "industry": "Tech", "created_at": datetime(2024, 3, 20)},
        {"_id": "c3", "created_at": "2024-04-02T10:00:00Z"},
    ])

    assert service.get_registration_trends() == {"2024-03": 2, "2024-04": 1}
    assert service.get_company_statistics()["industry_distribution"] == {"Tech": 2, "Other": 1}


def test_user_growth_is_month_over_month(service, db):
    db["users"].insert_many([
        {"_id": "u1", "created_at": datetime(2024, 4, 3)},
        {"_id": "u2", "created_at": datetime(2024, 5, 1)},
        {"_id": "u3", "created_at": datetime(2024, 5, 20)},
    ])

    data = service.get_user_growth_data(now=datetime(2024, 6, 15))

    assert [d["month"] for d in data] == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]
    assert [d["users"] for d in data] == [0, 0, 0, 1, 2, 0]
    assert data[4]["growth"] == 100.0
    assert data[5]["growth"] == -100.0
    assert data[3]["growth"] == 0


def test_cleanup_removes_only_old_read_notifications(service, db):
    old = utcnow() - timedelta(days=45)
    db["notifications"].insert_many([
        {"_id": "n1", "read": True, "created_at": old},
        {"_id": "n2", "read": False, "created_at": old},
        {"_id": "n3", "read": True, "created_at": utcnow()},
    ])

    result = service.cleanup_old_data(days_old=30)

    assert result["cleaned_count"] == 1
    assert sorted(n["_id"] for n in db["notifications"].find()) == ["n2", "n3"]


def test_backup_snapshots_collections_without_passwords(service, db):
    db["users"].insert_one({"_id": "u1", "email": "a@example.com", "password_hash": "secret"})
    db["companies"].insert_one({"_id": "c1"})

    result = service.backup_data()

    backup = db["backups"].find_one({"_id": result["backup_id"]})
    assert backup["counts"]["users"] == 1
    assert "password_hash" not in backup["data"]["users"][0]
    assert result["size"] > 0


def test_admin_notifications_newest_first(service, db):
    service.create_notification({"title": "First", "message": "one"})
    db["notifications"].insert_one({
        "_id": "later", "recipient": "all", "title": "Second", "created_at": utcnow() + timedelta(seconds=5),
    })
    db["notifications"].insert_one({"_id": "student", "user_id": "s1", "created_at": utcnow()})

    notifications = service.get_admin_notifications()

    assert [n["title"] for n in notifications] == ["Second", "First"]
    assert notifications[1]["read"] is False


def test_system_report_sections(service, db):
    db["companies"].insert_one({"_id": "c1", "company_name": "Acme", "industry": "Tech", "status": "approved"})

    report = service.build_system_report()

    assert report["industry_distribution"] == [{"industry": "Tech", "companies": 1, "percentage": "100.0%"}]
    assert report["companies"][0]["name"] == "Acme"
    assert report["summary"]["admission_approval_rate"] == "0%"


def test_system_diagnostics_reports_every_component(service, db):
    db["users"].insert_many([
        {"_id": "u1", "role": "student", "status": "active"},
        {"_id": "u2", "role": "company", "status": "suspended"},
        {"_id": "u3", "role": "student"},
    ])
    db["jobs"].insert_one({"_id": "j1", "status": "active"})

    report = service.run_system_diagnostics()

    checks = report["checks"]
    assert set(checks) == {"database", "storage", "authentication", "performance"}
    assert checks["database"]["status"] == "healthy"
    assert checks["database"]["response_time_ms"] >= 0
    assert checks["storage"] == {"status": "healthy", "primary": "gridfs", "gridfs_files": 0}
    assert checks["authentication"]["status"] == "healthy"
    assert checks["authentication"]["active_users"] == 2
    assert checks["performance"]["document_counts"]["users"] == 3
    assert checks["performance"]["document_counts"]["jobs"] == 1
    assert report["issues"] == []


def test_system_diagnostics_lists_unhealthy_components(service, monkeypatch):
    monkeypatch.setattr(service, "_ping", lambda: None)

    report = service.run_system_diagnostics()

    assert report["checks"]["database"] == {"status": "unhealthy", "response_time_ms": None}
    assert report["issues"] == [{"component": "database", "status": "unhealthy"}]
