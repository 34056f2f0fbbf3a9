import pytest

from careerconnect.core.errors import ConflictError, InvalidRequestError, NotFoundError
from careerconnect.db.documents import utcnow
from careerconnect.services.institution_service import AUTO_REJECT_NOTE, InstitutionService

INSTITUTION = "inst-1"


@pytest.fixture
def service(db):
    svc = InstitutionService()
    svc.initialize_institution(INSTITUTION, {"name": "National University"})
    return svc


def add_application(db, app_id, student_id, status="pending", course_name="BSc", institution_id=INSTITUTION):
    now = utcnow()
    db["applications"].insert_one({
        "_id": app_id,
        "student_id": student_id,
        "institution_id": institution_id,
        "course_id": f"course-{app_id}",
        "course_name": course_name,
        "status": status,
        "created_at": now,
        "applied_at": now,
    })


def test_initialize_creates_defaults_once(service, db):
    data = service.get_institution_data(INSTITUTION)

    assert data["name"] == "National University"
    assert data["type"] == "University"
    assert data["accreditation_status"] == "accredited"
    assert db["institutions"].count_documents({}) == 1


def test_approval_auto_rejects_other_pending_applications(service, db):
    add_application(db, "a1", "s1")
    add_application(db, "a2", "s1")
    add_application(db, "a3", "s1", institution_id="other-inst")
    add_application(db, "a4", "s2")

    result = service.update_application_status(INSTITUTION, "a1", "approved", reviewed_by="reviewer")

    assert result == {"application_id": "a1", "status": "approved", "auto_rejected_count": 1}
    assert db["applications"].find_one({"_id": "a1"})["status"] == "approved"
    rejected = db["applications"].find_one({"_id": "a2"})
    assert rejected["status"] == "rejected"
    assert rejected["review_notes"] == AUTO_REJECT_NOTE
    assert db["applications"].find_one({"_id": "a3"})["status"] == "pending"
    assert db["applications"].find_one({"_id": "a4"})["status"] == "pending"


def test_second_admission_at_same_institution_is_refused(service, db):
    add_application(db, "a1", "s1", status="approved", course_name="BSc Computing")
    add_application(db, "a2", "s1", status="under_review")

    with pytest.raises(ConflictError) as exc:
        service.update_application_status(INSTITUTION, "a2", "approved", reviewed_by="reviewer")

    assert "already admitted to BSc Computing" in exc.value.message
    assert db["applications"].find_one({"_id": "a2"})["status"] == "under_review"


def test_rejection_records_reviewer_and_notes(service, db):
    add_application(db, "a1", "s1")

    service.update_application_status(INSTITUTION, "a1", "rejected", reviewed_by="reviewer", notes="Incomplete")

    doc = db["applications"].find_one({"_id": "a1"})
    assert doc["status"] == "rejected"
    assert doc["reviewed_by"] == "reviewer"
    assert doc["review_notes"] == "Incomplete"


def test_reviewing_unknown_application(service):
    with pytest.raises(NotFoundError):
        service.update_application_status(INSTITUTION, "missing", "approved", reviewed_by="reviewer")


def test_faculty_with_courses_cannot_be_deleted(service, db):
    faculty = service.add_faculty(INSTITUTION, {"name": "Science"})
    course = service.add_course(INSTITUTION, {"name": "BSc Physics", "faculty_id": faculty["id"]})

    assert db["faculties"].find_one({"_id": faculty["id"]})["course_count"] == 1
    assert db["institutions"].find_one({"_id": INSTITUTION})["faculty_count"] == 1

    with pytest.raises(ConflictError):
        service.delete_faculty(INSTITUTION, faculty["id"])

    service.delete_course(INSTITUTION, course["id"])
    assert db["faculties"].find_one({"_id": faculty["id"]})["course_count"] == 0

    service.delete_faculty(INSTITUTION, faculty["id"])
    assert db["institutions"].find_one({"_id": INSTITUTION})["faculty_count"] == 0


def test_moving_a_course_updates_faculty_name_and_counts(service, db):
    science = service.add_faculty(INSTITUTION, {"name": "Science"})
    arts = service.add_faculty(INSTITUTION, {"name": "Arts"})
    course = service.add_course(INSTITUTION, {"name": "BA Design", "faculty_id": science["id"]})
    assert course["faculty_name"] == "Science"

    moved = service.update_course(INSTITUTION, course["id"], {"faculty_id": arts["id"]})

    assert moved["faculty_name"] == "Arts"
    assert db["faculties"].find_one({"_id": science["id"]})["course_count"] == 0
    assert db["faculties"].find_one({"_id": arts["id"]})["course_count"] == 1

    service.update_faculty(INSTITUTION, arts["id"], {"name": "Creative Arts"})
    assert db["courses"].find_one({"_id": course["id"]})["faculty_name"] == "Creative Arts"


def test_course_requires_faculty(service):
    with pytest.raises(InvalidRequestError):
        service.add_course(INSTITUTION, {"name": "Orphan course"})


def test_stats_and_students(service, db):
    db["users"].insert_one({"_id": "s1", "email": "s1@example.com", "full_name": "Thabo", "phone": "123"})
    add_application(db, "a1", "s1", status="approved")
    add_application(db, "a2", "s2", status="pending", course_name="Diploma")
    faculty = service.add_faculty(INSTITUTION, {"name": "Arts"})
    service.add_course(INSTITUTION, {"name": "BA", "faculty_id": faculty["id"]})
    service.publish_admission(INSTITUTION, {"title": "2025 intake", "deadline": "2025-01-31T00:00:00"})

    stats = service.get_institution_stats(INSTITUTION)
    assert stats == {
        "total_students": 1,
        "active_courses": 1,
        "pending_applications": 1,
        "published_admissions": 1,
        "total_faculties": 1,
    }

    students = service.get_students(INSTITUTION)
    assert len(students) == 1
    assert students[0]["full_name"] == "Thabo"
    assert students[0]["course_name"] == "BSc"


def test_recent_applications_newest_first(service, db):
    from datetime import timedelta

    now = utcnow()
    for i in range(7):
        db["applications"].insert_one({
            "_id": f"a{i}", "institution_id": INSTITUTION, "status": "pending",
            "created_at": now - timedelta(minutes=i),
        })

    recent = service.get_recent_applications(INSTITUTION, limit=5)

    assert [a["id"] for a in recent] == ["a0", "a1", "a2", "a3", "a4"]
