from careerconnect.api.routes import auth_routes
from careerconnect.db.mongodb import COLLECTIONS
from tests.conftest import auth_headers, register

ADMIN = ("admin@example.com", "admin-password")


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["storage"] == "gridfs"
    assert response.headers["x-request-id"]


def test_register_login_and_me(client):
    headers = register(client, "student", "lerato@example.com", full_name="Lerato Mokoena")

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "lerato@example.com"
    assert body["role"] == "student"


def test_duplicate_email_rejected(client):
    register(client, "student", "dup@example.com")

    response = client.post(
        "/api/auth/register",
        json={"email": "dup@example.com", "password": "password123", "role": "company"},
    )

    assert response.status_code == 400


def test_registration_racing_on_unique_email_is_a_conflict(client, db, monkeypatch):
    register(client, "student", "race@example.com")
    users = db[COLLECTIONS["users"]]

    class LateCheckUsers:
        """The duplicate slips past the lookup and hits the unique index."""

        def find_one(self, *_):
            return None

        def insert_one(self, doc):
            return users.insert_one(doc)

    monkeypatch.setattr(auth_routes, "get_collection", lambda name: LateCheckUsers())

    response = client.post(
        "/api/auth/register",
        json={"email": "race@example.com", "password": "password123", "role": "student"},
    )

    assert response.status_code == 409
    assert response.json() == {"detail": "Email already registered", "success": False}
    assert users.count_documents({"email": "race@example.com"}) == 1


def test_admin_cannot_self_register(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "boss@example.com", "password": "password123", "role": "admin"},
    )

    assert response.status_code == 403


def test_wrong_password_is_unauthorized(client):
    register(client, "student", "s@example.com")

    response = client.post("/api/auth/login", json={"email": "s@example.com", "password": "nope-nope"})

    assert response.status_code == 401


def test_role_guard(client):
    headers = register(client, "student", "student@example.com")

    assert client.get("/api/admin/settings", headers=headers).status_code == 403
    assert client.get("/api/companies/profile", headers=headers).status_code == 403
    assert client.get("/api/admin/settings").status_code in (401, 403)


def test_suspended_user_is_blocked(client, db):
    headers = register(client, "student", "gone@example.com")
    db[COLLECTIONS["users"]].update_one({"email": "gone@example.com"}, {"$set": {"status": "suspended"}})

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Account deactivated"


def test_admin_adds_institution_and_logs_activity(client, db):
    headers = auth_headers(client, *ADMIN)

    response = client.post(
        "/api/admin/institutions",
        json={"name": "Limkokwing University", "location": "Maseru"},
        headers=headers,
    )

    assert response.status_code == 201
    assert response.json()["status"] == "active"
    assert db[COLLECTIONS["institutions"]].count_documents({}) == 1
    activities = client.get("/api/admin/activities", headers=headers).json()
    assert [a["type"] for a in activities] == ["institution_added"]


def test_missing_company_is_not_found(client):
    headers = auth_headers(client, *ADMIN)

    response = client.post("/api/admin/companies/missing/approve", headers=headers)

    assert response.status_code == 404
    assert response.json() == {"detail": "Company not found", "success": False}


def test_company_posts_job_and_student_applies(client):
    company = register(client, "company", "hr@example.com", organization_name="Acme Mining")
    student = register(client, "student", "thabo@example.com", full_name="Thabo")

    created = client.post(
        "/api/companies/jobs",
        json={"title": "Graduate Engineer", "job_type": "full-time", "location": "Maseru"},
        headers=company,
    )
    assert created.status_code == 201
    job = created.json()
    assert job["company_name"] == "Acme Mining"

    applied = client.post(f"/api/students/jobs/{job['id']}/apply", json={"cover_letter": "Hi"}, headers=student)
    assert applied.status_code == 201
    assert applied.json()["status"] == "pending"

    again = client.post(f"/api/students/jobs/{job['id']}/apply", json={}, headers=student)
    assert again.status_code == 409

    assert client.get(f"/api/jobs/{job['id']}").json()["applicants_count"] == 1
    applications = client.get("/api/companies/applications", headers=company).json()
    assert [a["job_id"] for a in applications] == [job["id"]]


def test_job_board_filters(client):
    company = register(client, "company", "jobs@example.com", organization_name="Vodacom")
    for title, job_type, location in [
        ("Network Engineer", "full-time", "Maseru"),
        ("Data Intern", "internship", "Leribe"),
        ("Support Analyst", "full-time", "Mafeteng"),
    ]:
        client.post(
            "/api/companies/jobs",
            json={"title": title, "job_type": job_type, "location": location},
            headers=company,
        )

    assert len(client.get("/api/jobs").json()) == 3
    assert [j["title"] for j in client.get("/api/jobs", params={"type": "Internship"}).json()] == ["Data Intern"]
    assert [j["title"] for j in client.get("/api/jobs", params={"location": "mase"}).json()] == ["Network Engineer"]
    assert [j["title"] for j in client.get("/api/jobs", params={"search": "vodacom"}).json()] != []
    assert client.get("/api/jobs/types").json() == ["full-time", "internship"]


def test_public_companies_lists_only_approved(client):
    register(client, "company", "pending@example.com", organization_name="Pending Co")

    assert client.get("/api/public/companies").json() == []


def test_resume_upload_is_served_back_from_gridfs(client):
    student = register(client, "student", "cv@example.com", full_name="Palesa")
    content = b"%PDF-1.4 curriculum vitae"

    uploaded = client.post(
        "/api/students/resume",
        files={"file": ("palesa cv.pdf", content, "application/pdf")},
        headers=student,
    )
    assert uploaded.status_code == 201, uploaded.text
    stored = uploaded.json()
    assert stored["storage_type"] == "gridfs"

    served = client.get(stored["url"])
    assert served.status_code == 200
    assert served.content == content
    assert served.headers["content-type"] == "application/pdf"

    profile = client.get("/api/students/profile", headers=student).json()
    assert profile["resume_url"] == stored["url"]

    replacement = client.post(
        "/api/students/resume",
        files={"file": ("cv2.pdf", b"%PDF-1.4 v2", "application/pdf")},
        headers=student,
    ).json()
    assert client.get(replacement["url"]).content == b"%PDF-1.4 v2"
    assert client.get(stored["url"]).status_code == 404


def test_resume_upload_rejects_other_types(client):
    student = register(client, "student", "img@example.com")

    response = client.post(
        "/api/students/resume",
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
        headers=student,
    )

    assert response.status_code == 400
