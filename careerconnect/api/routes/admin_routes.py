"""
Admin Routes (admin role required)

GET/PUT /admin/settings, POST /admin/settings/reset
GET /admin/companies?status=, GET/DELETE /admin/companies/{id}
POST /admin/companies/{id}/approve|suspend|activate|reject
CRUD /admin/institutions, /admin/faculties, /admin/admissions
PUT /admin/admissions/{id}/status
GET /admin/users?role=, GET /admin/users/{id}, PUT /admin/users/{id}/status|role
GET/POST /admin/notifications, PUT /admin/notifications/{id}/read, DELETE /admin/notifications/{id}
GET /admin/activities
GET /admin/analytics/*, /admin/diagnostics, /admin/reports/system
POST /admin/maintenance/cleanup, /admin/maintenance/backup
GET /admin/stream/{channel} - live snapshots (server-sent events)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from careerconnect.api.streams import snapshot_stream
from careerconnect.core.auth import get_current_admin
from careerconnect.services.admin_service import get_admin_service
from careerconnect.schemas.schemas import (
    SettingsUpdate, ReasonRequest, InstitutionCreate, InstitutionUpdate,
    FacultyCreate, FacultyUpdate, AdmissionCreate, AdmissionUpdate, AdmissionStatusUpdate,
    UserStatusUpdate, UserRoleUpdate, NotificationCreate, CompanyStatus,
    MessageResponse, to_document,
)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_current_admin)])


# ============================================================
# SETTINGS
# ============================================================

@router.get("/settings")
async def get_settings():
    return get_admin_service().get_settings()


@router.put("/settings")
async def update_settings(data: SettingsUpdate, admin: dict = Depends(get_current_admin)):
    return get_admin_service().update_settings(to_document(data, partial=True), updated_by=admin["email"])


@router.post("/settings/reset")
async def reset_settings(admin: dict = Depends(get_current_admin)):
    return get_admin_service().reset_settings(updated_by=admin["email"])


# ============================================================
# COMPANIES
# ============================================================

@router.get("/companies")
async def list_companies(status: Optional[CompanyStatus] = None):
    service = get_admin_service()
    if status:
        return service.get_companies_by_status(status.value)
    return service.get_all_companies()


@router.get("/companies/{company_id}")
async def get_company(company_id: str):
    company = get_admin_service().get_company_by_id(company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.post("/companies/{company_id}/approve")
async def approve_company(company_id: str):
    return get_admin_service().approve_company(company_id)


@router.post("/companies/{company_id}/suspend")
async def suspend_company(company_id: str, data: ReasonRequest):
    return get_admin_service().suspend_company(company_id, data.reason)


@router.post("/companies/{company_id}/activate")
async def activate_company(company_id: str):
    return get_admin_service().activate_company(company_id)


@router.post("/companies/{company_id}/reject")
async def reject_company(company_id: str, data: ReasonRequest):
    return get_admin_service().reject_company(company_id, data.reason)


@router.delete("/companies/{company_id}", response_model=MessageResponse)
async def delete_company(company_id: str):
    get_admin_service().delete_company(company_id)
    return MessageResponse(message="Company deleted")


# ============================================================
# INSTITUTIONS
# ============================================================

@router.get("/institutions")
async def list_institutions():
    return get_admin_service().get_all_institutions()


@router.post("/institutions", status_code=201)
async def add_institution(data: InstitutionCreate):
    return get_admin_service().add_institution(to_document(data))


@router.get("/institutions/{institution_id}")
async def get_institution(institution_id: str):
    return get_admin_service().get_institution_by_id(institution_id)


@router.put("/institutions/{institution_id}")
async def update_institution(institution_id: str, data: InstitutionUpdate):
    return get_admin_service().update_institution(institution_id, to_document(data, partial=True))


@router.delete("/institutions/{institution_id}", response_model=MessageResponse)
async def delete_institution(institution_id: str):
    get_admin_service().delete_institution(institution_id)
    return MessageResponse(message="Institution deleted")


# ============================================================
# FACULTIES
# ============================================================

@router.get("/faculties")
async def list_faculties():
    return get_admin_service().get_all_faculties()


@router.post("/faculties", status_code=201)
async def add_faculty(data: FacultyCreate):
    return get_admin_service().add_faculty(to_document(data))


@router.get("/faculties/{faculty_id}")
async def get_faculty(faculty_id: str):
    return get_admin_service().get_faculty_by_id(faculty_id)


@router.put("/faculties/{faculty_id}")
async def update_faculty(faculty_id: str, data: FacultyUpdate):
    return get_admin_service().update_faculty(faculty_id, to_document(data, partial=True))


@router.delete("/faculties/{faculty_id}", response_model=MessageResponse)
async def delete_faculty(faculty_id: str):
    get_admin_service().delete_faculty(faculty_id)
    return MessageResponse(message="Faculty deleted")


# ============================================================
# ADMISSIONS
# ============================================================

@router.get("/admissions")
async def list_admissions():
    return get_admin_service().get_all_admissions()


@router.post("/admissions", status_code=201)
async def add_admission(data: AdmissionCreate):
    return get_admin_service().add_admission(to_document(data))


@router.get("/admissions/{admission_id}")
async def get_admission(admission_id: str):
    return get_admin_service().get_admission_by_id(admission_id)


@router.put("/admissions/{admission_id}")
async def update_admission(admission_id: str, data: AdmissionUpdate):
    return get_admin_service().update_admission(admission_id, to_document(data, partial=True))


@router.put("/admissions/{admission_id}/status")
async def update_admission_status(admission_id: str, data: AdmissionStatusUpdate):
    return get_admin_service().update_admission_status(admission_id, data.status.value)


@router.delete("/admissions/{admission_id}", response_model=MessageResponse)
async def delete_admission(admission_id: str):
    get_admin_service().delete_admission(admission_id)
    return MessageResponse(message="Admission deleted")


# ============================================================
# USERS
# ============================================================

@router.get("/users")
async def list_users(role: Optional[str] = None):
    service = get_admin_service()
    if role:
        return service.get_users_by_role(role)
    return service.get_all_users()


@router.get("/users/{user_id}")
async def get_user(user_id: str):
    return get_admin_service().get_user_by_id(user_id)


@router.put("/users/{user_id}/status")
async def update_user_status(user_id: str, data: UserStatusUpdate):
    return get_admin_service().update_user_status(user_id, data.status.value)


@router.put("/users/{user_id}/role")
async def update_user_role(user_id: str, data: UserRoleUpdate):
    return get_admin_service().update_user_role(user_id, data.role)


# ============================================================
# NOTIFICATIONS / ACTIVITIES
# ============================================================

@router.get("/notifications")
async def list_notifications(limit: int = Query(0, ge=0, le=500)):
    return get_admin_service().get_admin_notifications(limit=limit)


@router.post("/notifications", status_code=201)
async def create_notification(data: NotificationCreate):
    return get_admin_service().create_notification(to_document(data))


@router.put("/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(notification_id: str):
    get_admin_service().mark_notification_as_read(notification_id)
    return MessageResponse(message="Notification marked as read")


@router.delete("/notifications/{notification_id}", response_model=MessageResponse)
async def delete_notification(notification_id: str):
    get_admin_service().delete_notification(notification_id)
    return MessageResponse(message="Notification deleted")


@router.get("/activities")
async def list_activities(limit: int = Query(50, ge=1, le=500)):
    return get_admin_service().get_recent_activities(limit=limit)


# ============================================================
# ANALYTICS / DIAGNOSTICS / REPORTS
# ============================================================

@router.get("/analytics/dashboard")
async def dashboard_stats():
    return get_admin_service().get_dashboard_stats()


@router.get("/analytics/registration-trends")
async def registration_trends():
    return get_admin_service().get_registration_trends()


@router.get("/analytics/admissions")
async def admission_statistics():
    return get_admin_service().get_admission_statistics()


@router.get("/analytics/user-growth")
async def user_growth(months: int = Query(6, ge=1, le=24)):
    return get_admin_service().get_user_growth_data(months=months)


@router.get("/analytics/companies")
async def company_statistics():
    return get_admin_service().get_company_statistics()


@router.get("/analytics/system-health")
async def system_health():
    return get_admin_service().get_system_health()


@router.get("/diagnostics")
async def diagnostics():
    return get_admin_service().run_system_diagnostics()


@router.get("/reports/system")
async def system_report():
    return get_admin_service().build_system_report()


# ============================================================
# MAINTENANCE
# ============================================================

@router.post("/maintenance/cleanup")
async def cleanup(days_old: int = Query(30, ge=1)):
    return get_admin_service().cleanup_old_data(days_old=days_old)


@router.post("/maintenance/backup", status_code=201)
async def backup(admin: dict = Depends(get_current_admin)):
    return get_admin_service().backup_data(created_by=admin["email"])


# ============================================================
# LIVE STREAMS
# ============================================================

STREAM_CHANNELS = {
    "activities": lambda service: service.subscribe_to_activities,
    "pending-companies": lambda service: service.subscribe_to_pending_companies,
    "new-companies": lambda service: service.subscribe_to_new_companies,
    "notifications": lambda service: service.subscribe_to_admin_notifications,
    "users": lambda service: service.subscribe_to_users,
    "settings": lambda service: service.subscribe_to_settings,
}


@router.get("/stream/{channel}")
async def stream(channel: str, request: Request):
    """Live snapshots of an admin feed as server-sent events."""
    if channel not in STREAM_CHANNELS:
        raise HTTPException(status_code=404, detail=f"Unknown stream channel '{channel}'")
    start = STREAM_CHANNELS[channel](get_admin_service())
    return snapshot_stream(request, channel, start)
