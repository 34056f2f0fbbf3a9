"""
Public Directory Routes

GET /public/institutions, /public/institutions/{id}
GET /public/courses, /public/courses/institution/{id}
GET /public/companies (approved only), /public/companies/{id}
GET /files/{file_id} - Download a file kept in GridFS
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from careerconnect.db.documents import serialize_doc, serialize_docs
from careerconnect.db.mongodb import get_collection, COLLECTIONS
from careerconnect.services.storage_service import get_storage_service
from careerconnect.services.student_service import get_student_service

router = APIRouter(tags=["Public"])

COMPANY_PUBLIC_FIELDS = {
    "company_name": 1, "industry": 1, "location": 1, "description": 1, "website": 1,
    "employees": 1, "logo": 1, "cover_image": 1, "benefits": 1, "tech_stack": 1, "social_links": 1,
}


@router.get("/public/institutions")
async def list_institutions():
    return get_student_service().get_institutions()


@router.get("/public/institutions/{institution_id}")
async def get_institution(institution_id: str):
    doc = get_collection(COLLECTIONS["institutions"]).find_one({"_id": institution_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Institution not found")
    return serialize_doc(doc)


@router.get("/public/courses")
async def list_courses():
    return get_student_service().get_courses()


@router.get("/public/courses/institution/{institution_id}")
async def list_institution_courses(institution_id: str):
    return get_student_service().get_courses(institution_id)


@router.get("/public/companies")
async def list_companies():
    docs = get_collection(COLLECTIONS["companies"]).find({"status": "approved"}, COMPANY_PUBLIC_FIELDS)
    return serialize_docs(docs)


@router.get("/public/companies/{company_id}")
async def get_company(company_id: str):
    doc = get_collection(COLLECTIONS["companies"]).find_one(
        {"_id": company_id, "status": "approved"}, COMPANY_PUBLIC_FIELDS
    )
    if not doc:
        raise HTTPException(status_code=404, detail="Company not found")
    return serialize_doc(doc)


@router.get("/files/{file_id}")
async def download_file(file_id: str):
    stored = get_storage_service().get_file(file_id)
    name = stored.filename.rsplit("/", 1)[-1] if stored.filename else file_id
    return Response(
        content=stored.read(),
        media_type=stored.content_type or "application/octet-stream",
        headers={"Content-Disposition": f'inline; filename="{name}"'},
    )
