"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from careerconnect.api.routes.auth_routes import router as auth_router
from careerconnect.api.routes.admin_routes import router as admin_router
from careerconnect.api.routes.company_routes import router as company_router
from careerconnect.api.routes.institution_routes import router as institution_router
from careerconnect.api.routes.student_routes import router as student_router
from careerconnect.api.routes.job_routes import router as job_router
from careerconnect.api.routes.public_routes import router as public_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(company_router)
api_router.include_router(institution_router)
api_router.include_router(student_router)
api_router.include_router(job_router)
api_router.include_router(public_router)
