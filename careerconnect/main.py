"""
CareerConnect - Main Application

FastAPI backend with:
- MongoDB for every document (profiles, jobs, applications, admissions)
- GridFS / Cloudinary for uploaded files
- JWT authentication for students, institutions, companies and admins
- Live admin feeds over server-sent events

Run: uvicorn careerconnect.main:app --reload
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from careerconnect import __version__
from careerconnect.api.routes import api_router
from careerconnect.core.auth import seed_admin_user
from careerconnect.core.config import get_settings
from careerconnect.core.errors import register_error_handlers
from careerconnect.core.logging import RequestContextMiddleware, configure_logging, get_logger
from careerconnect.db.mongodb import init_mongo_indexes, test_mongo_connection

logger = get_logger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(service_name=settings.service_name, level=settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title="CareerConnect",
        description="""
        Recruitment and admissions platform.

        ## Roles
        - **Students**: Profile, qualifications, course and job applications, admissions
        - **Institutions**: Faculties, courses, admissions, applicant review
        - **Companies**: Profile, job postings, applicant pipeline, dashboard
        - **Admins**: Moderation, analytics, reports, maintenance, live feeds
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        """Create MongoDB indexes and the seed admin account."""
        if settings.create_indexes_on_startup:
            try:
                init_mongo_indexes()
            except PyMongoError as e:
                logger.warning("mongodb_index_init_failed", error=str(e))
        try:
            seed_admin_user()
        except PyMongoError as e:
            logger.warning("admin_seed_failed", error=str(e))

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "app": "CareerConnect",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Detailed health check."""
        mongodb_ok = test_mongo_connection()
        return {
            "status": "healthy" if mongodb_ok else "degraded",
            "mongodb": "connected" if mongodb_ok else "disconnected",
            "storage": "cloudinary" if settings.cloudinary_enabled else "gridfs",
        }

    return app


app = create_app()
