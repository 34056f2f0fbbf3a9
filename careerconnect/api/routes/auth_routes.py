"""
Authentication Routes

POST /auth/register - Register new user (student, company or institution)
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
"""

from fastapi import APIRouter, HTTPException, Depends
from pymongo.errors import DuplicateKeyError

from careerconnect.core.auth import (
    BLOCKED_STATUSES, hash_password, verify_password, create_access_token, get_current_user
)
from careerconnect.core.errors import ConflictError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import new_id, utcnow
from careerconnect.db.mongodb import get_collection, COLLECTIONS
from careerconnect.services.company_service import get_company_service
from careerconnect.services.institution_service import get_institution_service
from careerconnect.services.student_service import get_student_service
from careerconnect.schemas.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, UserResponse, UserRole, IdResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger(__name__)


def _initialize_role_profile(user_id: str, request: RegisterRequest) -> None:
    email = request.email.lower()
    name = request.organization_name or request.full_name
    if request.role == UserRole.student:
        get_student_service().initialize_student_profile(
            user_id, {"full_name": request.full_name, "email": email, "phone": request.phone}
        )
    elif request.role == UserRole.company:
        get_company_service().create_or_update_company_profile(
            user_id, {"company_name": name, "email": email, "phone": request.phone,
                      "contact_person": request.full_name}
        )
    elif request.role == UserRole.institution:
        data = {"email": email, "phone": request.phone}
        if name:
            data["name"] = name
        get_institution_service().initialize_institution(user_id, data)


@router.post("/register", response_model=IdResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new user account and create its role profile.

    Admin accounts cannot self-register; they are seeded from settings.
    """
    if request.role == UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered")

    users = get_collection(COLLECTIONS["users"])
    email = request.email.lower()
    if users.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered")

    user_id = new_id()
    try:
        users.insert_one({
            "_id": user_id,
            "email": email,
            "password_hash": hash_password(request.password),
            "role": request.role.value,
            "status": "active",
            "full_name": request.full_name,
            "phone": request.phone,
            "created_at": utcnow(),
        })
    except DuplicateKeyError:
        # lost a race with another registration for the same email
        raise ConflictError("Email already registered")
    _initialize_role_profile(user_id, request)
    logger.info("user_registered", user_id=user_id, role=request.role.value)

    return IdResponse(id=user_id, message=f"Registered successfully as {request.role.value}. Please login.")


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user = get_collection(COLLECTIONS["users"]).find_one({"email": request.email.lower()})

    if not user or not verify_password(request.password, user.get("password_hash", "")):
        logger.info("login_failed", email=request.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if user.get("status", "active") in BLOCKED_STATUSES:
        raise HTTPException(status_code=403, detail="Account deactivated")

    token = create_access_token(data={"sub": user["_id"], "role": user["role"]})
    logger.info("login_succeeded", user_id=user["_id"], role=user["role"])

    return TokenResponse(access_token=token, user_id=user["_id"], role=user["role"])


@router.get("/me", response_model=UserResponse)
async def me(user: dict = Depends(get_current_user)):
    """Get the current user's account."""
    return user
