"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes (one per role)
- Seeding of the configured admin account
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from careerconnect.core.config import get_settings
from careerconnect.core.logging import bind_user_context, get_logger
from careerconnect.db.documents import new_id, utcnow
from careerconnect.db.mongodb import get_collection, COLLECTIONS

settings = get_settings()
logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()

BLOCKED_STATUSES = {"suspended", "inactive"}


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def public_user(doc: dict) -> dict:
    """User document without the password hash, `_id` exposed as user_id."""
    return {
        "user_id": str(doc["_id"]),
        "email": doc.get("email"),
        "role": doc.get("role"),
        "status": doc.get("status", "active"),
        "full_name": doc.get("full_name", ""),
        "phone": doc.get("phone", ""),
        "created_at": doc.get("created_at"),
    }


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    doc = get_collection(COLLECTIONS["users"]).find_one({"_id": user_id})
    if not doc:
        raise credentials_exception

    if doc.get("status", "active") in BLOCKED_STATUSES:
        raise HTTPException(status_code=403, detail="Account deactivated")

    user = public_user(doc)
    bind_user_context(user)
    return user


def _require_role(user: dict, *roles: str, label: str) -> dict:
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail=f"{label} only")
    return user


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role."""
    return _require_role(user, "student", label="Students")


async def get_current_company(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require company role."""
    return _require_role(user, "company", label="Companies")


async def get_current_institution(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require institution role."""
    return _require_role(user, "institution", label="Institutions")


async def get_current_admin(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require admin role."""
    return _require_role(user, "admin", "super-admin", label="Admins")


def seed_admin_user() -> Optional[str]:
    """Create the configured admin account if it does not exist yet."""
    if not (settings.admin_email and settings.admin_password):
        return None

    users = get_collection(COLLECTIONS["users"])
    existing = users.find_one({"email": settings.admin_email.lower()})
    if existing:
        return str(existing["_id"])

    user_id = new_id()
    users.insert_one({
        "_id": user_id,
        "email": settings.admin_email.lower(),
        "password_hash": hash_password(settings.admin_password),
        "role": "admin",
        "status": "active",
        "full_name": "Administrator",
        "created_at": utcnow(),
    })
    logger.info("admin_user_seeded", user_id=user_id, email=settings.admin_email)
    return user_id
