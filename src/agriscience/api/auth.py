"""Auth API — registration, login, profile.

Learn: Routes for the user account lifecycle:
- POST /auth/register → create a user, returns {token, user}
- POST /auth/login → email/password → {token, user}
- GET /auth/me → current user
- PUT /auth/me → update names / linked agronomist

The password hash never leaves the store: every response goes through
UserRead, which simply has no such field.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from agriscience.auth.dependencies import get_current_user_record
from agriscience.auth.jwt import create_access_token
from agriscience.auth.password import hash_password, verify_password
from agriscience.dependencies import get_storage
from agriscience.errors import ConflictError, UnauthorizedError
from agriscience.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    User,
    UserCreate,
    UserRead,
)
from agriscience.storage.base import Storage

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id),
        user=UserRead.model_validate(user.model_dump()),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, storage: Storage = Depends(get_storage)):
    """Create a new user account and sign it in."""
    if await storage.get_user_by_email(body.email):
        raise ConflictError("Email already registered")

    user = await storage.create_user(
        UserCreate(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password),
            first_name=body.first_name,
            last_name=body.last_name,
            role=body.role,
            linked_agronomist_id=body.linked_agronomist_id,
        )
    )
    logger.info("auth.registered", user_id=user.id, role=user.role)
    return _auth_response(user)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, storage: Storage = Depends(get_storage)):
    """Login with email and password → JWT."""
    user = await storage.get_user_by_email(body.email)
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("auth.login_failed")
        raise UnauthorizedError("Invalid credentials")

    return _auth_response(user)


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(user: User = Depends(get_current_user_record)):
    return UserRead.model_validate(user.model_dump())


@router.put("/me", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    user: User = Depends(get_current_user_record),
    storage: Storage = Depends(get_storage),
):
    """Update the caller's profile. Only fields present in the body change."""
    updated = await storage.update_user(user.id, body.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return UserRead.model_validate(updated.model_dump())
