"""
Authentication Routes
FastAPI routes for restaurant owner authentication

Owners are persisted in the database; bearer tokens live in memory only and
are lost on restart.
"""

import hashlib
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, Field
from loguru import logger

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.repository import OwnerRepository


# Token store (in-memory, tokens are transient)
_tokens_db = {}


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6)
    name: Optional[str] = None


class OwnerResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    owner: OwnerResponse


security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Simple password hashing for demo."""
    return hashlib.sha256(password.encode()).hexdigest()


def generate_token() -> str:
    """Generate a simple token."""
    return f"qrm_{uuid.uuid4().hex}"


def issue_token(owner_id: str) -> str:
    token = generate_token()
    _tokens_db[token] = owner_id
    return token


def require_auth(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """Require authentication; returns the owner as a dict."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    owner_id = _tokens_db.get(credentials.credentials)
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    db_manager = DatabaseManager.get_instance()
    with db_manager.session_scope() as db:
        owner = OwnerRepository(db).get(owner_id)
        if not owner or not owner.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Owner not found",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return owner.to_dict()


def create_auth_router() -> APIRouter:
    """Create authentication router."""

    router = APIRouter(prefix="/api/auth", tags=["Authentication"])

    @router.post("/register", response_model=LoginResponse)
    async def register(request: RegisterRequest):
        """Register an owner account and log it in."""
        db_manager = DatabaseManager.get_instance()

        with db_manager.session_scope() as db:
            owner_repo = OwnerRepository(db)

            if owner_repo.get_by_email(request.email):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Email already registered",
                )

            owner = owner_repo.create(
                email=request.email,
                password_hash=hash_password(request.password),
                name=request.name,
            )
            owner_dict = owner.to_dict()

        logger.info(f"Registered owner: {owner_dict['email']} (id={owner_dict['id']})")

        return LoginResponse(
            token=issue_token(owner_dict["id"]),
            owner=OwnerResponse(**owner_dict),
        )

    @router.post("/login", response_model=LoginResponse)
    async def login(request: LoginRequest):
        db_manager = DatabaseManager.get_instance()

        with db_manager.session_scope() as db:
            owner = OwnerRepository(db).get_by_email(request.email)
            if (
                owner is None
                or not owner.is_active
                or owner.password_hash != hash_password(request.password)
            ):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid email or password",
                )
            owner_dict = owner.to_dict()

        logger.info(f"Owner logged in: {owner_dict['email']}")

        return LoginResponse(
            token=issue_token(owner_dict["id"]),
            owner=OwnerResponse(**owner_dict),
        )

    @router.post("/logout")
    async def logout(owner: dict = Depends(require_auth)):
        tokens_to_remove = [
            token for token, oid in _tokens_db.items()
            if oid == owner["id"]
        ]
        for token in tokens_to_remove:
            del _tokens_db[token]

        return {"status": "logged_out"}

    @router.get("/me", response_model=OwnerResponse)
    async def get_current_owner(owner: dict = Depends(require_auth)):
        return OwnerResponse(**owner)

    return router
