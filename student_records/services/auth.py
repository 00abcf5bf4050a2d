import logging

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from student_records.core.database import get_db
from student_records.core.errors import Conflict, Forbidden, NotFound, Unauthorized
from student_records.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from student_records.models.user import User, UserRole
from student_records.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserOut

logger = logging.getLogger(__name__)

_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _issue_tokens(user: User) -> TokenResponse:
    role = user.role.value
    return TokenResponse(
        access_token=create_access_token(user.id, user.email, role),
        refresh_token=create_refresh_token(user.id, user.email, role),
        user=UserOut.model_validate(user),
    )


def register_user(db: Session, payload: RegisterRequest) -> TokenResponse:
    if db.query(User).filter(User.email == payload.email).first():
        raise Conflict("User with this email already exists.")
    user = User(
        email=payload.email,
        hashed_password=hash_password(payload.password),
        role=payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, user.role.value)
    return _issue_tokens(user)


def login_user(db: Session, payload: LoginRequest) -> TokenResponse:
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise Unauthorized("Invalid email or password.")
    return _issue_tokens(user)


def refresh_tokens(db: Session, refresh_token: str) -> TokenResponse:
    user_id = decode_refresh_token(refresh_token)
    if user_id is None:
        raise Unauthorized("Invalid refresh token.")
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return _issue_tokens(user)


def get_current_user(
    token: str | None = Depends(_oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise Unauthorized("Access token is required.")
    user_id = decode_access_token(token)
    if user_id is None:
        raise Unauthorized("Invalid or expired token.")
    user = db.get(User, user_id)
    if user is None:
        raise Unauthorized("User not found.")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory restricting a route to the given roles."""

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if roles and current_user.role not in roles:
            raise Forbidden("Insufficient permissions.")
        return current_user

    return checker
