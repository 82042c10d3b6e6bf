# app/core/security.py
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.permissions import ADMIN_ONLY, Policy, Principal, authorize
from app.core.timeutils import utcnow
from app.db.base import get_db
from app.db.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    payload = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRE_MINUTES
    payload["exp"] = utcnow() + timedelta(minutes=minutes)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise _credentials_error("Not authenticated")

    try:
        payload = jwt.decode(
            credentials.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise _credentials_error("Invalid or expired token")

    email = payload.get("sub")
    if not email:
        raise _credentials_error("Invalid token structure")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise _credentials_error("User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is not active")

    return user


def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    return Principal(id=current_user.id, roles=frozenset({current_user.role}))


def require_policy(policy: Policy):
    """Route dependency that enforces a role-only policy before the handler runs."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        authorize(policy, principal)
        return principal

    return dependency


require_admin = require_policy(ADMIN_ONLY)
