import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.core.security import create_access_token, hash_password, verify_password
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.user import LoginRequest, TokenResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: Session = Depends(get_db)):
    email = user.email.lower()
    existing = db.query(User).filter(func.lower(User.email) == email).first()
    if existing:
        raise ConflictError("Email already registered")

    new_user = User(
        email=email,
        name=user.name,
        password_hash=hash_password(user.password),
        role=user.role,
        phone=user.phone,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info("Registered %s user %s", new_user.role, new_user.id)
    return new_user


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is not active")

    token = create_access_token({"sub": user.email})

    return TokenResponse(access_token=token)
