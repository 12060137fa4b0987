# worldgrid/routes/auth.py
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from worldgrid.config import SESSION_HOURS
from worldgrid.database import get_db, utcnow
from worldgrid.game import ledger
from worldgrid.models.session import SessionToken
from worldgrid.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()
router = APIRouter(prefix="/auth", tags=["auth"])

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=32)
    password: str = Field(min_length=8, max_length=128)
    avatar: str | None = Field(default=None, max_length=255)


class RegisterResponse(BaseModel):
    user_id: int
    username: str
    resources: dict


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: str


class MeResponse(BaseModel):
    user_id: int
    username: str
    avatar: str | None
    resources: dict


def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    token = creds.credentials

    sess = db.query(SessionToken).filter(SessionToken.token == token).first()
    if not sess:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if sess.expires_at <= utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")

    user = db.get(User, sess.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session user")

    return user


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    existing = db.query(User).filter(User.username == payload.username).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    user = User(
        username=payload.username,
        password_hash=pwd_context.hash(payload.password),
        avatar=payload.avatar,
    )
    db.add(user)
    db.flush()

    # Starting wallet
    wallet = ledger.get_resources(db, user.id)

    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (#%s)", user.username, user.id)

    return RegisterResponse(
        user_id=user.id,
        username=user.username,
        resources=wallet.to_dict(),
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    user = db.query(User).filter(User.username == payload.username).first()
    if not user or not pwd_context.verify(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    token = secrets.token_hex(32)
    expires_at = utcnow() + timedelta(hours=SESSION_HOURS)

    sess = SessionToken(
        user_id=user.id,
        token=token,
        created_at=utcnow(),
        expires_at=expires_at,
    )
    db.add(sess)
    db.commit()

    return LoginResponse(token=token, expires_at=expires_at.isoformat())


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> MeResponse:
    wallet = ledger.get_resources(db, current_user.id)
    db.commit()
    return MeResponse(
        user_id=current_user.id,
        username=current_user.username,
        avatar=current_user.avatar,
        resources=wallet.to_dict(),
    )
