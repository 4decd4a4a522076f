"""Agent registration and JWT login"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from tourquote.schemas.auth import LoginIn, TokenOut
from tourquote.models.user import User
from tourquote.db.session import get_db
from tourquote.core.security import create_access_token, hash_password, verify_password
from tourquote.core.enums import UserRole
from tourquote.core.audit_log import log_login

router = APIRouter(prefix="/auth", tags=["auth"])


async def _find_user(db: AsyncSession, username: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.username == username))
    return res.scalars().first()


async def _issue_token(db: AsyncSession, user: User) -> TokenOut:
    await log_login(db, int(user.id), user.username)
    await db.commit()
    return TokenOut(access_token=create_access_token(str(user.id), user.role))


@router.post("/register", response_model=TokenOut, status_code=201)
async def register(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    if await _find_user(db, payload.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    # self-registered accounts are agents; admins come from create_admin.py
    user = User(username=payload.username, password_hash=hash_password(payload.password), role=UserRole.AGENT)
    db.add(user)
    await db.flush()
    return await _issue_token(db, user)


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    user = await _find_user(db, form_data.username)
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await _issue_token(db, user)
