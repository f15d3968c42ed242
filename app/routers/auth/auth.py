# app/routers/auth/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.user_schemas import UserLogin, TokenResponse, MessageResponse, UserResponse, UserOut
from app.services.auth_services.auth_service import authenticate_user, issue_access_token, logout_user
from app.utils.get_user import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, data.username, data.password)
    access_token = await issue_access_token(db, user)
    return TokenResponse(access_token=access_token, username=user.username, role=user.role)


@router.post("/logout", response_model=MessageResponse)
async def logout(db: AsyncSession = Depends(get_db), current_user=Depends(get_current_user)):
    """
    Invalidates every token issued to the user so far.
    """
    return await logout_user(db, current_user)


@router.get("/me", response_model=UserResponse)
async def me(current_user=Depends(get_current_user)):
    return UserResponse(msg="Current user", data=UserOut.model_validate(current_user))
