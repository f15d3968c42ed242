# app/schemas/user_schemas.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserLogin(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: str
    role: str


class UserOut(BaseModel):
    id: int
    username: str
    role: str
    is_active: bool
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    msg: str


class UserResponse(BaseModel):
    msg: str
    data: Optional[UserOut] = None
