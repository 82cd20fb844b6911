from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer
from app.core.database import get_db
from app.core.security import TokenService
from app.services.auth_service import auth_service
from app.api.dependencies import get_token_service

router = APIRouter(tags=["auth"])


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    # No hashed_password field - the hash never leaves the server
    id: int
    email: str
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_created_at(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


class TokenResponse(BaseModel):
    token: str


@router.post("/signup", response_model=UserResponse)
async def signup(user_data: SignupRequest, db: Session = Depends(get_db)):
    """Register a new user"""
    return auth_service.signup(db, user_data.email, user_data.password)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    """Login and get access token"""
    # Not EmailStr: a malformed address gets the same 401 as an unknown one.
    # The service normalizes it the same way signup does before the lookup
    token = auth_service.login(db, token_service, credentials.email, credentials.password)
    return {"token": token}
