from typing import Optional
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = None
    pharmacy_name: Optional[str] = None


class SignUpResponse(BaseModel):
    account_id: str
    email: EmailStr
    confirmation_required: bool = True
    # Returned directly because outbound email is not part of this service
    confirmation_token: Optional[str] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class EmailConfirmation(BaseModel):
    token: str


class Token(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    is_admin: Optional[bool] = False
    type: Optional[str] = "access"


class Account(BaseModel):
    id: str
    email: EmailStr
    email_confirmed_at: Optional[datetime] = None
    user_metadata: dict = {}
    created_at: datetime

    class Config:
        from_attributes = True
