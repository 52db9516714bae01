from typing import Optional, List, Literal
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class AdminCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    fname: str
    lname: Optional[str] = None
    role: Literal["super_admin", "admin"] = "admin"
    department: Optional[str] = None
    permissions: List[str] = []


class AdminUser(BaseModel):
    id: str
    display_id: Optional[str] = None
    email: str
    fname: Optional[str] = None
    lname: Optional[str] = None
    full_name: str
    role: str
    department: Optional[str] = None
    permissions: List[str] = []
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class IdDisplay(BaseModel):
    text: str
    type: Literal["admin", "pharmacy", "unknown"]
