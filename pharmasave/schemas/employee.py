from typing import Literal, Optional
from datetime import datetime

from pydantic import BaseModel, EmailStr

Role = Literal["primary_admin", "co_admin", "staff_pharmacist"]
InvitableRole = Literal["co_admin", "staff_pharmacist"]


class InvitationCreate(BaseModel):
    email: EmailStr
    role: InvitableRole = "staff_pharmacist"


class Invitation(BaseModel):
    id: str
    pharmacy_id: str
    email: str
    role: str
    status: str
    expires_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationSent(BaseModel):
    invitation: Invitation
    invitation_token: str
    registration_link: str


class InvitationDetails(BaseModel):
    email: str
    role: str
    pharmacy_name: str
    expires_at: datetime


class InvitationAccept(BaseModel):
    first_name: str
    last_name: str
    password: str
    confirm_password: str
    phone: Optional[str] = None


class EmployeeRoleUpdate(BaseModel):
    role: Role
