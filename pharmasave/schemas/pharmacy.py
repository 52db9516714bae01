from typing import Optional, List
from datetime import date, datetime

from pydantic import BaseModel, EmailStr


class PharmacyBase(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    addr: Optional[str] = None
    city: Optional[str] = None
    license_num: Optional[str] = None
    registration_number: Optional[str] = None
    license_expiry: Optional[date] = None
    specializations: Optional[str] = None
    services_offered: Optional[str] = None
    operating_hours: Optional[str] = None
    business_description: Optional[str] = None


class PharmacyUpdate(PharmacyBase):
    pass


class Pharmacy(PharmacyBase):
    id: str
    display_id: Optional[str] = None
    name: str
    verified: bool
    ver_status: str
    marketplace_access: bool
    trial_started_at: Optional[datetime] = None
    trial_expires_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    archive_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class Pharmacist(BaseModel):
    id: str
    pharmacy_id: str
    fname: str
    lname: Optional[str] = None
    email: str
    role: str
    is_primary: bool
    status: str
    can_manage_employees: bool
    can_access_financials: bool
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PharmacistUpdate(BaseModel):
    fname: Optional[str] = None
    lname: Optional[str] = None
    phone: Optional[str] = None
    pharmacist_id_num: Optional[str] = None


class ProfileResponse(BaseModel):
    pharmacy: Pharmacy
    pharmacist: Pharmacist
    already_exists: bool = False
    wallet_created: bool = True
    profile_completion_percent: int = 0


class PharmacyDocument(BaseModel):
    id: str
    pharmacy_id: str
    document_type: str
    file_name: str
    file_url: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    status: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class StorageCleanupResult(BaseModel):
    success: bool
    files_deleted: int = 0
    errors: List[str] = []
