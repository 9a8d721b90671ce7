"""Student directory, ID card and QR scan schemas."""

from typing import Optional

from pydantic import BaseModel


class GuardianRead(BaseModel):
    account_id: str
    full_name: str
    login_identifier: str
    email: str = ""
    phone_number: str = ""
    relationship: str = "Parent"
    is_primary: bool = False
    profile_image: str = ""


class StudentSummary(BaseModel):
    document_id: str
    full_name: str
    class_name: str
    student_id: str
    profile_image: str = ""


class StudentDetail(StudentSummary):
    date_of_birth: Optional[str] = None
    created_at: Optional[str] = None
    guardians: list[GuardianRead] = []


class IdCardGuardian(BaseModel):
    full_name: str
    relationship: str
    profile_image: str = ""


class IdCard(BaseModel):
    student_name: str
    class_name: str
    student_id: str
    profile_image: str = ""
    qr_payload: str
    guardians: list[IdCardGuardian] = []


class ScanRequest(BaseModel):
    data: str
