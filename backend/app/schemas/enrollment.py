"""Enrollment schemas: the declarative validation rules and the API payloads."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from backend.app.core.settings import get_settings

RELATIONSHIP_OPTIONS = ("Parent", "Guardian", "Other")


def _min_length(length: int, message: str, strip: bool = True):
    def check(value: str) -> str:
        if len(value.strip() if strip else value) < length:
            raise PydanticCustomError("min_length", message)
        return value

    return AfterValidator(check)


def _one_of(options: tuple[str, ...]):
    def check(value: str) -> str:
        if value not in options:
            raise PydanticCustomError("enum", "Must be one of: {options}", {"options": ", ".join(options)})
        return value

    return AfterValidator(check)


def _optional_email(value: str) -> str:
    if not value:
        return value
    try:
        validate_email(value)
    except PydanticCustomError:
        raise PydanticCustomError("email", "Invalid email") from None
    return value


def _required_date(value: Optional[date]) -> date:
    if value is None:
        raise PydanticCustomError("required", "Date of birth is required")
    return value


class GuardianSchema(BaseModel):
    model_config = ConfigDict(validate_default=True)

    id: str = ""
    full_name: Annotated[str, _min_length(1, "Full name is required")] = ""
    phone_number: Annotated[str, _min_length(10, "Valid phone number is required", strip=False)] = ""
    email: Annotated[str, AfterValidator(_optional_email)] = ""
    relationship: Annotated[str, _one_of(RELATIONSHIP_OPTIONS)] = "Parent"
    is_primary: bool = False
    profile_image: Optional[str] = None


def _guardian_bounds(guardians: list[GuardianSchema]) -> list[GuardianSchema]:
    settings = get_settings()
    if not guardians:
        raise PydanticCustomError("too_short", "At least one guardian is required")
    if len(guardians) > settings.max_guardians:
        raise PydanticCustomError(
            "too_long", "Maximum {limit} guardians allowed.", {"limit": settings.max_guardians}
        )
    if sum(1 for g in guardians if g.is_primary) > settings.max_primary_guardians:
        raise PydanticCustomError(
            "too_many_primary",
            "Maximum {limit} primary guardians allowed.",
            {"limit": settings.max_primary_guardians},
        )
    return guardians


class StudentEnrollmentSchema(BaseModel):
    """Every rule a complete enrollment must satisfy, keyed by field name."""

    model_config = ConfigDict(validate_default=True)

    full_name: Annotated[str, _min_length(1, "Full name is required")] = ""
    class_name: Annotated[str, _min_length(1, "Class is required")] = ""
    student_id: Optional[str] = None
    date_of_birth: Annotated[Optional[date], AfterValidator(_required_date)] = None
    profile_image: Optional[str] = None
    guardians: Annotated[list[GuardianSchema], AfterValidator(_guardian_bounds)] = []


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ValidationResult(BaseModel):
    valid: bool
    errors: dict[str, str] = {}


# Form drafts: whatever the admin has typed so far, valid or not.


class GuardianDraft(BaseModel):
    id: str
    full_name: str = ""
    phone_number: str = ""
    email: str = ""
    relationship: str = "Parent"
    is_primary: bool = False
    profile_image: Optional[str] = None


class StudentDraft(BaseModel):
    full_name: str = ""
    class_name: str = ""
    student_id: str = ""
    date_of_birth: Optional[date] = None
    profile_image: Optional[str] = None


class StudentDraftUpdate(BaseModel):
    full_name: Optional[str] = None
    class_name: Optional[str] = None
    student_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_image: Optional[str] = None


class GuardianDraftUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None
    profile_image: Optional[str] = None


class EnrollmentStepRead(BaseModel):
    index: int
    title: str
    fields: list[str]


class EnrollmentFormRead(BaseModel):
    id: int
    step_index: int
    step: EnrollmentStepRead
    status: str
    student: StudentDraft
    guardians: list[GuardianDraft]
    last_error: Optional[str] = None
    last_result: Optional[dict] = None


class EnrollmentReview(BaseModel):
    student: StudentDraft
    guardians: list[GuardianDraft]


class ProvisionedGuardianRead(BaseModel):
    index: int
    full_name: str
    login_identifier: str
    account_id: str

    model_config = ConfigDict(from_attributes=True)


class EnrollmentResultRead(BaseModel):
    status: SubmissionStatus
    student_name: str
    student_id: str
    student_document_id: str
    completed_at: datetime
    guardians: list[ProvisionedGuardianRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
