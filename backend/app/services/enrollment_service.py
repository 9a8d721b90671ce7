"""Enrollment submission: guardian account provisioning plus one atomic document batch.

The student document id is reserved before any account exists so that every
guardian document can be nested under it. Accounts are created one at a time
in list order; they cannot join the batch, so an account created before a
later failure stays in place. Each created account is recorded as a
``ProvisionedGuardian`` and logged when the submission fails so the accounts
can be cleaned up by hand.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from backend.app.core.exceptions import (
    BatchCommitError,
    EnrollmentSubmissionError,
    EnrollmentValidationError,
    LoginIdentifierInUseError,
    ProvisioningError,
)
from backend.app.core.settings import get_settings
from backend.app.core.time import to_iso_text, utc_now
from backend.app.models.user import ROLE_PARENT
from backend.app.schemas.enrollment import GuardianSchema, StudentEnrollmentSchema, SubmissionStatus
from backend.app.services.document_store import DocumentStore, DocumentWrite
from backend.app.services.enrollment_validation import validate_enrollment
from backend.app.services.identifiers import derive_guardian_login_identifier, generate_student_id
from backend.app.services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

STUDENTS_COLLECTION = "students"
GUARDIANS_COLLECTION = "guardians"


@dataclass(frozen=True)
class ProvisionedGuardian:
    index: int
    full_name: str
    login_identifier: str
    account_id: str


@dataclass
class EnrollmentResult:
    status: SubmissionStatus
    student_name: str
    student_id: str
    student_document_id: str
    completed_at: datetime
    guardians: list[ProvisionedGuardian] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "student_name": self.student_name,
            "student_id": self.student_id,
            "student_document_id": self.student_document_id,
            "completed_at": self.completed_at.isoformat(),
            "guardians": [vars(guardian) for guardian in self.guardians],
        }


def student_document_path(student_document_id: str) -> str:
    return f"{STUDENTS_COLLECTION}/{student_document_id}"


def guardian_document_path(student_document_id: str, account_id: str) -> str:
    return f"{STUDENTS_COLLECTION}/{student_document_id}/{GUARDIANS_COLLECTION}/{account_id}"


def build_guardian_document(guardian: GuardianSchema, login_identifier: str, created_at: str) -> dict[str, Any]:
    return {
        "fullName": guardian.full_name,
        "authEmail": login_identifier,
        "email": guardian.email or "",
        "phoneNumber": guardian.phone_number,
        "role": ROLE_PARENT,
        "relationship": guardian.relationship,
        "isPrimary": guardian.is_primary,
        "createdAt": created_at,
        "profileImageLocalUri": guardian.profile_image or "",
    }


def build_student_document(enrollment: StudentEnrollmentSchema, student_id: str, created_at: str) -> dict[str, Any]:
    return {
        "fullName": enrollment.full_name,
        "className": enrollment.class_name,
        "studentId": student_id,
        "dateOfBirth": to_iso_text(enrollment.date_of_birth),
        "createdAt": created_at,
        "profileImageLocalUri": enrollment.profile_image or "",
    }


def _log_provisioned(student_id: str, provisioned: list[ProvisionedGuardian], reason: str) -> None:
    if not provisioned:
        logger.warning("Enrollment of %s failed before any guardian account was created: %s", student_id, reason)
        return
    logger.warning(
        "Enrollment of %s failed after creating %d guardian account(s); they were not removed: %s",
        student_id,
        len(provisioned),
        reason,
    )
    for fact in provisioned:
        logger.warning(
            "  guardian #%d %s -> account %s (%s)",
            fact.index,
            fact.full_name,
            fact.account_id,
            fact.login_identifier,
        )


def submit_enrollment(
    values: Mapping[str, Any],
    identity_provider: IdentityProvider,
    document_store: DocumentStore,
) -> EnrollmentResult:
    validation = validate_enrollment(values)
    if not validation.valid:
        raise EnrollmentValidationError(validation)
    enrollment = StudentEnrollmentSchema.model_validate(dict(values))
    settings = get_settings()

    # Resolved once: every login identifier and the student document share it
    student_id = (enrollment.student_id or "").strip() or generate_student_id()
    student_document_id = document_store.reserve_document_id(STUDENTS_COLLECTION)
    created_at = to_iso_text(utc_now())

    provisioned: list[ProvisionedGuardian] = []
    writes: list[DocumentWrite] = []
    for index, guardian in enumerate(enrollment.guardians):
        login_identifier = derive_guardian_login_identifier(guardian.full_name, student_id)
        try:
            account_id = identity_provider.create_account(
                login_identifier,
                settings.guardian_default_password,
                role=ROLE_PARENT,
                full_name=guardian.full_name,
                phone=guardian.phone_number,
                must_change_password=True,
            )
        except ProvisioningError as exc:
            _log_provisioned(student_id, provisioned, exc.message)
            if isinstance(exc, LoginIdentifierInUseError):
                message = (
                    f"A guardian account with the login {exc.login_identifier} already exists "
                    f"(guardian {guardian.full_name})."
                )
            else:
                message = f"Failed to create an account for guardian {guardian.full_name}: {exc.message}"
            raise EnrollmentSubmissionError(message, cause=exc, provisioned=provisioned, failed_guardian=index) from exc

        provisioned.append(
            ProvisionedGuardian(
                index=index,
                full_name=guardian.full_name,
                login_identifier=login_identifier,
                account_id=account_id,
            )
        )
        writes.append(
            DocumentWrite(
                path=guardian_document_path(student_document_id, account_id),
                data=build_guardian_document(guardian, login_identifier, created_at),
            )
        )

    writes.append(
        DocumentWrite(
            path=student_document_path(student_document_id),
            data=build_student_document(enrollment, student_id, created_at),
        )
    )

    try:
        document_store.batch_write(writes)
    except BatchCommitError as exc:
        _log_provisioned(student_id, provisioned, exc.message)
        raise EnrollmentSubmissionError(exc.message, cause=exc, provisioned=provisioned) from exc

    logger.info(
        "Enrolled %s (%s) as %s with %d guardian(s)",
        enrollment.full_name,
        student_id,
        student_document_path(student_document_id),
        len(provisioned),
    )
    return EnrollmentResult(
        status=SubmissionStatus.SUCCEEDED,
        student_name=enrollment.full_name,
        student_id=student_id,
        student_document_id=student_document_id,
        completed_at=utc_now(),
        guardians=provisioned,
    )
