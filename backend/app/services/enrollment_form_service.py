"""The enrollment wizard: one persisted form session per admin workflow.

The form row owns the student draft, the guardian list, the step cursor and the
submission status. Guardian list changes replace the whole list, and the
status moves idle -> submitting -> succeeded | failed, with at most one
submission in flight per form.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.exceptions import (
    EnrollmentValidationError,
    InvalidStepError,
    StudentIdError,
    SubmissionInProgressError,
)
from backend.app.models.enrollment_form import EnrollmentForm
from backend.app.models.user import User
from backend.app.schemas.enrollment import (
    EnrollmentFormRead,
    EnrollmentReview,
    EnrollmentStepRead,
    GuardianDraft,
    GuardianDraftUpdate,
    StudentDraft,
    StudentDraftUpdate,
    SubmissionStatus,
    ValidationResult,
)
from backend.app.services import guardian_collection
from backend.app.services.document_store import DocumentStore
from backend.app.services.enrollment_service import EnrollmentResult, submit_enrollment
from backend.app.services.enrollment_validation import (
    REVIEW_STEP_INDEX,
    STEPS,
    review_guardians,
    validate_enrollment,
    validate_step,
)
from backend.app.services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    form: EnrollmentForm
    validation: ValidationResult
    result: Optional[EnrollmentResult] = None


def fresh_state() -> dict[str, Any]:
    return {
        "student": StudentDraft().model_dump(mode="json"),
        "guardians": [guardian_collection.new_guardian(is_primary=True).model_dump(mode="json")],
    }


def load_student(form: EnrollmentForm) -> StudentDraft:
    return StudentDraft.model_validate((form.state or {}).get("student", {}))


def load_guardians(form: EnrollmentForm) -> list[GuardianDraft]:
    return [GuardianDraft.model_validate(item) for item in (form.state or {}).get("guardians", [])]


def form_values(form: EnrollmentForm) -> dict[str, Any]:
    """The draft as the flat mapping the validators and the submission expect."""
    values = load_student(form).model_dump(mode="json")
    values["guardians"] = [guardian.model_dump(mode="json") for guardian in load_guardians(form)]
    return values


def _save_state(
    form: EnrollmentForm,
    student: Optional[StudentDraft] = None,
    guardians: Optional[list[GuardianDraft]] = None,
) -> None:
    # Assign a new dict so the JSON column is flagged dirty
    state = dict(form.state or {})
    if student is not None:
        state["student"] = student.model_dump(mode="json")
    if guardians is not None:
        state["guardians"] = [guardian.model_dump(mode="json") for guardian in guardians]
    form.state = state


# Fields an explicit null clears; null is ignored for every other field
_CLEARABLE_STUDENT_FIELDS = ("date_of_birth", "profile_image")
_CLEARABLE_GUARDIAN_FIELDS = ("profile_image",)


def _draft_changes(changes, clearable: tuple[str, ...]) -> dict[str, Any]:
    return {
        key: value
        for key, value in changes.model_dump(exclude_unset=True).items()
        if value is not None or key in clearable
    }


def _ensure_editable(form: EnrollmentForm) -> None:
    if form.status == SubmissionStatus.SUBMITTING.value:
        raise SubmissionInProgressError()


def form_to_read(form: EnrollmentForm) -> EnrollmentFormRead:
    step = STEPS[form.step_index]
    return EnrollmentFormRead(
        id=form.id,
        step_index=form.step_index,
        step=EnrollmentStepRead(index=form.step_index, title=step.title, fields=list(step.fields)),
        status=form.status,
        student=load_student(form),
        guardians=load_guardians(form),
        last_error=form.last_error,
        last_result=form.last_result,
    )


def start_form(db: Session, owner: User) -> EnrollmentForm:
    form = EnrollmentForm(
        owner_id=owner.id,
        step_index=0,
        status=SubmissionStatus.IDLE.value,
        state=fresh_state(),
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def get_owned_form(db: Session, form_id: int, owner_id: int) -> EnrollmentForm:
    form = (
        db.query(EnrollmentForm)
        .filter(EnrollmentForm.id == form_id, EnrollmentForm.owner_id == owner_id)
        .first()
    )
    if not form:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment form not found")
    return form


def reset_form(db: Session, form: EnrollmentForm) -> EnrollmentForm:
    _ensure_editable(form)
    form.state = fresh_state()
    form.step_index = 0
    form.status = SubmissionStatus.IDLE.value
    form.last_error = None
    db.commit()
    db.refresh(form)
    return form


def update_student(db: Session, form: EnrollmentForm, changes: StudentDraftUpdate) -> EnrollmentForm:
    _ensure_editable(form)
    student = load_student(form).model_copy(update=_draft_changes(changes, _CLEARABLE_STUDENT_FIELDS))
    _save_state(form, student=student)
    db.commit()
    db.refresh(form)
    return form


def update_guardian(db: Session, form: EnrollmentForm, index: int, changes: GuardianDraftUpdate) -> EnrollmentForm:
    _ensure_editable(form)
    guardians = load_guardians(form)
    if not 0 <= index < len(guardians):
        raise IndexError(f"No guardian at position {index}")
    guardians[index] = guardians[index].model_copy(update=_draft_changes(changes, _CLEARABLE_GUARDIAN_FIELDS))
    _save_state(form, guardians=guardians)
    db.commit()
    db.refresh(form)
    return form


def add_guardian(db: Session, form: EnrollmentForm) -> EnrollmentForm:
    _ensure_editable(form)
    _save_state(form, guardians=guardian_collection.add_guardian(load_guardians(form)))
    db.commit()
    db.refresh(form)
    return form


def remove_guardian(db: Session, form: EnrollmentForm, index: int, confirmed: bool = False) -> EnrollmentForm:
    _ensure_editable(form)
    _save_state(form, guardians=guardian_collection.remove_guardian(load_guardians(form), index, confirmed=confirmed))
    db.commit()
    db.refresh(form)
    return form


def toggle_primary(db: Session, form: EnrollmentForm, index: int) -> EnrollmentForm:
    _ensure_editable(form)
    _save_state(form, guardians=guardian_collection.toggle_primary(load_guardians(form), index))
    db.commit()
    db.refresh(form)
    return form


def previous_step(db: Session, form: EnrollmentForm) -> EnrollmentForm:
    _ensure_editable(form)
    if form.step_index > 0:
        form.step_index -= 1
        db.commit()
        db.refresh(form)
    return form


def go_to_step(db: Session, form: EnrollmentForm, index: int) -> EnrollmentForm:
    """Jump back to a step that was already completed."""
    _ensure_editable(form)
    if not 0 <= index < form.step_index:
        raise InvalidStepError(f"Step {index} cannot be opened from step {form.step_index}.")
    form.step_index = index
    db.commit()
    db.refresh(form)
    return form


def review(form: EnrollmentForm) -> EnrollmentReview:
    return EnrollmentReview(student=load_student(form), guardians=review_guardians(load_guardians(form)))


def next_step(
    db: Session,
    form: EnrollmentForm,
    identity_provider: IdentityProvider,
    document_store: DocumentStore,
) -> StepOutcome:
    """Advance past the current step, or submit when it is the review step."""
    _ensure_editable(form)
    validation = validate_step(form.step_index, form_values(form))
    if not validation.valid:
        return StepOutcome(form=form, validation=validation)

    if form.step_index < REVIEW_STEP_INDEX:
        form.step_index += 1
        db.commit()
        db.refresh(form)
        return StepOutcome(form=form, validation=validation)

    result = submit(db, form, identity_provider, document_store)
    return StepOutcome(form=form, validation=validation, result=result)


def _claim_submission(db: Session, form: EnrollmentForm) -> None:
    claimed = (
        db.query(EnrollmentForm)
        .filter(
            EnrollmentForm.id == form.id,
            EnrollmentForm.status != SubmissionStatus.SUBMITTING.value,
        )
        .update(
            {"status": SubmissionStatus.SUBMITTING.value, "last_error": None},
            synchronize_session=False,
        )
    )
    db.commit()
    if not claimed:
        raise SubmissionInProgressError()
    db.refresh(form)


def _mark_failed(db: Session, form: EnrollmentForm, message: str) -> None:
    form.status = SubmissionStatus.FAILED.value
    form.last_error = message
    db.commit()
    db.refresh(form)


def submit(
    db: Session,
    form: EnrollmentForm,
    identity_provider: IdentityProvider,
    document_store: DocumentStore,
) -> EnrollmentResult:
    if form.step_index != REVIEW_STEP_INDEX:
        raise InvalidStepError("Review the enrollment before submitting it.")
    values = form_values(form)
    validation = validate_enrollment(values)
    if not validation.valid:
        raise EnrollmentValidationError(validation)

    _claim_submission(db, form)
    try:
        result = submit_enrollment(values, identity_provider, document_store)
    except StudentIdError as exc:
        _mark_failed(db, form, exc.message)
        raise
    except Exception:
        db.rollback()
        logger.exception("Unexpected error while submitting enrollment form %s", form.id)
        _mark_failed(db, form, "An unexpected error occurred. Please try again.")
        raise

    form.status = SubmissionStatus.SUCCEEDED.value
    form.last_result = result.summary()
    form.last_error = None
    form.state = fresh_state()
    form.step_index = 0
    db.commit()
    db.refresh(form)
    return result
