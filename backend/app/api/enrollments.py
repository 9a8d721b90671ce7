"""Admin enrollment wizard endpoints: Student -> Guardians -> Review -> submit."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.api.errors import http_error, validation_failed
from backend.app.core.exceptions import EnrollmentValidationError, StudentIdError
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_admin
from backend.app.dependencies.services import get_document_store, get_identity_provider
from backend.app.models.user import User
from backend.app.schemas.enrollment import (
    EnrollmentFormRead,
    EnrollmentResultRead,
    EnrollmentReview,
    GuardianDraftUpdate,
    StudentDraftUpdate,
    ValidationResult,
)
from backend.app.services import enrollment_form_service as forms
from backend.app.services.document_store import DocumentStore
from backend.app.services.enrollment_validation import validate_step
from backend.app.services.identity_provider import IdentityProvider

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


def _guardian_not_found(index: int) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No guardian at position {index}")


@router.post("/", response_model=EnrollmentFormRead, status_code=status.HTTP_201_CREATED)
def start_enrollment(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    form = forms.start_form(db, current_admin)
    return forms.form_to_read(form)


@router.get("/{form_id}", response_model=EnrollmentFormRead)
def get_enrollment(form_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return forms.form_to_read(forms.get_owned_form(db, form_id, current_admin.id))


@router.post("/{form_id}/reset", response_model=EnrollmentFormRead)
def reset_enrollment(form_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.reset_form(db, form)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.patch("/{form_id}/student", response_model=EnrollmentFormRead)
def update_student(
    form_id: int,
    payload: StudentDraftUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.update_student(db, form, payload)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.post("/{form_id}/guardians", response_model=EnrollmentFormRead, status_code=status.HTTP_201_CREATED)
def add_guardian(form_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.add_guardian(db, form)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.patch("/{form_id}/guardians/{index}", response_model=EnrollmentFormRead)
def update_guardian(
    form_id: int,
    index: int,
    payload: GuardianDraftUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.update_guardian(db, form, index, payload)
    except IndexError:
        raise _guardian_not_found(index)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.delete("/{form_id}/guardians/{index}", response_model=EnrollmentFormRead)
def remove_guardian(
    form_id: int,
    index: int,
    confirm: bool = False,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.remove_guardian(db, form, index, confirmed=confirm)
    except IndexError:
        raise _guardian_not_found(index)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.post("/{form_id}/guardians/{index}/toggle-primary", response_model=EnrollmentFormRead)
def toggle_primary(
    form_id: int,
    index: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.toggle_primary(db, form, index)
    except IndexError:
        raise _guardian_not_found(index)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.get("/{form_id}/steps/{step_index}/validation", response_model=ValidationResult)
def check_step(
    form_id: int,
    step_index: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    return validate_step(step_index, forms.form_values(form))


@router.post("/{form_id}/next")
def next_step(
    form_id: int,
    db: Session = Depends(get_db),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    document_store: DocumentStore = Depends(get_document_store),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        outcome = forms.next_step(db, form, identity_provider, document_store)
    except EnrollmentValidationError as exc:
        return validation_failed(exc)
    except StudentIdError as exc:
        raise http_error(exc) from exc

    if not outcome.validation.valid:
        return validation_failed(EnrollmentValidationError(outcome.validation))
    response = {"form": forms.form_to_read(outcome.form).model_dump(mode="json"), "result": None}
    if outcome.result is not None:
        response["result"] = EnrollmentResultRead.model_validate(outcome.result).model_dump(mode="json")
    return response


@router.post("/{form_id}/back", response_model=EnrollmentFormRead)
def previous_step(form_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.previous_step(db, form)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.post("/{form_id}/steps/{step_index}", response_model=EnrollmentFormRead)
def go_to_step(
    form_id: int,
    step_index: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        forms.go_to_step(db, form, step_index)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return forms.form_to_read(form)


@router.get("/{form_id}/review", response_model=EnrollmentReview)
def review(form_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return forms.review(forms.get_owned_form(db, form_id, current_admin.id))


@router.post("/{form_id}/submit", response_model=EnrollmentResultRead, status_code=status.HTTP_201_CREATED)
def submit(
    form_id: int,
    db: Session = Depends(get_db),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    document_store: DocumentStore = Depends(get_document_store),
    current_admin: User = Depends(get_current_admin),
):
    form = forms.get_owned_form(db, form_id, current_admin.id)
    try:
        result = forms.submit(db, form, identity_provider, document_store)
    except EnrollmentValidationError as exc:
        return validation_failed(exc)
    except StudentIdError as exc:
        raise http_error(exc) from exc
    return EnrollmentResultRead.model_validate(result)
