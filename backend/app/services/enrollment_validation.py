"""Step-gated validation for the enrollment wizard.

Each step declares the fields it checks. A step is validated against the full
``StudentEnrollmentSchema`` and only errors rooted at that step's fields are
kept, so fields belonging to other steps never influence the outcome. The
submission path calls ``validate_enrollment`` to check everything.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from backend.app.schemas.enrollment import StudentEnrollmentSchema, ValidationResult


@dataclass(frozen=True)
class EnrollmentStep:
    title: str
    fields: tuple[str, ...]


STEPS: tuple[EnrollmentStep, ...] = (
    EnrollmentStep("Student", ("full_name", "class_name", "date_of_birth")),
    EnrollmentStep("Guardians", ("guardians",)),
    EnrollmentStep("Review", ()),
)
REVIEW_STEP_INDEX = len(STEPS) - 1


def _field_path(loc: Iterable[Any]) -> str:
    return ".".join(str(part) for part in loc)


def _collect_errors(values: Mapping[str, Any], fields: tuple[str, ...] | None) -> dict[str, str]:
    try:
        StudentEnrollmentSchema.model_validate(dict(values))
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            loc = error["loc"]
            if fields is not None and (not loc or loc[0] not in fields):
                continue
            # First message per field wins
            errors.setdefault(_field_path(loc), error["msg"])
        return errors
    return {}


def validate_step(step_index: int, values: Mapping[str, Any]) -> ValidationResult:
    if 0 <= step_index < len(STEPS):
        fields = STEPS[step_index].fields
    else:
        fields = ()
    if not fields:
        return ValidationResult(valid=True)
    errors = _collect_errors(values, fields)
    return ValidationResult(valid=not errors, errors=errors)


def validate_enrollment(values: Mapping[str, Any]) -> ValidationResult:
    errors = _collect_errors(values, None)
    return ValidationResult(valid=not errors, errors=errors)


def review_guardians(guardians: Iterable[Any]) -> list:
    """Guardians worth showing on the review step: both name and phone filled in."""
    selected = []
    for guardian in guardians:
        full_name = guardian.get("full_name") if isinstance(guardian, Mapping) else guardian.full_name
        phone_number = guardian.get("phone_number") if isinstance(guardian, Mapping) else guardian.phone_number
        if full_name and phone_number:
            selected.append(guardian)
    return selected
