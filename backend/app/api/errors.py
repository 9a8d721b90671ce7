"""Translate domain errors into HTTP responses."""

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from backend.app.core.exceptions import (
    BatchCommitError,
    EnrollmentSubmissionError,
    EnrollmentValidationError,
    GuardianLimitError,
    InvalidStepError,
    LoginIdentifierInUseError,
    PasswordPolicyError,
    ProvisioningError,
    RemovalConfirmationRequired,
    StudentIdError,
    SubmissionInProgressError,
)

_STATUS_BY_ERROR = [
    (GuardianLimitError, status.HTTP_409_CONFLICT),
    (RemovalConfirmationRequired, status.HTTP_409_CONFLICT),
    (SubmissionInProgressError, status.HTTP_409_CONFLICT),
    (LoginIdentifierInUseError, status.HTTP_409_CONFLICT),
    (InvalidStepError, status.HTTP_400_BAD_REQUEST),
    (PasswordPolicyError, status.HTTP_400_BAD_REQUEST),
    (ProvisioningError, status.HTTP_502_BAD_GATEWAY),
    (BatchCommitError, status.HTTP_502_BAD_GATEWAY),
]


def http_error(exc: StudentIdError) -> HTTPException:
    cause = exc.cause if isinstance(exc, EnrollmentSubmissionError) else exc
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(cause, error_type):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, EnrollmentSubmissionError):
        detail = {
            "message": exc.message,
            "failed_guardian": exc.failed_guardian,
            "provisioned": [vars(fact) for fact in exc.provisioned],
        }
        return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=status_code, detail=exc.message)


def validation_failed(exc: EnrollmentValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=exc.result.model_dump(),
    )
