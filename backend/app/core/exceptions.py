"""Domain errors raised by the enrollment workflow and its collaborators."""


class StudentIdError(Exception):
    """Base class for application errors carrying a user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GuardianLimitError(StudentIdError):
    """A guardian add/remove/primary toggle would break a cardinality bound."""


class RemovalConfirmationRequired(StudentIdError):
    def __init__(self, message: str = "Are you sure you want to remove this guardian?"):
        super().__init__(message)


class ProvisioningError(StudentIdError):
    """The identity provider could not create an account."""


class LoginIdentifierInUseError(ProvisioningError):
    def __init__(self, login_identifier: str):
        super().__init__(f"The login identifier {login_identifier} is already in use.")
        self.login_identifier = login_identifier


class BatchCommitError(StudentIdError):
    """An atomic batch write was rejected; nothing from the batch is visible."""


class SubmissionInProgressError(StudentIdError):
    def __init__(self, message: str = "An enrollment submission is already in progress."):
        super().__init__(message)


class EnrollmentValidationError(StudentIdError):
    def __init__(self, result):
        super().__init__("Please fill in all required fields correctly.")
        self.result = result


class EnrollmentSubmissionError(StudentIdError):
    """Submission failed after validation; carries what was provisioned before the failure."""

    def __init__(self, message: str, *, cause: StudentIdError, provisioned=None, failed_guardian=None):
        super().__init__(message)
        self.cause = cause
        self.provisioned = list(provisioned or [])
        self.failed_guardian = failed_guardian


class PasswordPolicyError(StudentIdError):
    """A new password is too short or does not match its confirmation."""


class InvalidStepError(StudentIdError):
    """Jumping to a step the admin has not reached yet."""
