"""Identifier generation for enrollment: local keys, student ids and guardian logins."""

import re
import secrets
import string

from backend.app.core.settings import get_settings
from backend.app.core.time import epoch_millis

_BASE36 = string.digits + string.ascii_lowercase
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def generate_local_id() -> str:
    """Key for a guardian row in the form; never persisted as the guardian's identity."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{epoch_millis()}_{suffix}"


def generate_student_id() -> str:
    return f"SID{epoch_millis()}"


def derive_guardian_login_identifier(guardian_full_name: str, student_id: str) -> str:
    """
    Build the login identifier for a guardian account, e.g.
    ``derive_guardian_login_identifier("Sunita Kumar", "SID1")`` -> ``kumar-SID1@student-id.app``.

    Uses the last word of the name as the surname (or the only word; ``user``
    when the name is blank), lower-cased with anything outside ``[a-z0-9]``
    removed. Two guardians with the same surname on one student collide; the
    identity provider reports that as an identifier already in use.
    """
    name_parts = guardian_full_name.strip().split()
    surname = name_parts[-1] if name_parts else "user"
    sanitized = _NON_ALNUM.sub("", surname.lower())
    domain = get_settings().login_email_domain
    return f"{sanitized}-{student_id}@{domain}"
