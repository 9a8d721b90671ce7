"""Add, remove and primary-toggle operations over a student's guardian list.

Every operation returns a new list and leaves its input untouched. When an
operation would break the 1..max guardians bound or the primary cap it raises
``GuardianLimitError`` instead, so callers keep their current list.
"""

from typing import Sequence

from backend.app.core.exceptions import GuardianLimitError, RemovalConfirmationRequired
from backend.app.core.settings import get_settings
from backend.app.schemas.enrollment import GuardianDraft
from backend.app.services.identifiers import generate_local_id


def new_guardian(is_primary: bool = False) -> GuardianDraft:
    return GuardianDraft(id=generate_local_id(), relationship="Parent", is_primary=is_primary)


def primary_count(guardians: Sequence[GuardianDraft]) -> int:
    return sum(1 for guardian in guardians if guardian.is_primary)


def add_guardian(guardians: Sequence[GuardianDraft]) -> list[GuardianDraft]:
    limit = get_settings().max_guardians
    if len(guardians) >= limit:
        raise GuardianLimitError(f"Maximum {limit} guardians allowed.")
    return [*guardians, new_guardian()]


def remove_guardian(guardians: Sequence[GuardianDraft], index: int, confirmed: bool = False) -> list[GuardianDraft]:
    if len(guardians) <= 1:
        raise GuardianLimitError("At least one guardian is required.")
    if not 0 <= index < len(guardians):
        raise IndexError(f"No guardian at position {index}")
    if not confirmed:
        raise RemovalConfirmationRequired()
    return [guardian for position, guardian in enumerate(guardians) if position != index]


def toggle_primary(guardians: Sequence[GuardianDraft], index: int) -> list[GuardianDraft]:
    if not 0 <= index < len(guardians):
        raise IndexError(f"No guardian at position {index}")
    target = guardians[index]
    if target.is_primary:
        updated = target.model_copy(update={"is_primary": False})
    else:
        limit = get_settings().max_primary_guardians
        if primary_count(guardians) >= limit:
            raise GuardianLimitError(f"Maximum {limit} primary guardians allowed.")
        updated = target.model_copy(update={"is_primary": True})
    return [updated if position == index else guardian for position, guardian in enumerate(guardians)]
