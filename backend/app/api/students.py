"""Student directory endpoints for admins."""

from typing import Optional

from fastapi import APIRouter, Depends

from backend.app.dependencies.auth import get_current_admin
from backend.app.dependencies.services import get_document_store
from backend.app.models.user import User
from backend.app.schemas.student import StudentDetail, StudentSummary
from backend.app.services.document_store import DocumentStore
from backend.app.services.student_directory import get_student, list_students

router = APIRouter(prefix="/students", tags=["students"])


@router.get("/", response_model=list[StudentSummary])
def list_enrolled_students(
    search: Optional[str] = None,
    store: DocumentStore = Depends(get_document_store),
    current_admin: User = Depends(get_current_admin),
):
    return list_students(store, search=search)


@router.get("/{document_id}", response_model=StudentDetail)
def get_enrolled_student(
    document_id: str,
    store: DocumentStore = Depends(get_document_store),
    current_admin: User = Depends(get_current_admin),
):
    return get_student(store, document_id)
