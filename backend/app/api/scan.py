"""QR scan resolution: map scanned ID card data to a student record."""

import logging

from fastapi import APIRouter, Depends

from backend.app.dependencies.auth import get_current_admin
from backend.app.dependencies.services import get_document_store
from backend.app.models.user import User
from backend.app.schemas.student import ScanRequest, StudentDetail
from backend.app.services.document_store import DocumentStore
from backend.app.services.student_directory import resolve_scan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["scan"])


@router.post("/", response_model=StudentDetail)
def scan_qr_code(
    payload: ScanRequest,
    store: DocumentStore = Depends(get_document_store),
    current_admin: User = Depends(get_current_admin),
):
    student = resolve_scan(store, payload.data)
    logger.info("Admin %s scanned student %s", current_admin.email, student.student_id)
    return student
