"""Read side of enrolled students: directory listing, detail and QR lookups."""

import json
from typing import Optional

from fastapi import HTTPException, status

from backend.app.schemas.student import GuardianRead, StudentDetail, StudentSummary
from backend.app.services.document_store import DocumentStore, StoredDocument
from backend.app.services.enrollment_service import GUARDIANS_COLLECTION, STUDENTS_COLLECTION, student_document_path


def _summary(document: StoredDocument) -> StudentSummary:
    data = document.data
    return StudentSummary(
        document_id=document.doc_id,
        full_name=data.get("fullName", ""),
        class_name=data.get("className", ""),
        student_id=data.get("studentId", ""),
        profile_image=data.get("profileImageLocalUri", ""),
    )


def _guardian(document: StoredDocument) -> GuardianRead:
    data = document.data
    return GuardianRead(
        account_id=document.doc_id,
        full_name=data.get("fullName", ""),
        login_identifier=data.get("authEmail", ""),
        email=data.get("email", ""),
        phone_number=data.get("phoneNumber", ""),
        relationship=data.get("relationship", "Parent"),
        is_primary=bool(data.get("isPrimary", False)),
        profile_image=data.get("profileImageLocalUri", ""),
    )


def list_students(store: DocumentStore, search: Optional[str] = None) -> list[StudentSummary]:
    students = [_summary(doc) for doc in store.query(STUDENTS_COLLECTION)]
    if search:
        needle = search.strip().lower()
        students = [student for student in students if needle in student.full_name.lower()]
    return students


def list_guardians(store: DocumentStore, student_document_id: str) -> list[GuardianRead]:
    collection_path = f"{student_document_path(student_document_id)}/{GUARDIANS_COLLECTION}"
    return [_guardian(doc) for doc in store.query(collection_path)]


def get_student(store: DocumentStore, student_document_id: str) -> StudentDetail:
    document = store.get(student_document_path(student_document_id))
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    summary = _summary(document)
    return StudentDetail(
        **summary.model_dump(),
        date_of_birth=document.data.get("dateOfBirth"),
        created_at=document.data.get("createdAt"),
        guardians=list_guardians(store, student_document_id),
    )


def parse_scan_payload(data: str) -> str:
    """
    Extract the student id from scanned QR text.

    ID cards encode ``{"studentId": "..."}``; anything that is not such a JSON
    object is taken as the bare student id.
    """
    text = data.strip()
    try:
        decoded = json.loads(text)
    except ValueError:
        return text
    if isinstance(decoded, dict) and decoded.get("studentId"):
        return str(decoded["studentId"]).strip()
    if isinstance(decoded, (str, int)):
        return str(decoded).strip()
    return text


def resolve_scan(store: DocumentStore, data: str) -> StudentDetail:
    student_id = parse_scan_payload(data)
    if not student_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No QR code data provided")
    matches = store.query(STUDENTS_COLLECTION, {"studentId": student_id})
    if not matches:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No student with ID {student_id}")
    return get_student(store, matches[0].doc_id)
