"""Digital ID cards for guardians, with the QR code admins scan."""

import io
import json
import logging

import qrcode
from fastapi import HTTPException, status

from backend.app.models.user import User
from backend.app.schemas.student import IdCard, IdCardGuardian
from backend.app.services.document_store import DocumentStore
from backend.app.services.enrollment_service import GUARDIANS_COLLECTION
from backend.app.services.student_directory import list_guardians

logger = logging.getLogger(__name__)

QR_SETTINGS = {
    "version": 1,
    "error_correction": qrcode.constants.ERROR_CORRECT_M,
    "box_size": 10,
    "border": 4,
}


def qr_payload(student_id: str) -> str:
    return json.dumps({"studentId": student_id})


def render_qr_png(payload: str) -> bytes:
    qr = qrcode.QRCode(**QR_SETTINGS)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def id_cards_for_guardian(store: DocumentStore, user: User) -> list[IdCard]:
    """Cards for every student the guardian account was enrolled with."""
    cards = []
    for guardian_doc in store.query_collection_group(GUARDIANS_COLLECTION, doc_id=str(user.id)):
        student_doc = store.get(guardian_doc.parent_path) if guardian_doc.parent_path else None
        if student_doc is None:
            logger.warning("Guardian document %s has no student document", guardian_doc.path)
            continue
        data = student_doc.data
        guardians = list_guardians(store, student_doc.doc_id)
        cards.append(
            IdCard(
                student_name=data.get("fullName", ""),
                class_name=data.get("className", ""),
                student_id=data.get("studentId", ""),
                profile_image=data.get("profileImageLocalUri", ""),
                qr_payload=qr_payload(data.get("studentId", "")),
                guardians=[
                    IdCardGuardian(
                        full_name=guardian.full_name,
                        relationship=guardian.relationship,
                        profile_image=guardian.profile_image,
                    )
                    for guardian in guardians
                ],
            )
        )
    return cards


def primary_id_card(store: DocumentStore, user: User) -> IdCard:
    cards = id_cards_for_guardian(store, user)
    if not cards:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No student is linked to this account")
    return cards[0]
