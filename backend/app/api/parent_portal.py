"""Guardian-facing endpoints: the digital ID card and its QR code."""

from fastapi import APIRouter, Depends, Response

from backend.app.dependencies.auth import get_current_parent
from backend.app.dependencies.services import get_document_store
from backend.app.models.user import User
from backend.app.schemas.student import IdCard
from backend.app.services.document_store import DocumentStore
from backend.app.services.id_card_service import id_cards_for_guardian, primary_id_card, render_qr_png

router = APIRouter(prefix="/parent", tags=["parent"])


@router.get("/id-card", response_model=IdCard)
def get_id_card(store: DocumentStore = Depends(get_document_store), current_user: User = Depends(get_current_parent)):
    return primary_id_card(store, current_user)


@router.get("/id-card/qr.png")
def get_id_card_qr(store: DocumentStore = Depends(get_document_store), current_user: User = Depends(get_current_parent)):
    card = primary_id_card(store, current_user)
    return Response(content=render_qr_png(card.qr_payload), media_type="image/png")


@router.get("/students", response_model=list[IdCard])
def list_linked_students(
    store: DocumentStore = Depends(get_document_store), current_user: User = Depends(get_current_parent)
):
    return id_cards_for_guardian(store, current_user)
