"""Per-request collaborators for the enrollment workflow."""

from fastapi import Depends
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.services.document_store import DocumentStore
from backend.app.services.identity_provider import IdentityProvider


def get_identity_provider(db: Session = Depends(get_db)) -> IdentityProvider:
    return IdentityProvider(db)


def get_document_store(db: Session = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)
