"""Path-addressed JSON document store with atomic batched writes."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import BatchCommitError
from backend.app.models.document import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentWrite:
    path: str
    data: dict[str, Any]


@dataclass
class StoredDocument:
    path: str
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)
    parent_path: Optional[str] = None


def split_document_path(path: str) -> tuple[str, str]:
    """Return ``(collection_path, doc_id)`` for a document path such as ``students/abc``."""
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not segments or len(segments) % 2 != 0:
        raise ValueError(f"Not a document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


def _to_stored(document: Document) -> StoredDocument:
    return StoredDocument(
        path=document.path,
        doc_id=document.doc_id,
        data=dict(document.data or {}),
        parent_path=document.parent_path,
    )


def _matches(data: dict[str, Any], filters: Optional[dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(data.get(key) == value for key, value in filters.items())


class DocumentStore:
    def __init__(self, db: Session):
        self.db = db

    def reserve_document_id(self, collection_path: str) -> str:
        """Hand out a fresh id for a document that will be written later."""
        segments = [segment for segment in collection_path.strip("/").split("/") if segment]
        if not segments or len(segments) % 2 != 1:
            raise ValueError(f"Not a collection path: {collection_path!r}")
        return uuid.uuid4().hex[:20]

    def batch_write(self, writes: Iterable[DocumentWrite]) -> None:
        """Set every document in ``writes`` in one transaction: all become visible or none do."""
        writes = list(writes)
        targets = [(write, *split_document_path(write.path)) for write in writes]
        try:
            for write, collection_path, doc_id in targets:
                path = f"{collection_path}/{doc_id}"
                document = self.db.query(Document).filter(Document.path == path).first()
                if document is None:
                    document = Document(
                        path=path,
                        collection=collection_path,
                        collection_name=collection_path.rsplit("/", 1)[-1],
                        doc_id=doc_id,
                    )
                    self.db.add(document)
                document.data = dict(write.data)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Batch write of %d documents failed", len(writes))
            raise BatchCommitError("Failed to save enrollment records. Nothing was written.") from exc
        logger.info("Committed batch of %d documents", len(writes))

    def get(self, path: str) -> Optional[StoredDocument]:
        document = self.db.query(Document).filter(Document.path == path.strip("/")).first()
        return _to_stored(document) if document else None

    def query(self, collection_path: str, filters: Optional[dict[str, Any]] = None) -> list[StoredDocument]:
        documents = (
            self.db.query(Document)
            .filter(Document.collection == collection_path.strip("/"))
            .order_by(Document.created_at.asc(), Document.id.asc())
            .all()
        )
        return [_to_stored(doc) for doc in documents if _matches(doc.data or {}, filters)]

    def query_collection_group(
        self, collection_name: str, doc_id: Optional[str] = None, filters: Optional[dict[str, Any]] = None
    ) -> list[StoredDocument]:
        """Query every collection called ``collection_name`` regardless of its parent document."""
        query = self.db.query(Document).filter(Document.collection_name == collection_name)
        if doc_id is not None:
            query = query.filter(Document.doc_id == doc_id)
        documents = query.order_by(Document.created_at.asc(), Document.id.asc()).all()
        return [_to_stored(doc) for doc in documents if _matches(doc.data or {}, filters)]
