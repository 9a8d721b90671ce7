"""JSON documents addressed by slash-separated paths.

A document at ``students/abc/guardians/42`` lives in the collection
``students/abc/guardians`` with ``doc_id`` ``42``; its parent document is
``students/abc``.
"""

from sqlalchemy import JSON, Column, DateTime, Integer, String

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    path = Column(String(512), unique=True, nullable=False, index=True)
    collection = Column(String(512), nullable=False, index=True)
    # Last collection segment, e.g. "guardians", for collection-group queries
    collection_name = Column(String(128), nullable=False, index=True)
    doc_id = Column(String(128), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    @property
    def parent_path(self) -> str | None:
        segments = self.collection.split("/")
        if len(segments) < 3:
            return None
        return "/".join(segments[:-1])
