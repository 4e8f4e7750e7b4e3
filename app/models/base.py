"""Soft-delete base document: rows are flagged with ``deleted_at``, never removed."""
from datetime import datetime
from typing import Optional

from beanie import Document
from pydantic import Field


class SoftDeleteDocument(Document):
    """Base for documents that keep an audit trail instead of hard deletes.

    Every read of such a collection should go through :meth:`active` so the
    ``deleted_at`` filter lives in one place.
    """

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = None

    @classmethod
    def active(cls, *args, **kwargs):
        """``find`` restricted to rows that have not been soft-deleted."""
        return cls.find({"deleted_at": None}, *args, **kwargs)

    @classmethod
    async def get_active(cls, document_id, session=None):
        doc = await cls.get(document_id, session=session)
        if doc is None or doc.deleted_at is not None:
            return None
        return doc

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    async def soft_delete(self, session=None) -> None:
        now = datetime.utcnow()
        self.deleted_at = now
        self.updated_at = now
        await self.save(session=session)
