"""
Document Repository - template registrations and sent documents.
"""
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.models.document import Document, DocumentTemplate


class TemplateRepository:
    """Repository for DocumentTemplate. Rows are keyed by template_type."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_type(self, template_type: str) -> Optional[DocumentTemplate]:
        stmt = select(DocumentTemplate).where(DocumentTemplate.template_type == template_type)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self, active_only: bool = False) -> list[DocumentTemplate]:
        stmt = select(DocumentTemplate).order_by(DocumentTemplate.template_type)
        if active_only:
            stmt = stmt.where(DocumentTemplate.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, template_type: str, values: dict[str, Any]) -> DocumentTemplate:
        """Insert or replace the registration for ``template_type``."""
        template = await self.get_by_type(template_type)
        if template is None:
            template = DocumentTemplate(template_type=template_type, **values)
            self.db.add(template)
        else:
            for key, value in values.items():
                setattr(template, key, value)
        await self.db.flush()
        await self.db.refresh(template)
        return template


class DocumentRepository:
    """Repository for sent documents."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, document: Document) -> Document:
        self.db.add(document)
        await self.db.flush()
        await self.db.refresh(document)
        return document

    async def get_by_submission_id(self, submission_id: str) -> Optional[Document]:
        stmt = select(Document).where(Document.docuseal_submission_id == submission_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_partner(self, partner_pk: int) -> list[Document]:
        stmt = select(Document).where(Document.partner_id == partner_pk).order_by(Document.sent_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def save(self, document: Document) -> Document:
        await self.db.flush()
        await self.db.refresh(document)
        return document
