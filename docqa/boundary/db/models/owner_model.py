"""
Owner ORM model.

Tenant record whose branding fields are flattened into registry entries.

Dependencies: sqlalchemy, docqa.boundary.db.base
System role: Multi-tenant ownership of documents
"""

from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docqa.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from docqa.boundary.db.models.document_model import DocumentModel


class OwnerModel(Base, UUIDMixin, TimestampMixin):
    """
    Owner (tenant) of a set of documents.

    Attributes:
        id: UUID primary key
        slug: Unique routing key used in query filters
        name: Display name, used in cross-owner validation messages
        intro_message: Default intro text for owned documents
        default_cover: Fallback cover image for owned documents
    """

    __tablename__ = "owners"

    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    intro_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_cover: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    documents: Mapped[list["DocumentModel"]] = relationship(
        "DocumentModel",
        back_populates="owner",
    )
