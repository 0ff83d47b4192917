"""
Document ORM model.

Immutable identity for an ingested source, with a mutable slug used for routing.
All chunk rows reference the immutable id, never the slug.

Dependencies: sqlalchemy, docqa.boundary.db.base
System role: Document metadata persistence
"""

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docqa.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from docqa.boundary.db.models.chunk_model import ChunkModel
    from docqa.boundary.db.models.owner_model import OwnerModel


class EmbeddingSpace(str, enum.Enum):
    """
    Family of vectors a document was embedded with.

    LOCAL: Small on-node sentence-transformers model
    PROVIDER: Hosted embedding provider
    """

    LOCAL = "local"
    PROVIDER = "provider"


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model.

    Created by the pipeline's store step, strictly before its chunks.
    Soft-disabled through `active`; chunks cascade on hard delete.

    Attributes:
        id: Immutable UUID, reserved at enqueue time
        slug: Unique, freely editable routing key
        title: Display name used to tag retrieved chunks
        subtitle: Optional secondary title
        owner_id: FK to owners.id
        embedding_space: Vector family used for all of this document's chunks
        is_public: Visible without an explicit grant
        requires_auth: Requires an authenticated caller
        active: Included in the registry when True
        cover: Optional cover image URL
        intro_message: Optional per-document intro text
    """

    __tablename__ = "documents"

    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(500), nullable=True)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("owners.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    embedding_space: Mapped[EmbeddingSpace] = mapped_column(
        Enum(EmbeddingSpace, native_enum=False),
        nullable=False,
        default=EmbeddingSpace.PROVIDER,
    )

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    requires_auth: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    cover: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    intro_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner: Mapped["OwnerModel"] = relationship("OwnerModel", back_populates="documents")
    chunks: Mapped[list["ChunkModel"]] = relationship(
        "ChunkModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
