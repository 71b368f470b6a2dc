"""
Property Indexer - SQLAlchemy ORM Models

Every entity kind shares one table: rows are addressed by (kind, key_digest)
and carry the entity's serialized fields as a JSON payload.
"""
import hashlib
from typing import Any, Dict

from sqlalchemy import JSON, BigInteger, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def key_digest(entity_id: str) -> str:
    """Fixed-width row key for an entity id of any length."""
    return hashlib.sha256(entity_id.encode("utf-8")).hexdigest()


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class EntityRow(Base):
    """Persisted form of any entity."""
    __tablename__ = "entities"

    kind: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Aggregate ids embed label and jurisdiction text taken from content
    key_digest: Mapped[str] = mapped_column(String(64), primary_key=True)
    entity_id: Mapped[str] = mapped_column(Text)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON().with_variant(JSONB, "postgresql"))
    # Block of the event that last wrote the row, for operators
    block_number: Mapped[int] = mapped_column(BigInteger, default=0)

    __table_args__ = (
        Index("ix_entities_kind_block", "kind", "block_number"),
    )

    def __repr__(self) -> str:
        return f"<EntityRow {self.kind}:{self.entity_id}>"
