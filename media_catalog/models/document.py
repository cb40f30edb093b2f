from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String

from ..core.database import Base


class DocumentCollection(Base):
    __tablename__ = "collections"

    name = Column(String(128), primary_key=True)
    partition_key_path = Column(String(128), nullable=False, default="/id")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class StoredDocument(Base):
    __tablename__ = "documents"

    collection = Column(String(128), ForeignKey("collections.name", ondelete="CASCADE"), primary_key=True)
    id = Column(String(255), primary_key=True)
    partition_key = Column(String(255), nullable=False, index=True)
    body = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
