import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from .database import Base


def _uuid():
    return str(uuid.uuid4())

def _utcnow():
    return datetime.now(timezone.utc)


class ScanRecord(Base):
    __tablename__ = "scans"

    id = Column(String, primary_key=True, index=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    content_type = Column(String, nullable=False)  # 'document' or 'image'
    file_path = Column(String, nullable=True)  # storage path of the first document
    extracted_text = Column(Text, nullable=True)
    ai_summary = Column(Text, nullable=True)
    ai_tags = Column(JSON, nullable=True)
    category = Column(String, nullable=True)
    is_sensitive = Column(Boolean, nullable=False, default=False)
    analysis_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    documents = relationship(
        "ScanDocument",
        back_populates="scan",
        cascade="all, delete-orphan",
        order_by="ScanDocument.position",
    )


class ScanDocument(Base):
    __tablename__ = "scan_documents"

    id = Column(String, primary_key=True, index=True, default=_uuid)
    scan_id = Column(String, ForeignKey("scans.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    file_path = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String, nullable=True)
    extracted_text = Column(Text, nullable=True)
    ai_summary = Column(Text, nullable=True)
    ai_tags = Column(JSON, nullable=True)
    category = Column(String, nullable=True)
    is_sensitive = Column(Boolean, nullable=False, default=False)
    analysis_metadata = Column("metadata", JSON, nullable=True)
    analysis_details = Column(JSON, nullable=True)  # translation, enhancement, smartInsights
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    scan = relationship("ScanRecord", back_populates="documents")
