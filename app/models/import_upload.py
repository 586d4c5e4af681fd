"""
Uploaded guest file held between the preview and commit steps of an import
"""

import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, LargeBinary
from sqlalchemy.orm import relationship

from app.core.db import Base, utcnow

class ImportUpload(Base):
    __tablename__ = "import_uploads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(String(128), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    content = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    event = relationship("Event", back_populates="import_uploads")
