# farmlog/models.py
from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
from .database import Base


class Document(Base):
    """One document of a collection (workLogs, fertilizerUses, fields, ...)."""
    __tablename__ = "documents"
    id = Column(String, primary_key=True, index=True)
    collection = Column(String, index=True, nullable=False)
    data = Column(JSON, nullable=False)   # camelCase keys
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
