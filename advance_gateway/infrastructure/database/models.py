"""SQLAlchemy ORM model for the key-value table"""

from sqlalchemy import JSON, Column, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class KVEntry(Base):
    """Single key-value pair; values are JSON documents or plain id strings"""

    __tablename__ = "kv_store"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
