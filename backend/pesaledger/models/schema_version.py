"""
Schema version marker.
"""

from sqlalchemy import Column, Integer, DateTime

from pesaledger.database import Base, utcnow


class SchemaVersion(Base):
    __tablename__ = "schema_version"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(Integer, nullable=False)
    applied_at = Column(DateTime, default=utcnow, nullable=False)
