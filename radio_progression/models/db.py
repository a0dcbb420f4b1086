"""SQLAlchemy database models for persisted profile records"""
import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()

def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)

class ProfileEntry(Base):
    """
    One logical record (listeningStats, alarm, songVotes, ...) of one user.
    Rows are never deleted on logout so the user can resume on next login.
    """
    __tablename__ = 'profile_entries'
    __table_args__ = (UniqueConstraint('username', 'key', name='uq_profile_entry'),)

    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=False, index=True)
    key = Column(String, nullable=False)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

class CurrentIdentity(Base):
    """Single non-namespaced row pointing at the active username"""
    __tablename__ = 'current_identity'

    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
