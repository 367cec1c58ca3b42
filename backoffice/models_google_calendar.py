"""
Google Calendar Integration Models
"""
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

SYNC_STATUSES = ("synced", "pending", "error")


class GoogleOAuthCredential(Base):
    __tablename__ = "google_oauth_credentials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)

    # OAuth tokens (encrypted, "iv:payload" hex)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    token_expiry = Column(DateTime, nullable=True)
    scope = Column(JSON, default=list, nullable=True)

    calendar_id = Column(String(500), nullable=False, default="primary")
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User")


class CalendarSync(Base):
    """Mapping between one job and one Google Calendar event"""

    __tablename__ = "calendar_syncs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, unique=True)
    google_event_id = Column(String(1024), nullable=True, index=True)  # null until the first successful push
    sync_status = Column(String(20), nullable=False, default="pending")  # synced, pending, error
    last_synced_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
