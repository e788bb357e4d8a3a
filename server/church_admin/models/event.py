from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from church_admin.core.db import Base


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (CheckConstraint("ends_at IS NULL OR ends_at > starts_at", name="ck_events_end_after_start"),)

    id = Column(Integer, primary_key=True)
    ministry_id = Column(Integer, ForeignKey("ministries.id", ondelete="RESTRICT"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    state = Column(Enum(EventState, name="event_state"), nullable=False, default=EventState.PENDING)
    rejection_reason = Column(String(500), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_by_id = Column(Integer, ForeignKey("identities.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    ministry = relationship("Ministry", back_populates="events")
    created_by = relationship("Identity", foreign_keys=[created_by_id])
