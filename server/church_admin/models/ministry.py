from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from church_admin.core.db import Base


class Ministry(Base):
    __tablename__ = "ministries"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    logo_path = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by_id = Column(Integer, ForeignKey("identities.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_by = relationship("Identity", foreign_keys=[created_by_id])
    leaderships = relationship(
        "MinistryLeadership",
        back_populates="ministry",
        cascade="all, delete-orphan",
        order_by="MinistryLeadership.id",
    )
    events = relationship("Event", back_populates="ministry")


class MinistryLeadership(Base):
    __tablename__ = "ministry_leaders"
    __table_args__ = (UniqueConstraint("ministry_id", "identity_id", name="uq_ministry_leader"),)

    id = Column(Integer, primary_key=True)
    ministry_id = Column(Integer, ForeignKey("ministries.id", ondelete="CASCADE"), nullable=False, index=True)
    identity_id = Column(Integer, ForeignKey("identities.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    ministry = relationship("Ministry", back_populates="leaderships")
    identity = relationship("Identity", back_populates="leaderships", lazy="joined")
