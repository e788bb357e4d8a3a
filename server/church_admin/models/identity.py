from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from church_admin.core.db import Base


class IdentityRole(str, enum.Enum):
    PASTOR = "Pastor"
    LEADER = "Leader"


class Identity(Base):
    __tablename__ = "identities"

    id = Column(Integer, primary_key=True)
    person_id = Column(Integer, ForeignKey("people.id", ondelete="RESTRICT"), nullable=False, unique=True)
    handle = Column(String(150), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        Enum(IdentityRole, name="identity_role", values_callable=lambda roles: [role.value for role in roles]),
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    person = relationship("Person", back_populates="identity", lazy="joined")
    leaderships = relationship("MinistryLeadership", back_populates="identity")
