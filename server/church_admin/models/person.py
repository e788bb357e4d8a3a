from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship

from church_admin.core.db import Base

PersonGender = Enum("Male", "Female", "Other", name="person_gender")


class Person(Base):
    __tablename__ = "people"

    id = Column(Integer, primary_key=True)
    first_names = Column(String(120), nullable=False)
    last_names = Column(String(120), nullable=False)
    national_id = Column(String(20), unique=True, nullable=True, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(25), nullable=True)
    gender = Column(PersonGender, nullable=True)
    birth_date = Column(Date, nullable=True)
    address = Column(String(255), nullable=True)
    education_level = Column(String(120), nullable=True)
    occupation = Column(String(120), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    identity = relationship("Identity", uselist=False, back_populates="person")

    @property
    def full_name(self) -> str:
        return " ".join(filter(None, [self.first_names, self.last_names]))
