"""
Church model.

A church is owned by one pastor account and may host events. Its name is
used when composing push notifications about its events.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from backend.src.models import Base


class Church(Base):
    """
    Church record.

    Attributes:
        id: Primary key
        church_name: Display name
        admin_id: Owning pastor account (FK accounts.id)
        latitude / longitude: Church location (fallback venue for its events)
        created_at / updated_at: Timestamps
    """

    __tablename__ = "churches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    church_name = Column(String(255), nullable=False)
    admin_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    owner = relationship("Account", back_populates="church")
    events = relationship("Event", back_populates="church")

    def __repr__(self) -> str:
        return f"<Church(id={self.id}, name='{self.church_name}')>"
