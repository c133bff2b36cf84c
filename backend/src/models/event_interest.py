"""
EventInterest model: a device's declared intent to attend an event.

Interest is device-scoped, not account-scoped. The (event_id, device_id)
pair is unique; rows are hard-deleted when a device withdraws.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.src.models import Base


class EventInterest(Base):
    """
    Interest of one device in one event.

    Attributes:
        id: Primary key
        event_id: Target event (FK events.id, CASCADE on delete)
        device_id: Opaque device identifier supplied by the client
        created_at: When interest was declared
    """

    __tablename__ = "event_interests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    device_id = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    event = relationship("Event", back_populates="interests")

    __table_args__ = (
        UniqueConstraint("event_id", "device_id", name="uq_event_interests_event_device"),
    )

    def __repr__(self) -> str:
        return f"<EventInterest(event_id={self.event_id}, device_id='{self.device_id}')>"
