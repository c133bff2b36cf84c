"""
Account model for pastors and super administrators.

Accounts are the authenticated actors of the platform. A PASTOR account
organizes events (optionally on behalf of its church); a SUPER_ADMIN account
may act on any event.

Design Rationale:
- Accounts are validated by a super admin before they can act (status)
- role drives authorization; ownership of events is checked separately
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship

from backend.src.models import Base


class AccountRole(enum.Enum):
    """Authorization role of an account."""
    PASTOR = "PASTOR"
    SUPER_ADMIN = "SUPER_ADMIN"


class AccountStatus(enum.Enum):
    """
    Account lifecycle status.

    State transitions:
    - PENDING → VALIDATED (super admin approves)
    - PENDING → REJECTED (super admin refuses)
    """
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"


class Account(Base):
    """
    Authenticated account (pastor or super admin).

    Attributes:
        id: Primary key
        email: Login email (unique)
        first_name / last_name: Display name parts
        role: AccountRole
        status: AccountStatus (only VALIDATED accounts may act)
        created_at: Creation timestamp

    Relationships:
        church: Church owned by this account (one-to-one, optional)
        events: Events organized by this account
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(
        Enum(AccountRole, name="account_role", native_enum=False),
        default=AccountRole.PASTOR,
        nullable=False,
    )
    status = Column(
        Enum(AccountStatus, name="account_status", native_enum=False),
        default=AccountStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    church = relationship("Church", back_populates="owner", uselist=False)
    events = relationship(
        "Event",
        back_populates="organizer",
        foreign_keys="Event.organizer_id",
    )

    @property
    def full_name(self) -> str:
        """First and last name joined, empty parts skipped."""
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}', role={self.role})>"
