"""
SQLAlchemy models for the LightChurch backend.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.account import Account, AccountRole, AccountStatus
from backend.src.models.church import Church
from backend.src.models.event import Event, EventDetail, EventTranslation
from backend.src.models.event_interest import EventInterest
from backend.src.models.push_target import PushTarget, PushPlatform

__all__ = [
    "Base",
    "Account",
    "AccountRole",
    "AccountStatus",
    "Church",
    "Event",
    "EventDetail",
    "EventTranslation",
    "EventInterest",
    "PushTarget",
    "PushPlatform",
]
