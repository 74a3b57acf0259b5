"""Bookable meeting templates, optionally owned by a team."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from slotly.database import Base


class EventType(Base):
    __tablename__ = "event_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String(36), nullable=True, index=True)
    title = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
