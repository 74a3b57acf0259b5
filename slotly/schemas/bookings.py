"""Pydantic models for the booking mutation surface."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookingCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event_type_id: Optional[str] = None
    invitee_name: str = Field(min_length=1, max_length=200)
    invitee_email: str = Field(min_length=3, max_length=320)
    invitee_notes: Optional[str] = None
    answers: Optional[dict[str, Any]] = None
    start_time: datetime
    timezone: str = "UTC"

    @field_validator("invitee_name", "invitee_notes")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip()

    @field_validator("invitee_email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("invitee_email is not a valid address")
        return value

    @field_validator("start_time")
    @classmethod
    def _require_offset(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("start_time must include a UTC offset")
        return value


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingReschedule(BaseModel):
    start_time: datetime

    @field_validator("start_time")
    @classmethod
    def _require_offset(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("start_time must include a UTC offset")
        return value


class BookingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_type_id: Optional[str] = None
    invitee_name: str
    invitee_email: str
    start_time: datetime
    end_time: datetime
    timezone: str
    status: str
    no_show_score: Optional[int] = None
    risk_tier: Optional[str] = None
    outcome: Optional[str] = None
    created_at: datetime

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # SQLite returns naive values; they are always stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
