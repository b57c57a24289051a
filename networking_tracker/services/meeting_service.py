"""
Meeting management service.

Handles CRUD operations for meetings with contacts.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Contact, Meeting, MeetingPlatform, MeetingStatus, utcnow, to_storage_time

logger = logging.getLogger(__name__)

SORT_OPTIONS = ('date-desc', 'date-asc', 'contact')

EDITABLE_FIELDS = (
    'contact_id', 'title', 'platform', 'meeting_link', 'scheduled_at',
    'duration_minutes', 'status', 'notes', 'summary',
)


def _parse_enum(enum_cls, value: Any):
    """Accept an enum member, its value or its name (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value.lower(), member.name.lower()):
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Unknown {enum_cls.__name__} '{value}'. Choose from: {choices}")


class MeetingService:
    """Service for managing meetings."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        status: Optional[Any] = None,
        contact_id: Optional[int] = None,
        sort_by: str = "date-desc",
    ) -> list[Meeting]:
        """Get meetings, optionally filtered by status or contact."""
        query = self.db.query(Meeting)

        if status:
            query = query.filter(Meeting.status == _parse_enum(MeetingStatus, status))

        if contact_id is not None:
            query = query.filter(Meeting.contact_id == contact_id)

        if sort_by == "date-desc":
            query = query.order_by(Meeting.scheduled_at.desc(), Meeting.id)
        elif sort_by == "date-asc":
            query = query.order_by(Meeting.scheduled_at.asc(), Meeting.id)
        elif sort_by == "contact":
            query = query.join(Meeting.contact).order_by(
                func.lower(Contact.name), Meeting.scheduled_at.asc()
            )
        else:
            raise ValueError(f"Unknown sort '{sort_by}'. Choose from: {', '.join(SORT_OPTIONS)}")

        return query.all()

    def get_by_id(self, meeting_id: int) -> Optional[Meeting]:
        """Get a meeting by ID."""
        return self.db.query(Meeting).filter(Meeting.id == meeting_id).first()

    def get_upcoming(self, as_of: Optional[datetime] = None) -> list[Meeting]:
        """Get scheduled meetings at or after ``as_of``, soonest first."""
        as_of = to_storage_time(as_of) if as_of else utcnow()
        return (
            self.db.query(Meeting)
            .filter(Meeting.status == MeetingStatus.SCHEDULED, Meeting.scheduled_at >= as_of)
            .order_by(Meeting.scheduled_at.asc())
            .all()
        )

    def _require_contact(self, contact_id: int) -> Contact:
        contact = self.db.query(Contact).filter(Contact.id == contact_id).first()
        if not contact:
            raise ValueError(f"Contact {contact_id} not found")
        return contact

    def create(
        self,
        contact_id: int,
        title: str,
        scheduled_at: datetime,
        platform: Any = MeetingPlatform.GOOGLE_MEET,
        meeting_link: Optional[str] = None,
        duration_minutes: int = 30,
        status: Any = MeetingStatus.SCHEDULED,
        notes: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> Meeting:
        """Create a new meeting with a contact."""
        contact = self._require_contact(contact_id)

        title = (title or '').strip()
        if not title:
            raise ValueError("Meeting title is required")

        if duration_minutes is None or int(duration_minutes) <= 0:
            raise ValueError("Duration must be a positive number of minutes")

        meeting = Meeting(
            contact=contact,
            title=title,
            scheduled_at=to_storage_time(scheduled_at),
            platform=_parse_enum(MeetingPlatform, platform),
            meeting_link=(meeting_link or '').strip() or None,
            duration_minutes=int(duration_minutes),
            status=_parse_enum(MeetingStatus, status),
            notes=(notes or '').strip() or None,
            summary=summary,
        )
        self.db.add(meeting)
        self.db.flush()
        logger.info(f"Created meeting {meeting.id} with {contact.name} at {meeting.scheduled_at}")
        return meeting

    def update(self, meeting_id: int, **kwargs) -> Optional[Meeting]:
        """Update a meeting's fields."""
        meeting = self.get_by_id(meeting_id)
        if not meeting:
            return None

        for key, value in kwargs.items():
            if key not in EDITABLE_FIELDS:
                logger.debug(f"Ignoring update of '{key}' on meeting {meeting_id}")
                continue

            if key == 'contact_id':
                meeting.contact = self._require_contact(value)
                continue
            elif key == 'title':
                value = (value or '').strip()
                if not value:
                    raise ValueError("Meeting title is required")
            elif key == 'platform':
                value = _parse_enum(MeetingPlatform, value)
            elif key == 'status':
                value = _parse_enum(MeetingStatus, value)
            elif key == 'scheduled_at':
                value = to_storage_time(value)
            elif key == 'duration_minutes':
                if value is None or int(value) <= 0:
                    raise ValueError("Duration must be a positive number of minutes")
                value = int(value)

            setattr(meeting, key, value)

        meeting.updated_at = utcnow()
        self.db.flush()
        return meeting

    def delete(self, meeting_id: int) -> bool:
        """Delete a meeting."""
        meeting = self.get_by_id(meeting_id)
        if not meeting:
            return False

        self.db.delete(meeting)
        self.db.flush()
        return True
