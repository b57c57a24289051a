"""
SQLAlchemy database models for the Networking Tracker.

This module defines the contact, meeting and email template tables.
Timestamps are stored as naive UTC.
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey,
    Enum as SQLEnum, Index,
)
from sqlalchemy.orm import relationship, declarative_base
import enum

from .followup import RelationshipTier

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, the storage format for all timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage_time(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ContactStatus(enum.Enum):
    """Where a contact is in the outreach pipeline."""
    NEW = "new"
    COLD_OUTREACH = "cold_outreach"
    AWAITING_REPLY = "awaiting_reply"
    RESPONDED = "responded"
    MEETING_SCHEDULED = "meeting_scheduled"
    MEETING_COMPLETED = "meeting_completed"
    FOLLOW_UP_NEEDED = "follow_up_needed"
    INACTIVE = "inactive"


class EmailType(enum.Enum):
    """Kind of outreach email."""
    COLD = "cold"
    FOLLOWUP = "followup"


class MeetingPlatform(enum.Enum):
    """Where a meeting takes place."""
    GOOGLE_MEET = "Google Meet"
    ZOOM = "Zoom"
    IN_PERSON = "In Person"
    PHONE = "Phone"
    OTHER = "Other"


class MeetingStatus(enum.Enum):
    """Status of a meeting."""
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Contact(Base):
    """A person in the user's professional network."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True)

    # Basic info
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    linkedin_url = Column(String(500), nullable=True)

    # Professional info
    role = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    is_alumni = Column(Boolean, default=False, nullable=False)

    # Relationship
    status = Column(SQLEnum(ContactStatus), default=ContactStatus.NEW, nullable=False)
    relationship_tier = Column(
        SQLEnum(RelationshipTier), default=RelationshipTier.STRANGER, nullable=False
    )
    notes = Column(Text, nullable=True)

    # Tracking (written only by interactions.apply_interaction)
    last_contacted_at = Column(DateTime, nullable=True)
    follow_up_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    meetings = relationship("Meeting", back_populates="contact", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_contacts_company', 'company'),
    )

    def __repr__(self):
        return f"<Contact {self.name} ({self.email})>"

    @property
    def first_name(self) -> str:
        """First word of the contact's name."""
        parts = (self.name or "").split()
        return parts[0] if parts else "there"

    @property
    def initials(self) -> str:
        """Up to two initials, e.g. "AL" for "Ada Lovelace"."""
        return "".join(word[0] for word in (self.name or "").split())[:2].upper()

    def is_follow_up_due(self, as_of: Optional[datetime] = None) -> bool:
        """Check whether the follow-up date has been reached."""
        if self.follow_up_at is None:
            return False
        return self.follow_up_at <= (as_of or utcnow())

    def needs_action(self, as_of: Optional[datetime] = None) -> bool:
        """Check if the contact is flagged or has a follow-up due."""
        return self.status == ContactStatus.FOLLOW_UP_NEEDED or self.is_follow_up_due(as_of)


class Meeting(Base):
    """A coffee chat, call or other meeting with a contact."""
    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    platform = Column(SQLEnum(MeetingPlatform), default=MeetingPlatform.GOOGLE_MEET, nullable=False)
    meeting_link = Column(String(500), nullable=True)

    scheduled_at = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, default=30, nullable=False)

    status = Column(SQLEnum(MeetingStatus), default=MeetingStatus.SCHEDULED, nullable=False)
    notes = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    contact = relationship("Contact", back_populates="meetings")

    def __repr__(self):
        return f"<Meeting {self.title} ({self.status.value})>"

    @property
    def contact_name(self) -> str:
        """Name of the contact this meeting is with."""
        return self.contact.name if self.contact else "Unknown"


class Template(Base):
    """Email template for generating outreach emails."""
    __tablename__ = "templates"

    id = Column(Integer, primary_key=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    email_type = Column(SQLEnum(EmailType), nullable=False, index=True)

    # Template content, can include {{variables}}
    subject_template = Column(String(500), nullable=False)
    body_template = Column(Text, nullable=False)

    # Settings
    is_default = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Template {self.name} ({self.email_type.value})>"


# ========================================
# Default Templates
# ========================================

DEFAULT_TEMPLATES = [
    {
        "name": "Coffee Chat Request",
        "description": "First-contact message asking for a short coffee chat",
        "email_type": EmailType.COLD,
        "subject_template": "Coffee chat opportunity - {{name}}",
        "body_template": """Hi {{first_name}},

I hope this email finds you well! I came across your profile and was really impressed by your work at {{company}}{{alumni_clause}}.

As someone interested in {{role_lower}}, I'd love to learn more about your journey and insights in the industry. Would you be open to a brief coffee chat sometime in the next couple of weeks?

I'm particularly curious about [specific area related to their role/company] and would greatly appreciate any advice you might have for someone looking to grow in this field.

Thank you for considering, and I completely understand if your schedule doesn't permit right now.

Best regards,
{{sender_name}}""",
    },
    {
        "name": "Conversation Follow-up",
        "description": "Picks the conversation back up after a previous chat",
        "email_type": EmailType.FOLLOWUP,
        "subject_template": "Following up on our conversation - {{name}}",
        "body_template": """Hi {{first_name}},

I hope you're doing well! I wanted to follow up on our previous conversation{{last_contacted_clause}}.

{{notes_clause}}

I'd love to continue our conversation and explore how we might be able to help each other professionally. Would you be available for another chat in the coming weeks?

Looking forward to hearing from you!

Best regards,
{{sender_name}}""",
    },
]
