"""
Contact management service.

Handles CRUD operations for contacts and records the interactions
that reschedule their follow-ups.
"""

import csv
import logging
import re
from datetime import datetime
from io import StringIO
from typing import Any, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..followup import RelationshipTier, coerce_tier
from ..interactions import ContactResponded, EmailSent, apply_interaction
from ..models import Contact, ContactStatus, EmailType, utcnow, to_storage_time

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

REQUIRED_FIELDS = ('name', 'email', 'role', 'company')

# follow_up_at and last_contacted_at are left to interactions.apply_interaction
EDITABLE_FIELDS = (
    'name', 'email', 'role', 'company', 'linkedin_url',
    'status', 'is_alumni', 'relationship_tier', 'notes',
)

SORT_OPTIONS = ('name', 'company', 'last_contacted', 'follow_up')

CSV_FIELDNAMES = [
    'Name', 'Email', 'Role', 'Company', 'Relationship',
    'Status', 'Alumni', 'LinkedIn', 'Notes',
]


class DuplicateContactError(ValueError):
    """A contact with the same email already exists."""


def validate_email(email: str) -> bool:
    """Validate email format."""
    return bool(EMAIL_PATTERN.match(email))


def parse_tier(value: Any) -> RelationshipTier:
    """Parse a relationship tier from user input, raising ValueError if unknown."""
    tier = coerce_tier(value.strip().lower() if isinstance(value, str) else value)
    if tier is None:
        choices = ", ".join(t.value for t in RelationshipTier)
        raise ValueError(f"Unknown relationship '{value}'. Choose from: {choices}")
    return tier


def parse_status(value: Any) -> ContactStatus:
    """Parse a contact status from user input, raising ValueError if unknown."""
    if isinstance(value, ContactStatus):
        return value
    try:
        return ContactStatus(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in ContactStatus)
        raise ValueError(f"Unknown status '{value}'. Choose from: {choices}") from None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "y")


class ContactService:
    """Service for managing contacts."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: Optional[int] = 100,
        search: Optional[str] = None,
        status: Optional[Any] = None,
        relationship_tier: Optional[Any] = None,
        sort_by: str = "name",
    ) -> list[Contact]:
        """
        Get contacts matching the given filters.

        Args:
            skip: Number of records to skip (pagination)
            limit: Maximum records to return (None for all)
            search: Search in name, email, company and role
            status: Filter by ContactStatus
            relationship_tier: Filter by RelationshipTier
            sort_by: One of SORT_OPTIONS
        """
        query = self.db.query(Contact)

        if search:
            # % and _ in the search text match literally
            escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            search_term = f"%{escaped}%"
            query = query.filter(
                (Contact.name.ilike(search_term, escape="\\")) |
                (Contact.email.ilike(search_term, escape="\\")) |
                (Contact.company.ilike(search_term, escape="\\")) |
                (Contact.role.ilike(search_term, escape="\\"))
            )

        if status:
            query = query.filter(Contact.status == parse_status(status))

        if relationship_tier:
            query = query.filter(Contact.relationship_tier == parse_tier(relationship_tier))

        if sort_by == "name":
            query = query.order_by(func.lower(Contact.name), Contact.id)
        elif sort_by == "company":
            query = query.order_by(func.lower(Contact.company), Contact.id)
        elif sort_by == "last_contacted":
            # Most recent first, never contacted last
            query = query.order_by(
                Contact.last_contacted_at.is_(None),
                Contact.last_contacted_at.desc(),
                Contact.id,
            )
        elif sort_by == "follow_up":
            # Soonest first, unscheduled last
            query = query.order_by(
                Contact.follow_up_at.is_(None),
                Contact.follow_up_at.asc(),
                Contact.id,
            )
        else:
            raise ValueError(f"Unknown sort '{sort_by}'. Choose from: {', '.join(SORT_OPTIONS)}")

        return query.offset(skip).limit(limit).all()

    def get_count(self) -> int:
        """Get total count of contacts."""
        return self.db.query(Contact).count()

    def get_by_id(self, contact_id: int) -> Optional[Contact]:
        """Get a contact by ID."""
        return self.db.query(Contact).filter(Contact.id == contact_id).first()

    def get_by_email(self, email: str) -> Optional[Contact]:
        """Get a contact by email."""
        return self.db.query(Contact).filter(
            Contact.email == email.lower().strip()
        ).first()

    def create(
        self,
        name: str,
        email: str,
        role: str,
        company: str,
        relationship_tier: Any = RelationshipTier.STRANGER,
        status: Any = ContactStatus.NEW,
        is_alumni: bool = False,
        linkedin_url: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Contact:
        """Create a new contact."""
        values = {
            'name': (name or '').strip(),
            'email': (email or '').lower().strip(),
            'role': (role or '').strip(),
            'company': (company or '').strip(),
        }
        missing = [key for key in REQUIRED_FIELDS if not values[key]]
        if missing:
            raise ValueError(f"Missing required field(s): {', '.join(missing)}")

        if not validate_email(values['email']):
            raise ValueError(f"Invalid email format: {values['email']}")

        if self.get_by_email(values['email']):
            raise DuplicateContactError(f"A contact with email {values['email']} already exists")

        contact = Contact(
            **values,
            relationship_tier=parse_tier(relationship_tier),
            status=parse_status(status),
            is_alumni=bool(is_alumni),
            linkedin_url=(linkedin_url or '').strip() or None,
            notes=(notes or '').strip() or None,
        )
        self.db.add(contact)
        self.db.flush()
        logger.info(f"Created contact {contact.id}: {contact.name}")
        return contact

    def update(self, contact_id: int, **kwargs) -> Optional[Contact]:
        """Update a contact's editable fields."""
        contact = self.get_by_id(contact_id)
        if not contact:
            return None

        for key, value in kwargs.items():
            if key not in EDITABLE_FIELDS:
                logger.debug(f"Ignoring update of '{key}' on contact {contact_id}")
                continue

            if key == 'email':
                value = (value or '').lower().strip()
                if not validate_email(value):
                    raise ValueError(f"Invalid email format: {value}")
                existing = self.get_by_email(value)
                if existing and existing.id != contact.id:
                    raise DuplicateContactError(f"A contact with email {value} already exists")
            elif key in REQUIRED_FIELDS:
                value = (value or '').strip()
                if not value:
                    raise ValueError(f"{key} cannot be empty")
            elif key == 'relationship_tier':
                value = parse_tier(value)
            elif key == 'status':
                value = parse_status(value)
            elif key == 'is_alumni':
                value = _parse_bool(value)
            else:
                value = (value or '').strip() or None

            setattr(contact, key, value)

        contact.updated_at = utcnow()
        self.db.flush()
        return contact

    def delete(self, contact_id: int) -> bool:
        """Delete a contact."""
        contact = self.get_by_id(contact_id)
        if not contact:
            return False

        self.db.delete(contact)
        self.db.flush()
        logger.info(f"Deleted contact {contact_id}")
        return True

    # ========================================
    # Interactions
    # ========================================

    def record_email_sent(
        self,
        contact_id: int,
        sent_at: Optional[datetime] = None,
        email_type: Any = EmailType.COLD,
    ) -> Optional[Contact]:
        """Mark an email as sent and schedule the next follow-up."""
        contact = self.get_by_id(contact_id)
        if not contact:
            return None

        if not isinstance(email_type, EmailType):
            email_type = EmailType(email_type)

        event = EmailSent(
            occurred_at=sent_at or utcnow(),
            email_type=email_type,
        )
        apply_interaction(contact, event)
        self.db.flush()
        return contact

    def mark_responded(
        self,
        contact_id: int,
        responded_at: Optional[datetime] = None,
    ) -> Optional[Contact]:
        """Mark a contact as having responded and schedule the next follow-up."""
        contact = self.get_by_id(contact_id)
        if not contact:
            return None

        event = ContactResponded(
            occurred_at=responded_at or utcnow(),
        )
        apply_interaction(contact, event)
        self.db.flush()
        return contact

    def get_due_follow_ups(self, as_of: Optional[datetime] = None) -> list[Contact]:
        """Get contacts whose follow-up date has been reached, soonest first."""
        as_of = to_storage_time(as_of) if as_of else utcnow()
        return (
            self.db.query(Contact)
            .filter(Contact.follow_up_at.isnot(None), Contact.follow_up_at <= as_of)
            .order_by(Contact.follow_up_at.asc(), Contact.id)
            .all()
        )

    # ========================================
    # Statistics
    # ========================================

    def get_stats(self, as_of: Optional[datetime] = None) -> dict:
        """Get contact statistics."""
        total = self.get_count()

        status_counts = (
            self.db.query(Contact.status, func.count(Contact.id))
            .group_by(Contact.status)
            .all()
        )
        tier_counts = (
            self.db.query(Contact.relationship_tier, func.count(Contact.id))
            .group_by(Contact.relationship_tier)
            .all()
        )
        by_status = {status.value: count for status, count in status_counts}

        return {
            'total': total,
            'need_follow_up': len(self.get_due_follow_ups(as_of)),
            'meetings_done': by_status.get(ContactStatus.MEETING_COMPLETED.value, 0),
            'awaiting_reply': by_status.get(ContactStatus.AWAITING_REPLY.value, 0),
            'by_status': by_status,
            'by_relationship': {tier.value: count for tier, count in tier_counts},
        }

    # ========================================
    # CSV
    # ========================================

    def import_from_csv(self, csv_content: str) -> tuple[int, list[str]]:
        """
        Import contacts from CSV content.

        Args:
            csv_content: CSV file content as string

        Returns:
            Tuple of (imported_count, error_messages)
        """
        errors = []
        imported = 0

        # Handle BOM
        if csv_content.startswith('\ufeff'):
            csv_content = csv_content[1:]

        reader = csv.DictReader(StringIO(csv_content))

        for i, row in enumerate(reader, start=2):  # Start at 2 for header row
            # Extra unnamed columns land under a None key
            row = {k.strip().lower(): (v or '').strip() for k, v in row.items() if k is not None}

            tier = coerce_tier(row.get('relationship', '').lower()) or RelationshipTier.STRANGER
            try:
                self.create(
                    name=row.get('name', ''),
                    email=row.get('email', ''),
                    role=row.get('role', ''),
                    company=row.get('company', ''),
                    relationship_tier=tier,
                    status=row.get('status') or ContactStatus.NEW,
                    is_alumni=_parse_bool(row.get('alumni')),
                    linkedin_url=row.get('linkedin'),
                    notes=row.get('notes'),
                )
                imported += 1
            except ValueError as e:
                logger.warning(f"Skipping CSV row {i}: {e}")
                errors.append(f"Row {i}: {e}")

        return imported, errors

    def export_to_csv(self) -> str:
        """Export all contacts to CSV format."""
        contacts = self.get_all(limit=None)

        output = StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_FIELDNAMES)
        writer.writeheader()

        for contact in contacts:
            writer.writerow({
                'Name': contact.name,
                'Email': contact.email,
                'Role': contact.role,
                'Company': contact.company,
                'Relationship': contact.relationship_tier.value,
                'Status': contact.status.value,
                'Alumni': 'yes' if contact.is_alumni else 'no',
                'LinkedIn': contact.linkedin_url or '',
                'Notes': contact.notes or '',
            })

        return output.getvalue()
