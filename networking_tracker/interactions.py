"""
Contact interaction events.

Recording that an email was sent or that a contact responded are the
only two events that move a contact's follow-up date. Both go through
apply_interaction(), which is the single place follow_up_at is written.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from .followup import next_follow_up_date
from .models import ContactStatus, EmailType, to_storage_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailSent:
    """An outreach or follow-up email was sent to the contact."""
    occurred_at: datetime
    email_type: EmailType = EmailType.COLD


@dataclass(frozen=True)
class ContactResponded:
    """The contact replied."""
    occurred_at: datetime


InteractionEvent = Union[EmailSent, ContactResponded]

_STATUS_AFTER = {
    EmailSent: ContactStatus.AWAITING_REPLY,
    ContactResponded: ContactStatus.RESPONDED,
}


def apply_interaction(contact, event: InteractionEvent):
    """
    Apply an interaction event to a contact and reschedule its follow-up.

    Args:
        contact: Any object with status, relationship_tier,
            last_contacted_at, follow_up_at and updated_at attributes
        event: EmailSent or ContactResponded

    Returns:
        The same contact, updated in place
    """
    status = _STATUS_AFTER.get(type(event))
    if status is None:
        raise TypeError(f"Unsupported interaction event: {event!r}")

    # Days are added in the event's own zone, then stored as naive UTC
    follow_up_at = next_follow_up_date(contact.relationship_tier, event.occurred_at)
    occurred_at = to_storage_time(event.occurred_at)

    contact.status = status
    contact.last_contacted_at = occurred_at
    contact.follow_up_at = to_storage_time(follow_up_at)
    contact.updated_at = occurred_at

    logger.info(
        f"{type(event).__name__} for contact {getattr(contact, 'id', None)}: "
        f"next follow-up {contact.follow_up_at.isoformat()}"
    )
    return contact
