"""
Services layer for the Networking Tracker.
"""

from .contact_service import ContactService, DuplicateContactError
from .meeting_service import MeetingService
from .template_service import TemplateService

__all__ = ["ContactService", "DuplicateContactError", "MeetingService", "TemplateService"]
