"""
Template management service.

Handles CRUD operations for email templates and renders them for a
contact.
"""

import re
from typing import Any, Optional
from sqlalchemy.orm import Session

from ..config import config
from ..models import Contact, EmailType, Template, DEFAULT_TEMPLATES, utcnow

EDITABLE_FIELDS = (
    'name', 'description', 'email_type', 'subject_template',
    'body_template', 'is_default', 'is_active',
)

NOTES_EXCERPT_LENGTH = 100

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def parse_email_type(value: Any) -> EmailType:
    """Parse an email type ("cold" or "followup")."""
    if isinstance(value, EmailType):
        return value
    try:
        return EmailType(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown email type '{value}'. Choose from: cold, followup") from None


def build_variables(contact: Contact, sender_name: str) -> dict[str, str]:
    """Template variables for a contact."""
    if contact.last_contacted_at:
        last = contact.last_contacted_at
        last_contacted_clause = f" from {last.strftime('%B')} {last.day}"
    else:
        last_contacted_clause = ""

    if contact.notes:
        notes_clause = (
            "I've been thinking about what you mentioned about "
            f"{contact.notes[:NOTES_EXCERPT_LENGTH]}..."
        )
    else:
        notes_clause = "I really enjoyed our discussion and found your insights valuable."

    return {
        "name": contact.name,
        "first_name": contact.first_name,
        "email": contact.email,
        "company": contact.company,
        "role": contact.role,
        "role_lower": (contact.role or "").lower(),
        "alumni_clause": " and our shared alma mater connection" if contact.is_alumni else "",
        "last_contacted_clause": last_contacted_clause,
        "notes_clause": notes_clause,
        "sender_name": sender_name,
    }


def substitute(text: str, variables: dict[str, str]) -> str:
    """
    Replace {{variable_name}} placeholders in a single pass.

    Substituted values are not scanned again, and unknown placeholders
    are left as they are.
    """
    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        return str(variables[key] or "")

    return VARIABLE_PATTERN.sub(replace, text)


class TemplateService:
    """Service for managing email templates."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        email_type: Optional[Any] = None,
        active_only: bool = True,
    ) -> list[Template]:
        """Get all templates."""
        query = self.db.query(Template)

        if active_only:
            query = query.filter(Template.is_active == True)

        if email_type:
            query = query.filter(Template.email_type == parse_email_type(email_type))

        return query.order_by(Template.is_default.desc(), Template.name).all()

    def get_by_id(self, template_id: int) -> Optional[Template]:
        """Get a template by ID."""
        return self.db.query(Template).filter(Template.id == template_id).first()

    def get_default(self, email_type: Any) -> Optional[Template]:
        """Get the default template for an email type."""
        return self.db.query(Template).filter(
            Template.email_type == parse_email_type(email_type),
            Template.is_default == True,
            Template.is_active == True
        ).first()

    def _clear_default(self, email_type: EmailType, keep_id: Optional[int] = None) -> None:
        query = self.db.query(Template).filter(Template.email_type == email_type)
        if keep_id is not None:
            query = query.filter(Template.id != keep_id)
        query.update({"is_default": False})

    def create(
        self,
        name: str,
        email_type: Any,
        subject_template: str,
        body_template: str,
        description: Optional[str] = None,
        is_default: bool = False,
    ) -> Template:
        """Create a new template."""
        email_type = parse_email_type(email_type)
        if not (name or '').strip():
            raise ValueError("Template name is required")

        # Only one default per email type
        if is_default:
            self._clear_default(email_type)

        template = Template(
            name=name.strip(),
            description=description,
            email_type=email_type,
            subject_template=subject_template,
            body_template=body_template,
            is_default=is_default,
        )
        self.db.add(template)
        self.db.flush()
        return template

    def update(self, template_id: int, **kwargs) -> Optional[Template]:
        """Update a template's fields."""
        template = self.get_by_id(template_id)
        if not template:
            return None

        if 'email_type' in kwargs:
            kwargs['email_type'] = parse_email_type(kwargs['email_type'])

        for key, value in kwargs.items():
            if key in EDITABLE_FIELDS:
                setattr(template, key, value)

        # Checked after the change so a default moved to another type stays unique
        if template.is_default:
            self._clear_default(template.email_type, keep_id=template.id)

        template.updated_at = utcnow()
        self.db.flush()
        return template

    def delete(self, template_id: int) -> bool:
        """Delete a template."""
        template = self.get_by_id(template_id)
        if not template:
            return False

        self.db.delete(template)
        self.db.flush()
        return True

    def duplicate(self, template_id: int, new_name: Optional[str] = None) -> Optional[Template]:
        """Create a copy of an existing template."""
        original = self.get_by_id(template_id)
        if not original:
            return None

        return self.create(
            name=new_name or f"{original.name} (Copy)",
            description=original.description,
            email_type=original.email_type,
            subject_template=original.subject_template,
            body_template=original.body_template,
            is_default=False,
        )

    def create_defaults(self) -> list[Template]:
        """Create the built-in templates, each the default for its type."""
        return [
            self.create(**template_data, is_default=True)
            for template_data in DEFAULT_TEMPLATES
        ]

    def render(
        self,
        template: Template,
        contact: Contact,
        sender_name: Optional[str] = None,
    ) -> tuple[str, str]:
        """
        Render a template for a contact.

        Args:
            template: The template to render
            contact: Recipient of the email
            sender_name: Name to sign with (defaults to config.SENDER_NAME)

        Returns:
            Tuple of (subject, body)
        """
        variables = build_variables(contact, sender_name or config.SENDER_NAME)
        return (
            substitute(template.subject_template or "", variables),
            substitute(template.body_template or "", variables),
        )

    def generate_email(
        self,
        contact: Contact,
        email_type: Any = EmailType.COLD,
        template: Optional[Template] = None,
        sender_name: Optional[str] = None,
    ) -> tuple[str, str]:
        """
        Generate an outreach email for a contact.

        Uses ``template`` if given, else the stored default for the email
        type, else the built-in wording.
        """
        email_type = parse_email_type(email_type)

        if not template:
            template = self.get_default(email_type)

        if not template:
            builtin = next(t for t in DEFAULT_TEMPLATES if t["email_type"] == email_type)
            template = Template(**builtin)

        return self.render(template, contact, sender_name)
