"""
Command-line interface for the networking tracker.

Usage:
    networking-tracker init-db                      Create the database
    networking-tracker contacts add ...             Add a contact
    networking-tracker contacts sent 3              Record an email to contact 3
    networking-tracker followups                    Show follow-ups that are due
    networking-tracker email 3 --type followup      Draft a follow-up email
    networking-tracker --help                       Show help
"""

import logging
from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import config
from .database import get_db, init_db
from .followup import FOLLOW_UP_INTERVALS, RelationshipTier, describe_interval
from .models import Contact, ContactStatus, EmailType, MeetingPlatform, MeetingStatus, utcnow
from .services import ContactService, MeetingService, TemplateService
from .services.contact_service import SORT_OPTIONS as CONTACT_SORTS
from .services.meeting_service import SORT_OPTIONS as MEETING_SORTS

console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"]

TIER_CHOICES = click.Choice([t.value for t in RelationshipTier], case_sensitive=False)
STATUS_CHOICES = click.Choice([s.value for s in ContactStatus], case_sensitive=False)
EMAIL_TYPE_CHOICES = click.Choice([t.value for t in EmailType], case_sensitive=False)
PLATFORM_CHOICES = click.Choice([p.value for p in MeetingPlatform], case_sensitive=False)
MEETING_STATUS_CHOICES = click.Choice([s.value for s in MeetingStatus], case_sensitive=False)


def _fail(message: str) -> None:
    console.print(f"[red]✗ {escape(message)}[/red]")
    raise click.Abort()


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%b %d, %Y") if value else "-"


def _follow_up_cell(contact: Contact, as_of: datetime) -> str:
    if contact.follow_up_at is None:
        return "-"
    if contact.is_follow_up_due(as_of):
        return f"[red bold]Overdue[/red bold] ({_fmt_date(contact.follow_up_at)})"
    return _fmt_date(contact.follow_up_at)


def _contacts_table(contacts: list[Contact], title: str) -> Table:
    now = utcnow()
    table = Table(title=title)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Company")
    table.add_column("Role")
    table.add_column("Relationship")
    table.add_column("Status")
    table.add_column("Last contact")
    table.add_column("Follow up")
    for c in contacts:
        name = escape(c.name)
        if c.is_alumni:
            name += " 🎓"
        table.add_row(
            str(c.id),
            name,
            escape(c.company),
            escape(c.role),
            c.relationship_tier.value,
            c.status.value.replace("_", " "),
            _fmt_date(c.last_contacted_at),
            _follow_up_cell(c, now),
        )
    return table


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show INFO level log messages.")
def main(verbose: bool) -> None:
    """
    Networking Tracker - Personal CRM for professional networking.

    Track contacts and meetings, draft outreach emails, and get
    follow-up reminders based on relationship strength.
    """
    level = logging.getLevelName(config.LOG_LEVEL)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=logging.INFO if verbose else level,
        format="%(levelname)s: %(message)s",
    )
    for error in config.validate():
        console.print(f"[yellow]Config warning: {escape(error)}[/yellow]")


@main.command("init-db")
@click.option("--with-templates/--no-templates", default=True,
              help="Also create the built-in email templates.")
def init_db_command(with_templates: bool) -> None:
    """Create the database tables."""
    init_db()
    if with_templates:
        with get_db() as db:
            service = TemplateService(db)
            if not service.get_all(active_only=False):
                service.create_defaults()
    console.print(f"[green]✓ Database ready:[/green] {escape(config.DATABASE_URL)}")


@main.command()
def tiers() -> None:
    """Show the follow-up cadence for each relationship tier."""
    table = Table(title="Follow-up cadence")
    table.add_column("Relationship", style="cyan")
    table.add_column("Days", justify="right")
    table.add_column("Follow up every")
    for tier in RelationshipTier:
        table.add_row(tier.value, str(FOLLOW_UP_INTERVALS[tier]), describe_interval(tier))
    console.print(table)


# ========================================
# Contacts
# ========================================

@main.group()
def contacts() -> None:
    """Manage contacts."""


@contacts.command("add")
@click.option("--name", required=True, help="Full name.")
@click.option("--email", required=True, help="Email address.")
@click.option("--role", required=True, help="Job title or role.")
@click.option("--company", required=True, help="Company name.")
@click.option("--relationship", type=TIER_CHOICES, default=RelationshipTier.STRANGER.value,
              show_default=True, help="How well you know them.")
@click.option("--status", type=STATUS_CHOICES, default=ContactStatus.NEW.value, show_default=True)
@click.option("--alumni/--no-alumni", default=False, help="Shared alma mater.")
@click.option("--linkedin", default=None, help="LinkedIn profile URL.")
@click.option("--notes", default=None, help="Free-form notes.")
def contacts_add(name, email, role, company, relationship, status, alumni, linkedin, notes) -> None:
    """Add a new contact."""
    with get_db() as db:
        try:
            contact = ContactService(db).create(
                name=name,
                email=email,
                role=role,
                company=company,
                relationship_tier=relationship,
                status=status,
                is_alumni=alumni,
                linkedin_url=linkedin,
                notes=notes,
            )
        except ValueError as e:
            _fail(str(e))
        console.print(
            f"[green]✓ Added {escape(contact.name)}[/green] (id {contact.id}), "
            f"follow up every {describe_interval(contact.relationship_tier)} once contacted"
        )


@contacts.command("list")
@click.option("--search", "-s", default=None, help="Search name, email, company or role.")
@click.option("--status", type=STATUS_CHOICES, default=None)
@click.option("--relationship", type=TIER_CHOICES, default=None)
@click.option("--sort", "sort_by", type=click.Choice(CONTACT_SORTS), default="name", show_default=True)
@click.option("--limit", type=int, default=None, help="Maximum rows to show.")
def contacts_list(search, status, relationship, sort_by, limit) -> None:
    """List contacts."""
    with get_db() as db:
        service = ContactService(db)
        found = service.get_all(
            limit=limit or config.DEFAULT_LIST_LIMIT,
            search=search,
            status=status,
            relationship_tier=relationship,
            sort_by=sort_by,
        )
        if not found:
            if service.get_count() == 0:
                console.print("[yellow]No contacts yet. Add one with 'contacts add'.[/yellow]")
            else:
                console.print("[yellow]No contacts match your filters.[/yellow]")
            return
        console.print(_contacts_table(found, f"Contacts ({len(found)})"))


@contacts.command("show")
@click.argument("contact_id", type=int)
def contacts_show(contact_id: int) -> None:
    """Show one contact in detail."""
    with get_db() as db:
        contact = ContactService(db).get_by_id(contact_id)
        if not contact:
            _fail(f"Contact {contact_id} not found")

        lines = [
            f"[bold]{escape(contact.role)}[/bold] at {escape(contact.company)}",
            f"Email: {escape(contact.email)}",
            f"LinkedIn: {escape(contact.linkedin_url or '-')}",
            f"Alumni: {'Yes' if contact.is_alumni else 'No'}",
            f"Status: {contact.status.value.replace('_', ' ')}",
            f"Relationship: {contact.relationship_tier.value} "
            f"(follow up every {describe_interval(contact.relationship_tier)})",
            f"Last contact: {_fmt_date(contact.last_contacted_at)}",
            f"Follow up: {_follow_up_cell(contact, utcnow())}",
        ]
        if contact.notes:
            lines.append(f"\nNotes: {escape(contact.notes)}")
        if contact.meetings:
            lines.append(f"\nMeetings: {len(contact.meetings)}")

        border = "red" if contact.needs_action() else "blue"
        console.print(Panel(
            "\n".join(lines),
            title=escape(f"[{contact.initials}] {contact.name}"),
            border_style=border,
        ))


@contacts.command("edit")
@click.argument("contact_id", type=int)
@click.option("--name", default=None)
@click.option("--email", default=None)
@click.option("--role", default=None)
@click.option("--company", default=None)
@click.option("--relationship", type=TIER_CHOICES, default=None)
@click.option("--status", type=STATUS_CHOICES, default=None)
@click.option("--alumni/--no-alumni", default=None)
@click.option("--linkedin", default=None)
@click.option("--notes", default=None)
def contacts_edit(contact_id, name, email, role, company, relationship, status,
                  alumni, linkedin, notes) -> None:
    """Edit a contact. Only the given options change."""
    changes = {
        "name": name,
        "email": email,
        "role": role,
        "company": company,
        "relationship_tier": relationship,
        "status": status,
        "is_alumni": alumni,
        "linkedin_url": linkedin,
        "notes": notes,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        _fail("Nothing to update")

    with get_db() as db:
        try:
            contact = ContactService(db).update(contact_id, **changes)
        except ValueError as e:
            _fail(str(e))
        if not contact:
            _fail(f"Contact {contact_id} not found")
        console.print(f"[green]✓ Updated {escape(contact.name)}[/green]")


@contacts.command("delete")
@click.argument("contact_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
def contacts_delete(contact_id: int, yes: bool) -> None:
    """Delete a contact and its meetings."""
    if not yes and not click.confirm(f"Delete contact {contact_id} and its meetings?"):
        console.print("[yellow]Aborted.[/yellow]")
        return
    with get_db() as db:
        if not ContactService(db).delete(contact_id):
            _fail(f"Contact {contact_id} not found")
    console.print(f"[green]✓ Deleted contact {contact_id}[/green]")


@contacts.command("sent")
@click.argument("contact_id", type=int)
@click.option("--at", "sent_at", type=click.DateTime(formats=DATE_FORMATS), default=None,
              help="When the email was sent (UTC). Defaults to now.")
@click.option("--type", "email_type", type=EMAIL_TYPE_CHOICES, default=EmailType.COLD.value,
              show_default=True)
def contacts_sent(contact_id: int, sent_at: Optional[datetime], email_type: str) -> None:
    """Record that an email was sent and schedule the follow-up."""
    with get_db() as db:
        contact = ContactService(db).record_email_sent(contact_id, sent_at, email_type)
        if not contact:
            _fail(f"Contact {contact_id} not found")
        console.print(
            f"[green]✓ Email marked as sent to {escape(contact.name)}.[/green] "
            f"Follow up on {_fmt_date(contact.follow_up_at)} "
            f"(based on your {contact.relationship_tier.value} relationship)"
        )


@contacts.command("responded")
@click.argument("contact_id", type=int)
@click.option("--at", "responded_at", type=click.DateTime(formats=DATE_FORMATS), default=None,
              help="When they responded (UTC). Defaults to now.")
def contacts_responded(contact_id: int, responded_at: Optional[datetime]) -> None:
    """Mark a contact as having responded and schedule the next follow-up."""
    with get_db() as db:
        contact = ContactService(db).mark_responded(contact_id, responded_at)
        if not contact:
            _fail(f"Contact {contact_id} not found")
        console.print(
            f"[green]✓ Marked {escape(contact.name)} as responded.[/green] "
            f"Next follow-up on {_fmt_date(contact.follow_up_at)}"
        )


@contacts.command("import")
@click.argument("csv_file", type=click.File("r", encoding="utf-8"))
def contacts_import(csv_file) -> None:
    """Import contacts from a CSV file."""
    with get_db() as db:
        imported, errors = ContactService(db).import_from_csv(csv_file.read())
    console.print(f"[green]✓ Imported {imported} contact(s)[/green]")
    for error in errors:
        console.print(f"  [yellow]{escape(error)}[/yellow]")


@contacts.command("export")
@click.argument("csv_file", type=click.File("w", encoding="utf-8"), default="-")
def contacts_export(csv_file) -> None:
    """Export all contacts as CSV (stdout by default)."""
    with get_db() as db:
        csv_file.write(ContactService(db).export_to_csv())


@main.command()
@click.option("--as-of", type=click.DateTime(formats=DATE_FORMATS), default=None,
              help="Reference time (UTC). Defaults to now.")
def followups(as_of: Optional[datetime]) -> None:
    """Show contacts with a follow-up due."""
    with get_db() as db:
        due = ContactService(db).get_due_follow_ups(as_of)
        if not due:
            console.print("[green]No follow-ups due. 🎉[/green]")
            return
        console.print(_contacts_table(due, f"Follow-ups due ({len(due)})"))


# ========================================
# Email
# ========================================

@main.command()
@click.argument("contact_id", type=int)
@click.option("--type", "email_type", type=EMAIL_TYPE_CHOICES, default=EmailType.COLD.value,
              show_default=True)
@click.option("--template", "template_id", type=int, default=None, help="Template ID to use.")
@click.option("--sender", default=None, help="Name to sign with.")
@click.option("--mark-sent", is_flag=True, help="Also record the email as sent.")
def email(contact_id, email_type, template_id, sender, mark_sent) -> None:
    """Draft an outreach or follow-up email for a contact."""
    with get_db() as db:
        contact_service = ContactService(db)
        template_service = TemplateService(db)

        contact = contact_service.get_by_id(contact_id)
        if not contact:
            _fail(f"Contact {contact_id} not found")

        template = None
        if template_id is not None:
            template = template_service.get_by_id(template_id)
            if not template:
                _fail(f"Template {template_id} not found")

        subject, body = template_service.generate_email(contact, email_type, template, sender)

        title = "Cold Outreach" if email_type == EmailType.COLD.value else "Follow-up"
        console.print(Panel(
            f"[bold]To:[/bold] {escape(contact.email)}\n"
            f"[bold]Subject:[/bold] {escape(subject)}\n\n{escape(body)}",
            title=f"✉️  {title} Email - {escape(contact.name)}",
            border_style="blue",
        ))

        if mark_sent:
            contact_service.record_email_sent(contact.id, email_type=email_type)
            console.print(
                f"[green]✓ Marked as sent.[/green] Follow up on {_fmt_date(contact.follow_up_at)}"
            )


# ========================================
# Meetings
# ========================================

@main.group()
def meetings() -> None:
    """Manage meetings."""


@meetings.command("add")
@click.argument("contact_id", type=int)
@click.option("--title", required=True)
@click.option("--at", "scheduled_at", type=click.DateTime(formats=DATE_FORMATS), required=True)
@click.option("--platform", type=PLATFORM_CHOICES, default=MeetingPlatform.GOOGLE_MEET.value,
              show_default=True)
@click.option("--link", default=None, help="Meeting link.")
@click.option("--duration", type=int, default=30, show_default=True, help="Minutes.")
@click.option("--notes", default=None)
def meetings_add(contact_id, title, scheduled_at, platform, link, duration, notes) -> None:
    """Schedule a meeting with a contact."""
    with get_db() as db:
        try:
            meeting = MeetingService(db).create(
                contact_id=contact_id,
                title=title,
                scheduled_at=scheduled_at,
                platform=platform,
                meeting_link=link,
                duration_minutes=duration,
                notes=notes,
            )
        except ValueError as e:
            _fail(str(e))
        console.print(
            f"[green]✓ Scheduled '{escape(meeting.title)}' with {escape(meeting.contact_name)}[/green] "
            f"(id {meeting.id})"
        )


@meetings.command("list")
@click.option("--status", type=MEETING_STATUS_CHOICES, default=None)
@click.option("--contact", "contact_id", type=int, default=None)
@click.option("--sort", "sort_by", type=click.Choice(MEETING_SORTS), default="date-desc",
              show_default=True)
def meetings_list(status, contact_id, sort_by) -> None:
    """List meetings."""
    with get_db() as db:
        found = MeetingService(db).get_all(status=status, contact_id=contact_id, sort_by=sort_by)
        if not found:
            console.print("[yellow]No meetings found.[/yellow]")
            return

        table = Table(title=f"Meetings ({len(found)})")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("When")
        table.add_column("Title", style="cyan")
        table.add_column("Contact")
        table.add_column("Platform")
        table.add_column("Minutes", justify="right")
        table.add_column("Status")
        for m in found:
            table.add_row(
                str(m.id),
                m.scheduled_at.strftime("%b %d, %Y %H:%M"),
                escape(m.title),
                escape(m.contact_name),
                m.platform.value,
                str(m.duration_minutes),
                m.status.value,
            )
        console.print(table)


@meetings.command("edit")
@click.argument("meeting_id", type=int)
@click.option("--title", default=None)
@click.option("--at", "scheduled_at", type=click.DateTime(formats=DATE_FORMATS), default=None)
@click.option("--platform", type=PLATFORM_CHOICES, default=None)
@click.option("--link", default=None)
@click.option("--duration", type=int, default=None)
@click.option("--status", type=MEETING_STATUS_CHOICES, default=None)
@click.option("--notes", default=None)
@click.option("--summary", default=None)
def meetings_edit(meeting_id, title, scheduled_at, platform, link, duration, status,
                  notes, summary) -> None:
    """Edit a meeting. Only the given options change."""
    changes = {
        "title": title,
        "scheduled_at": scheduled_at,
        "platform": platform,
        "meeting_link": link,
        "duration_minutes": duration,
        "status": status,
        "notes": notes,
        "summary": summary,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        _fail("Nothing to update")

    with get_db() as db:
        try:
            meeting = MeetingService(db).update(meeting_id, **changes)
        except ValueError as e:
            _fail(str(e))
        if not meeting:
            _fail(f"Meeting {meeting_id} not found")
        console.print(f"[green]✓ Updated meeting '{escape(meeting.title)}'[/green]")


@meetings.command("delete")
@click.argument("meeting_id", type=int)
def meetings_delete(meeting_id: int) -> None:
    """Delete a meeting."""
    with get_db() as db:
        if not MeetingService(db).delete(meeting_id):
            _fail(f"Meeting {meeting_id} not found")
    console.print(f"[green]✓ Deleted meeting {meeting_id}[/green]")


# ========================================
# Templates
# ========================================

@main.group()
def templates() -> None:
    """Browse email templates."""


@templates.command("list")
@click.option("--type", "email_type", type=EMAIL_TYPE_CHOICES, default=None)
def templates_list(email_type) -> None:
    """List email templates."""
    with get_db() as db:
        found = TemplateService(db).get_all(email_type=email_type)
        if not found:
            console.print("[yellow]No templates. Run 'init-db' to create the defaults.[/yellow]")
            return

        table = Table(title="Templates")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        table.add_column("Default")
        for t in found:
            table.add_row(str(t.id), escape(t.name), t.email_type.value, "✓" if t.is_default else "")
        console.print(table)


@templates.command("show")
@click.argument("template_id", type=int)
def templates_show(template_id: int) -> None:
    """Show a template's subject and body."""
    with get_db() as db:
        template = TemplateService(db).get_by_id(template_id)
        if not template:
            _fail(f"Template {template_id} not found")
        console.print(Panel(
            f"[bold]Subject:[/bold] {escape(template.subject_template)}\n\n"
            f"{escape(template.body_template)}",
            title=escape(f"{template.name} ({template.email_type.value})"),
            border_style="blue",
        ))


@main.command()
def stats() -> None:
    """Show an overview of your network."""
    with get_db() as db:
        contact_stats = ContactService(db).get_stats()
        upcoming = MeetingService(db).get_upcoming()

    console.print(Panel(
        f"[bold]{contact_stats['total']}[/bold] total contacts\n"
        f"[yellow]{contact_stats['need_follow_up']}[/yellow] need follow up\n"
        f"[green]{contact_stats['meetings_done']}[/green] meetings done\n"
        f"[cyan]{contact_stats['awaiting_reply']}[/cyan] awaiting reply\n"
        f"{len(upcoming)} upcoming meeting(s)",
        title="📇 Your Network",
        border_style="blue",
    ))

    if contact_stats["by_relationship"]:
        table = Table(title="By relationship")
        table.add_column("Relationship", style="cyan")
        table.add_column("Contacts", justify="right")
        for tier, count in sorted(contact_stats["by_relationship"].items()):
            table.add_row(tier, str(count))
        console.print(table)


if __name__ == "__main__":
    main()
