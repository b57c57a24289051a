"""
Tests for the meeting service.
"""

from datetime import datetime, timedelta, timezone

import pytest

from networking_tracker.models import MeetingPlatform, MeetingStatus
from networking_tracker.services import ContactService, MeetingService


@pytest.fixture
def contacts(db):
    service = ContactService(db)
    return (
        service.create(name="Zoe Zhang", email="zoe@example.com", role="PM", company="Zeta"),
        service.create(name="Adam Archer", email="adam@example.com", role="SRE", company="Alpha"),
    )


@pytest.fixture
def service(db):
    return MeetingService(db)


@pytest.fixture
def meetings(service, contacts):
    zoe, adam = contacts
    return [
        service.create(zoe.id, "Coffee chat", datetime(2024, 3, 1, 10, 0)),
        service.create(
            adam.id, "Intro call", datetime(2024, 2, 1, 15, 0),
            platform="Zoom", meeting_link="https://zoom.us/j/1", duration_minutes=45,
        ),
        service.create(
            zoe.id, "Lunch", datetime(2024, 4, 1, 12, 0),
            platform=MeetingPlatform.IN_PERSON, status="Completed", summary="Talked roadmaps",
        ),
    ]


class TestCreate:
    """Tests for scheduling meetings."""

    def test_defaults(self, service, contacts):
        meeting = service.create(contacts[0].id, "  Coffee chat ", datetime(2024, 3, 1, 10, 0))

        assert meeting.id is not None
        assert meeting.title == "Coffee chat"
        assert meeting.platform == MeetingPlatform.GOOGLE_MEET
        assert meeting.status == MeetingStatus.SCHEDULED
        assert meeting.duration_minutes == 30
        assert meeting.contact_name == "Zoe Zhang"

    def test_platform_by_name_or_value(self, service, contacts):
        assert service.create(contacts[0].id, "a", datetime(2024, 1, 1), platform="in person").platform \
            == MeetingPlatform.IN_PERSON
        assert service.create(contacts[0].id, "b", datetime(2024, 1, 1), platform="PHONE").platform \
            == MeetingPlatform.PHONE

    def test_aware_time_stored_as_utc(self, service, contacts):
        scheduled = datetime(2024, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        meeting = service.create(contacts[0].id, "Call", scheduled)
        assert meeting.scheduled_at == datetime(2024, 3, 1, 8, 0)

    def test_unknown_contact(self, service):
        with pytest.raises(ValueError, match="not found"):
            service.create(999, "Ghost meeting", datetime(2024, 1, 1))

    @pytest.mark.parametrize("duration", [0, -15])
    def test_invalid_duration(self, service, contacts, duration):
        with pytest.raises(ValueError, match="Duration"):
            service.create(contacts[0].id, "Call", datetime(2024, 1, 1), duration_minutes=duration)

    def test_missing_title(self, service, contacts):
        with pytest.raises(ValueError, match="title"):
            service.create(contacts[0].id, " ", datetime(2024, 1, 1))

    def test_unknown_platform(self, service, contacts):
        with pytest.raises(ValueError, match="MeetingPlatform"):
            service.create(contacts[0].id, "Call", datetime(2024, 1, 1), platform="Carrier pigeon")


class TestQueries:
    """Tests for listing meetings."""

    def test_newest_first(self, service, meetings):
        assert [m.title for m in service.get_all()] == ["Lunch", "Coffee chat", "Intro call"]

    def test_oldest_first(self, service, meetings):
        assert [m.title for m in service.get_all(sort_by="date-asc")] == [
            "Intro call", "Coffee chat", "Lunch",
        ]

    def test_by_contact(self, service, meetings):
        assert [m.title for m in service.get_all(sort_by="contact")] == [
            "Intro call", "Coffee chat", "Lunch",
        ]

    def test_filter_by_status(self, service, meetings):
        assert [m.title for m in service.get_all(status="Completed")] == ["Lunch"]
        assert len(service.get_all(status=MeetingStatus.SCHEDULED)) == 2

    def test_filter_by_contact(self, service, contacts, meetings):
        assert [m.title for m in service.get_all(contact_id=contacts[1].id)] == ["Intro call"]

    def test_unknown_sort(self, service):
        with pytest.raises(ValueError):
            service.get_all(sort_by="random")

    def test_upcoming(self, service, meetings):
        upcoming = service.get_upcoming(as_of=datetime(2024, 2, 15))
        assert [m.title for m in upcoming] == ["Coffee chat"]


class TestUpdateAndDelete:
    """Tests for editing and removing meetings."""

    def test_update(self, service, contacts, meetings):
        coffee = meetings[0]

        updated = service.update(
            coffee.id, status="cancelled", duration_minutes="60",
            contact_id=contacts[1].id, created_at=datetime(2000, 1, 1),
        )

        assert updated.status == MeetingStatus.CANCELLED
        assert updated.duration_minutes == 60
        assert updated.contact_name == "Adam Archer"
        assert updated.created_at != datetime(2000, 1, 1)

    def test_update_invalid_duration(self, service, meetings):
        with pytest.raises(ValueError):
            service.update(meetings[0].id, duration_minutes=0)

    def test_update_missing(self, service):
        assert service.update(404, title="Nope") is None

    def test_delete(self, service, meetings):
        assert service.delete(meetings[0].id) is True
        assert service.get_by_id(meetings[0].id) is None
        assert service.delete(meetings[0].id) is False

    def test_deleting_contact_removes_meetings(self, db, service, contacts, meetings):
        ContactService(db).delete(contacts[0].id)

        assert [m.title for m in service.get_all()] == ["Intro call"]
