from datetime import datetime, timedelta

import pytest

from tutoring_center.core.exceptions import ValidationError
from tutoring_center.schedules.occurrence import occurrence_key
from tutoring_center.students.model import NewStudent

START = datetime(2024, 9, 2, 18, 0)
WEEK = timedelta(days=7)


def _add_weekly(container, group_id=None):
    return container.schedule_service.add_event(
        title="Math",
        start=START,
        end=START + timedelta(hours=1),
        group_id=group_id,
        is_recurring=True,
    )


def test_event_must_end_after_it_starts(container):
    with pytest.raises(ValidationError):
        container.schedule_service.add_event(title="Math", start=START, end=START)
    with pytest.raises(ValidationError):
        container.schedule_service.add_event(title=" ", start=START, end=START + timedelta(hours=1))


def test_delete_event_removes_its_exceptions(container):
    event = _add_weekly(container)
    key = occurrence_key(START + WEEK)
    container.schedule_service.delete_occurrence(event_id=event.event_id, occurrence_key=key)

    assert container.schedule_service.delete_event(event.event_id) is True

    assert container.repositories.schedules.list_exceptions() == []
    assert container.schedule_service.visible_events() == []


def test_override_occurrence_is_upserted_per_key(container):
    event = _add_weekly(container, group_id="g1")
    key = occurrence_key(START + WEEK * 3)
    service = container.schedule_service

    service.override_occurrence(
        event_id=event.event_id, occurrence_key=key, title="Exam",
        start=START + WEEK * 3, end=START + WEEK * 3 + timedelta(hours=2),
    )
    service.override_occurrence(
        event_id=event.event_id, occurrence_key=key, title="Final exam",
        start=START + WEEK * 3, end=START + WEEK * 3 + timedelta(hours=2),
    )

    assert len(container.repositories.schedules.list_exceptions()) == 1
    by_key = {e.occurrence_key: e for e in service.visible_events()}
    assert by_key[key].title == "Final exam"
    assert by_key[key].group_id is None
    assert by_key[key].end - by_key[key].start == timedelta(hours=2)


def test_single_events_cannot_get_occurrence_exceptions(container):
    event = container.schedule_service.add_event(title="Trial", start=START, end=START + timedelta(hours=1))

    with pytest.raises(ValidationError):
        container.schedule_service.delete_occurrence(event_id=event.event_id, occurrence_key=occurrence_key(START))
    with pytest.raises(ValidationError):
        container.schedule_service.delete_occurrence(event_id=event.event_id, occurrence_key="yesterday")


def test_occurrence_of_missing_event_is_a_no_op(container):
    assert container.schedule_service.delete_occurrence(event_id="gone", occurrence_key="2024-09-02T18:00") is None


def test_update_event_edits_the_series(container):
    event = _add_weekly(container)

    updated = container.schedule_service.update_event(
        event.event_id, title="Algebra", start=START, end=START + timedelta(hours=2), is_recurring=True
    )

    assert updated.title == "Algebra"
    assert all(e.title == "Algebra" for e in container.schedule_service.visible_events())
    assert container.schedule_service.update_event(
        "gone", title="X", start=START, end=START + timedelta(hours=1)
    ) is None


def test_upcoming_events_are_the_next_five(container):
    _add_weekly(container)

    upcoming = container.schedule_service.upcoming_events(now=START + WEEK * 10 + timedelta(minutes=1))

    assert [e.start for e in upcoming] == [START + WEEK * i for i in range(11, 16)]


def test_moving_an_occurrence_notifies_the_group(container, notifier, group):
    member = container.student_service.add_student(NewStudent(name="Anna", group_ids=(group.group_id,)))
    container.student_service.add_student(NewStudent(name="Ivan"))
    event = _add_weekly(container, group_id=group.group_id)
    old_start = START + WEEK
    new_start = old_start + timedelta(days=1)
    notifier.sent.clear()

    container.schedule_service.override_occurrence(
        event_id=event.event_id,
        occurrence_key=occurrence_key(old_start),
        title="Math",
        start=new_start,
        end=new_start + timedelta(hours=1),
        group_id=group.group_id,
        previous_start=old_start,
    )

    assert notifier.sent == [("schedule", member.student_id, "Math", new_start, old_start)]


def test_first_occurrence_is_edited_through_the_series(container):
    event = _add_weekly(container)
    service = container.schedule_service

    with pytest.raises(ValidationError):
        service.delete_occurrence(event_id=event.event_id, occurrence_key=occurrence_key(START))
    with pytest.raises(ValidationError):
        service.override_occurrence(
            event_id=event.event_id, occurrence_key=occurrence_key(START), title="Exam",
            start=START, end=START + timedelta(hours=2),
        )

    assert container.repositories.schedules.list_exceptions() == []
    assert occurrence_key(START) in {e.occurrence_key for e in service.visible_events()}
