from datetime import datetime, timedelta, timezone

from tutoring_center.schedules.occurrence import is_occurrence_key, occurrence_key


def test_key_is_zero_padded_local_wall_clock():
    assert occurrence_key(datetime(2024, 3, 5, 9, 7, 45)) == "2024-03-05T09:07"


def test_key_is_stable_and_distinguishes_minutes():
    moment = datetime(2024, 9, 2, 18, 30)
    assert occurrence_key(moment) == occurrence_key(datetime(2024, 9, 2, 18, 30))
    assert occurrence_key(moment) != occurrence_key(moment + timedelta(minutes=1))


def test_aware_instant_uses_local_calendar_fields():
    aware = datetime(2024, 9, 2, 15, 30, tzinfo=timezone.utc)
    local = aware.astimezone().replace(tzinfo=None)
    assert occurrence_key(aware) == occurrence_key(local)


def test_is_occurrence_key():
    assert is_occurrence_key("2024-09-02T18:30")
    assert not is_occurrence_key("2024-09-02 18:30")
    assert not is_occurrence_key("")
