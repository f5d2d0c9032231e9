from datetime import datetime, timedelta, timezone

from lms.helpers.late_penalty import apply_late_penalty, is_late

DEADLINE = datetime(2026, 3, 1, 23, 59, tzinfo=timezone.utc)
DAY_AFTER = DEADLINE + timedelta(days=1)
DAY_BEFORE = DEADLINE - timedelta(days=1)


def test_late_submission_loses_the_penalty_share():
    assert apply_late_penalty(80, DAY_AFTER, DEADLINE, 25) == 60


def test_on_time_submission_is_unchanged():
    assert apply_late_penalty(80, DAY_BEFORE, DEADLINE, 25) == 80
    assert apply_late_penalty(80, DEADLINE, DEADLINE, 25) == 80


def test_zero_penalty_never_reduces():
    assert apply_late_penalty(80, DAY_AFTER + timedelta(days=30), DEADLINE, 0) == 80


def test_no_deadline_means_never_late():
    assert apply_late_penalty(80, DAY_AFTER, None, 50) == 80
    assert not is_late(DAY_AFTER, None)


def test_grade_never_goes_negative():
    assert apply_late_penalty(10, DAY_AFTER, DEADLINE, 90) == 1
    assert apply_late_penalty(10, DAY_AFTER, DEADLINE, 100) == 0
    assert apply_late_penalty(0, DAY_AFTER, DEADLINE, 50) == 0


def test_naive_timestamps_are_treated_as_utc():
    naive_submission = DAY_AFTER.replace(tzinfo=None)
    assert is_late(naive_submission, DEADLINE)
    assert apply_late_penalty(80, naive_submission, DEADLINE, 25) == 60
