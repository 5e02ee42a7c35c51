from datetime import date

from tutoring_center.core.constants import SYSTEM_SUBSCRIPTION_PLAN_ID
from tutoring_center.core.enums import AttendanceStatus, NoticeLevel
from tutoring_center.students.model import NewStudent

MONDAY = date(2024, 9, 2)


def test_mutators_report_success_and_reload(container):
    state = container.state

    student = state.add_student(NewStudent(name="Anna"))

    assert [s.student_id for s in state.snapshot.students] == [student.student_id]
    notices = state.notices.drain()
    assert [(n.level, n.message) for n in notices] == [(NoticeLevel.SUCCESS, "Anna added")]


def test_validation_failure_becomes_an_error_notice(container):
    state = container.state

    assert state.add_group("") is None

    [notice] = state.notices.drain()
    assert notice.level == NoticeLevel.ERROR
    assert "required" in notice.message
    assert state.snapshot.groups == ()


def test_store_failure_is_reported_and_view_reflects_persisted_truth(container, store):
    state = container.state
    student = state.add_student(NewStudent(name="Anna"))
    state.notices.drain()
    store.fail_on.add(("insert", "financial_transactions"))

    result = state.add_subscription(
        student_id=student.student_id, plan_id=SYSTEM_SUBSCRIPTION_PLAN_ID, price_paid=1000, lessons_total=4
    )

    assert result is None
    [notice] = state.notices.drain()
    assert notice.level == NoticeLevel.ERROR
    assert "financial_transactions" in notice.message
    # the subscription row written before the failure is visible after reload
    assert len(state.snapshot.subscriptions) == 1
    assert state.snapshot.transactions == ()


def test_missing_subject_reports_an_error(container):
    assert container.state.cancel_subscription_cash_refund("gone") is None
    [notice] = container.state.notices.drain()
    assert notice.level == NoticeLevel.ERROR


def test_attendance_is_patched_before_the_authoritative_reload(container, student):
    state = container.state
    state.reload()
    seen = []
    unsubscribe = state.subscribe(lambda snapshot: seen.append(snapshot.attendance))

    state.set_attendance(student_id=student.student_id, lesson_date=MONDAY, status=AttendanceStatus.PRESENT)
    unsubscribe()

    optimistic, authoritative = seen
    assert [a.status for a in optimistic] == [AttendanceStatus.PRESENT]
    assert optimistic[0].debt_transaction_id is None
    assert authoritative[0].debt_transaction_id is not None

    state.set_attendance(student_id=student.student_id, lesson_date=MONDAY, status=AttendanceStatus.EXCUSED)
    assert len(seen) == 2


def test_reports_read_the_snapshot(container, student):
    state = container.state
    state.add_subscription(
        student_id=student.student_id, plan_id=SYSTEM_SUBSCRIPTION_PLAN_ID, price_paid=4000, lessons_total=8
    )
    state.set_attendance(student_id=student.student_id, lesson_date=MONDAY, status=AttendanceStatus.PRESENT)

    assert state.period_report("all").income == 4000
    assert state.student_financials(student.student_id).lessons_attended == 1
    assert state.student_financials(student.student_id).total_worth == 3500
    assert [h.is_transaction for h in state.balance_history(student.student_id)] == [True, False]
    assert state.dashboard_summary().active_students == 1
    assert state.balance_history("gone") == []


def test_clear_financial_data_needs_confirmation(container, student):
    state = container.state
    state.add_transaction(student_id=student.student_id, tx_type="debit", amount=100)

    assert state.clear_all_financial_data(confirmed=False) is None
    assert len(state.snapshot.transactions) == 1

    assert state.clear_all_financial_data(confirmed=True) is True
    assert state.snapshot.transactions == ()
    assert state.snapshot.student(student.student_id).balance == 0


def test_unexpected_failure_notice_carries_the_cause(container, monkeypatch):
    state = container.state

    def boom(name):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(container.group_service, "add_group", boom)

    assert state.add_group("Beginners") is None
    [notice] = state.notices.drain()
    assert notice.level == NoticeLevel.ERROR
    assert notice.message.endswith("failed: connection reset")
