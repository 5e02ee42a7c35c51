from __future__ import annotations

from datetime import date, timedelta

import pytest

from tutoring_center.core.constants import SYSTEM_SUBSCRIPTION_PLAN_ID
from tutoring_center.core.enums import AttendanceStatus, RefundMethod, TransactionType
from tutoring_center.core.exceptions import StoreError, ValidationError
from tutoring_center.students.model import NewStudent

MONDAY = date(2024, 9, 2)


def _lesson(i: int) -> date:
    return MONDAY + timedelta(days=7 * i)


def _sell(container, student, *, price=4000, lessons=8, group_id=None):
    return container.ledger_service.add_subscription(
        student_id=student.student_id,
        plan_id=SYSTEM_SUBSCRIPTION_PLAN_ID,
        price_paid=price,
        lessons_total=lessons,
        assigned_group_id=group_id,
    )


def _mark(container, student, day, status=AttendanceStatus.PRESENT, group_id=None):
    return container.ledger_service.set_attendance(
        student_id=student.student_id,
        lesson_date=day,
        status=status,
        group_id=group_id,
    )


def _balance(container, student):
    return container.repositories.students.get_by_id(student.student_id).balance


def _attended(container, subscription_id):
    return container.repositories.subscriptions.get_by_id(subscription_id).lessons_attended


def test_eight_visits_use_up_subscription_and_ninth_is_billed(container, student, group):
    sub = _sell(container, student).subscription

    for i in range(8):
        record = _mark(container, student, _lesson(i), group_id=group.group_id)
        assert record.subscription_id == sub.subscription_id

    assert _attended(container, sub.subscription_id) == 8

    ninth = _mark(container, student, _lesson(8), group_id=group.group_id)
    assert ninth.subscription_id is None
    debit = container.repositories.transactions.get_by_id(ninth.debt_transaction_id)
    assert debit.tx_type == TransactionType.DEBIT
    assert debit.amount == 500
    assert _attended(container, sub.subscription_id) == 8
    assert _balance(container, student) == -500


def test_present_then_excused_restores_credit(container, student):
    sub = _sell(container, student).subscription
    _mark(container, student, MONDAY)
    assert _attended(container, sub.subscription_id) == 1

    record = _mark(container, student, MONDAY, AttendanceStatus.EXCUSED)

    assert _attended(container, sub.subscription_id) == 0
    assert record.subscription_id is None
    assert record.debt_transaction_id is None


def test_present_to_absent_keeps_the_link(container, student):
    sub = _sell(container, student).subscription
    _mark(container, student, MONDAY)

    record = _mark(container, student, MONDAY, AttendanceStatus.ABSENT)

    assert record.subscription_id == sub.subscription_id
    assert _attended(container, sub.subscription_id) == 1


def test_excused_mark_consumes_nothing(container, student):
    sub = _sell(container, student).subscription

    record = _mark(container, student, MONDAY, AttendanceStatus.EXCUSED)

    assert record.subscription_id is None
    assert _attended(container, sub.subscription_id) == 0
    assert _balance(container, student) == 0


def test_undoing_a_debt_lesson_posts_exact_correction(container, student):
    record = _mark(container, student, MONDAY)
    assert _balance(container, student) == -500

    undone = _mark(container, student, MONDAY, AttendanceStatus.EXCUSED)

    assert undone.debt_transaction_id is None
    assert _balance(container, student) == 0
    corrections = [
        t for t in container.repositories.transactions.list_for_student(student.student_id)
        if t.tx_type == TransactionType.CORRECTION
    ]
    assert [c.amount for c in corrections] == [500]
    assert record.debt_transaction_id is not None


def test_debt_reversal_uses_the_original_debit_amount(container, student, store):
    _mark(container, student, MONDAY)
    _mark(container, student, _lesson(1))
    # The debit for the second lesson was billed at a different price
    second = container.repositories.attendance.get_for_student_and_date(student.student_id, _lesson(1))
    store.update("financial_transactions", {"id": second.debt_transaction_id}, {"amount": 350.0})
    store.update("students", {"id": student.student_id}, {"balance": -850.0})

    container.ledger_service.delete_attendance(student_id=student.student_id, lesson_date=_lesson(1))

    assert _balance(container, student) == -500


def test_no_debit_when_lesson_price_is_zero(free_container):
    student = free_container.student_service.add_student(NewStudent(name="Ivan"))

    record = _mark(free_container, student, MONDAY)

    assert record.subscription_id is None
    assert record.debt_transaction_id is None
    assert free_container.repositories.transactions.list_for_student(student.student_id) == []
    assert record.is_debt


def test_delete_attendance_restores_credit(container, student):
    sub = _sell(container, student).subscription
    _mark(container, student, MONDAY)

    assert container.ledger_service.delete_attendance(student_id=student.student_id, lesson_date=MONDAY) is True

    assert _attended(container, sub.subscription_id) == 0
    assert container.repositories.attendance.get_for_student_and_date(student.student_id, MONDAY) is None


def test_delete_missing_attendance_is_a_no_op(container, student):
    assert container.ledger_service.delete_attendance(student_id=student.student_id, lesson_date=MONDAY) is False


def test_group_specific_subscription_is_preferred(container, student, group):
    other = container.group_service.add_group("Advanced")
    wildcard = _sell(container, student).subscription
    specific = _sell(container, student, group_id=group.group_id).subscription
    foreign = _sell(container, student, group_id=other.group_id).subscription

    first = _mark(container, student, MONDAY, group_id=group.group_id)
    second = _mark(container, student, _lesson(1), group_id="unknown-group")

    assert first.subscription_id == specific.subscription_id
    assert second.subscription_id == wildcard.subscription_id
    assert _attended(container, foreign.subscription_id) == 0


def test_oldest_subscription_is_used_first(container, student):
    older = _sell(container, student, lessons=1).subscription
    newer = _sell(container, student, lessons=1).subscription

    assert _mark(container, student, MONDAY).subscription_id == older.subscription_id
    assert _mark(container, student, _lesson(1)).subscription_id == newer.subscription_id


def test_subscription_for_another_group_is_not_used(container, student, group):
    other = container.group_service.add_group("Advanced")
    _sell(container, student, group_id=other.group_id)

    record = _mark(container, student, MONDAY, group_id=group.group_id)

    assert record.subscription_id is None
    assert _balance(container, student) == -500


def test_credit_refund_pays_back_unused_lessons_to_balance(container, student):
    sub = _sell(container, student, price=4000, lessons=8).subscription
    for i in range(3):
        _mark(container, student, _lesson(i))

    refund = container.ledger_service.cancel_subscription_refund_to_credit(sub.subscription_id)

    assert refund.amount == 2500
    assert refund.transaction.tx_type == TransactionType.REFUND
    assert refund.transaction.refund_method == RefundMethod.CREDIT
    assert _balance(container, student) == 2500
    assert container.repositories.subscriptions.get_by_id(sub.subscription_id) is None


def test_cash_refund_records_same_amount_without_touching_balance(container, student):
    sub = _sell(container, student, price=4000, lessons=8).subscription
    for i in range(3):
        _mark(container, student, _lesson(i))

    refund = container.ledger_service.cancel_subscription_cash_refund(sub.subscription_id)

    assert refund.amount == 2500
    assert refund.transaction.refund_method == RefundMethod.CASH
    assert _balance(container, student) == 0
    assert container.repositories.subscriptions.get_by_id(sub.subscription_id) is None


def test_refund_rounds_half_up(container, student):
    sub = _sell(container, student, price=100, lessons=8).subscription
    for i in range(3):
        _mark(container, student, _lesson(i))

    # 12.5 per lesson, 5 left
    refund = container.ledger_service.cancel_subscription_refund_to_credit(sub.subscription_id)

    assert refund.amount == 63


def test_fully_used_subscription_refunds_nothing(container, student):
    sub = _sell(container, student, lessons=1).subscription
    _mark(container, student, MONDAY)
    before = container.repositories.transactions.list_for_student(student.student_id)

    refund = container.ledger_service.cancel_subscription_cash_refund(sub.subscription_id)

    assert refund.amount == 0
    assert refund.transaction is None
    assert container.repositories.transactions.list_for_student(student.student_id) == before
    assert container.repositories.subscriptions.get_by_id(sub.subscription_id) is None


def test_cancel_missing_subscription_returns_none(container):
    assert container.ledger_service.cancel_subscription_refund_to_credit("gone") is None


def test_purchase_clears_outstanding_debt_lessons(container, student):
    for i in range(3):
        _mark(container, student, _lesson(i))
    assert _balance(container, student) == -1500

    purchase = _sell(container, student, lessons=8)

    assert purchase.cleared_debt_lessons == 3
    assert purchase.subscription.lessons_attended == 3
    assert container.repositories.attendance.list_unlinked_visits(student.student_id) == []
    assert _balance(container, student) == 0
    for i in range(3):
        record = container.repositories.attendance.get_for_student_and_date(student.student_id, _lesson(i))
        assert record.subscription_id == purchase.subscription.subscription_id
        assert record.debt_transaction_id is None


def test_purchase_clears_only_as_many_debts_as_it_has_lessons(container, student):
    for i in range(3):
        _mark(container, student, _lesson(i))

    purchase = _sell(container, student, price=1000, lessons=2)

    assert purchase.cleared_debt_lessons == 2
    remaining = container.repositories.attendance.list_unlinked_visits(student.student_id)
    assert [r.lesson_date for r in remaining] == [_lesson(2)]
    assert _balance(container, student) == -500


def test_payment_is_recorded_but_does_not_move_balance(container, student):
    purchase = _sell(container, student, price=4000)

    assert purchase.payment.tx_type == TransactionType.PAYMENT
    assert purchase.payment.amount == 4000
    assert purchase.payment.subscription_id == purchase.subscription.subscription_id
    assert _balance(container, student) == 0


def test_stored_balance_always_matches_the_ledger(container, student, group):
    ledger = container.ledger_service
    for i in range(2):
        _mark(container, student, _lesson(i), group_id=group.group_id)
    sub = _sell(container, student, price=3000, lessons=4).subscription
    for i in range(2, 7):
        _mark(container, student, _lesson(i), group_id=group.group_id)
    _mark(container, student, _lesson(6), AttendanceStatus.EXCUSED)
    ledger.add_transaction(student_id=student.student_id, tx_type="debit", amount=120)
    ledger.cancel_subscription_refund_to_credit(sub.subscription_id)
    other = _sell(container, student, price=800, lessons=4).subscription
    ledger.cancel_subscription_cash_refund(other.subscription_id)

    txs = container.repositories.transactions.list_for_student(student.student_id)
    expected = sum(
        t.amount for t in txs
        if t.tx_type == TransactionType.CORRECTION
        or (t.tx_type == TransactionType.REFUND and t.refund_method == RefundMethod.CREDIT)
    ) - sum(t.amount for t in txs if t.tx_type == TransactionType.DEBIT)
    assert _balance(container, student) == pytest.approx(expected)


def test_failed_counter_write_aborts_before_attendance_is_written(container, student, store):
    _sell(container, student)
    store.fail_on.add(("update", "student_subscriptions"))

    with pytest.raises(StoreError):
        _mark(container, student, MONDAY)

    assert container.repositories.attendance.get_for_student_and_date(student.student_id, MONDAY) is None


def test_failed_payment_write_stops_the_purchase(container, student, store):
    _mark(container, student, MONDAY)
    store.fail_on.add(("insert", "financial_transactions"))

    with pytest.raises(StoreError):
        _sell(container, student)

    # The subscription row was already written; the debt was not touched.
    subs = container.repositories.subscriptions.list_for_student(student.student_id)
    assert len(subs) == 1
    assert subs[0].lessons_attended == 0
    assert len(container.repositories.attendance.list_unlinked_visits(student.student_id)) == 1


def test_archived_student_cannot_be_marked_or_sold(container, student):
    container.student_service.archive_students([student.student_id])

    with pytest.raises(ValidationError):
        _mark(container, student, MONDAY)
    with pytest.raises(ValidationError):
        _sell(container, student)


def test_missing_student_is_a_no_op(container):
    assert container.ledger_service.set_attendance(
        student_id="gone", lesson_date=MONDAY, status=AttendanceStatus.PRESENT
    ) is None


def test_grade_is_kept_only_for_present(container, student):
    ledger = container.ledger_service
    present = ledger.set_attendance(student_id=student.student_id, lesson_date=MONDAY, status="present", grade=5)
    absent = ledger.set_attendance(student_id=student.student_id, lesson_date=MONDAY, status="absent", grade=5)

    assert present.grade == 5
    assert absent.grade is None


def test_invalid_attendance_input_is_rejected(container, student):
    with pytest.raises(ValidationError):
        container.ledger_service.set_attendance(student_id=student.student_id, lesson_date=MONDAY, status="late")
    with pytest.raises(ValidationError):
        container.ledger_service.set_attendance(
            student_id=student.student_id, lesson_date=MONDAY, status="present", grade=-1
        )


def test_invalid_subscription_input_is_rejected(container, student):
    with pytest.raises(ValidationError):
        _sell(container, student, price=-1)
    with pytest.raises(ValidationError):
        _sell(container, student, price=float("inf"))
    with pytest.raises(ValidationError):
        _sell(container, student, lessons=float("inf"))
    with pytest.raises(ValidationError):
        _sell(container, student, lessons=2.5)
    with pytest.raises(ValidationError):
        container.ledger_service.add_subscription(
            student_id=student.student_id, plan_id="no-such-plan", price_paid=100, lessons_total=1
        )


def test_manual_transactions_follow_the_balance_rule(container, student):
    ledger = container.ledger_service
    ledger.add_transaction(student_id=student.student_id, tx_type="payment", amount=1000)
    ledger.add_transaction(student_id=student.student_id, tx_type="correction", amount=200)
    cash = ledger.add_transaction(student_id=student.student_id, tx_type="refund", amount=50)

    assert cash.refund_method == RefundMethod.CASH
    assert _balance(container, student) == 200
    with pytest.raises(ValidationError):
        ledger.add_transaction(student_id=student.student_id, tx_type="debit", amount=10, refund_method="credit")
    with pytest.raises(ValidationError):
        ledger.add_transaction(student_id=student.student_id, tx_type="gift", amount=10)


def test_clear_all_financial_data_requires_confirmation(container, student):
    _sell(container, student)
    _mark(container, student, MONDAY)
    _mark(container, student, _lesson(1), AttendanceStatus.EXCUSED)
    container.ledger_service.add_transaction(student_id=student.student_id, tx_type="debit", amount=10)

    with pytest.raises(ValidationError):
        container.ledger_service.clear_all_financial_data(confirmed=False)

    container.ledger_service.clear_all_financial_data(confirmed=True)

    repos = container.repositories
    assert repos.transactions.list_all() == []
    assert repos.subscriptions.list_all() == []
    assert repos.attendance.list_all() == []
    assert _balance(container, student) == 0
    assert repos.students.get_by_id(student.student_id) is not None
    assert repos.groups.list_all() != []
