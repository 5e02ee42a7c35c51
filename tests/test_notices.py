from tutoring_center.core.enums import NoticeLevel
from tutoring_center.notifications.notices import NoticeBoard
from tutoring_center.notifications.service import LoggingNotificationService, notify_safely
from tutoring_center.students.model import Student


def test_notice_board_forwards_and_drains():
    board = NoticeBoard()
    received = []
    unsubscribe = board.subscribe(received.append)

    board.success("Saved")
    unsubscribe()
    board.error("Failed")

    assert [n.message for n in received] == ["Saved"]
    assert [(n.level, n.message) for n in board.drain()] == [(NoticeLevel.SUCCESS, "Saved"), (NoticeLevel.ERROR, "Failed")]
    assert board.drain() == []


def test_logging_notifier_writes_the_message_to_the_log(caplog):
    student = Student(student_id="s1", name="Anna", parent_email="parent@example.com")

    with caplog.at_level("INFO"):
        LoggingNotificationService().send_welcome(student)

    assert "parent@example.com" in caplog.text
    assert "Anna" in caplog.text


def test_notify_safely_swallows_delivery_errors(caplog):
    def broken(*args, **kwargs):
        raise ConnectionError("smtp down")

    notify_safely(broken, "anything")

    assert "Notification delivery failed" in caplog.text
