import pytest
from sqlmodel import SQLModel, Session, create_engine, select

from coursepay.constants.payment_status import PaymentStatus, can_transition
from coursepay.models import Course, Enrollment, PaymentAttempt, Profile
from coursepay.services import enrollment_service
from coursepay.services.payment_service import apply_transaction, map_transaction_status


@pytest.mark.parametrize("transaction, expected", [
    ({"success": True}, PaymentStatus.completed),
    ({"success": "true"}, PaymentStatus.completed),
    ({"success": True, "error_occured": True}, PaymentStatus.completed),
    ({"success": False}, PaymentStatus.failed),
    ({"success": "false"}, PaymentStatus.failed),
    ({"error_occured": True}, PaymentStatus.failed),
    ({}, PaymentStatus.pending),
    ({"success": None, "pending": True}, PaymentStatus.pending),
])
def test_map_transaction_status(transaction, expected):
    assert map_transaction_status(transaction) == expected


def test_state_machine_is_monotonic():
    assert can_transition("pending", "completed")
    assert can_transition("pending", "failed")
    for terminal in ("completed", "failed"):
        for target in ("pending", "completed", "failed"):
            assert not can_transition(terminal, target)
    assert not can_transition("pending", "pending")


@pytest.fixture
def seeded(session, student, course):
    payment = PaymentAttempt(
        user_id=student.id,
        course_id=course.id,
        amount_cents=9900,
        payment_method="card",
        paymob_order_id="123",
    )
    session.add(payment)
    session.commit()
    session.refresh(payment)
    return payment


def test_success_updates_existing_enrollment_instead_of_duplicating(session, seeded, student, course):
    session.add(Enrollment(student_id=student.id, course_id=course.id, enrollment_type="free", payment_status="pending"))
    session.commit()

    apply_transaction(session, seeded, {"id": 1, "success": True}, source="webhook")

    enrollments = session.exec(select(Enrollment)).all()
    assert len(enrollments) == 1
    assert enrollments[0].enrollment_type == "purchase"
    assert enrollments[0].payment_status == "completed"
    assert enrollments[0].payment_id == seeded.id


def test_lost_insert_race_falls_back_to_update(session, seeded, student, course, monkeypatch):
    # another worker inserts the enrollment between our read and our insert
    session.add(Enrollment(student_id=student.id, course_id=course.id, enrollment_type="purchase", payment_status="pending"))
    session.commit()

    real_find = enrollment_service.find_enrollment
    calls = {"n": 0}

    def stale_find(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_find(*args, **kwargs)

    monkeypatch.setattr(enrollment_service, "find_enrollment", stale_find)

    enrollment = enrollment_service.upsert_paid_enrollment(session, seeded)

    assert enrollment.payment_status == "completed"
    assert len(session.exec(select(Enrollment)).all()) == 1


def test_concurrent_success_deliveries_converge(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    SQLModel.metadata.create_all(engine)

    with Session(engine) as setup:
        setup.add(Profile(id="s1", email="s1@example.com"))
        setup.add(Course(id="c1", title_en="C", title_ar="C", price=50, is_published=True))
        setup.add(PaymentAttempt(id="p1", user_id="s1", course_id="c1", amount_cents=5000,
                                 payment_method="card", paymob_order_id="321"))
        setup.commit()

    # both handlers load the attempt while it is still pending
    webhook_session = Session(engine)
    poll_session = Session(engine)
    webhook_view = webhook_session.get(PaymentAttempt, "p1")
    poll_view = poll_session.get(PaymentAttempt, "p1")
    assert webhook_view.status == poll_view.status == "pending"

    apply_transaction(webhook_session, webhook_view, {"id": 10, "success": True}, source="webhook")
    apply_transaction(poll_session, poll_view, {"id": 10, "success": True}, source="poll")

    webhook_session.close()
    poll_session.close()

    with Session(engine) as check:
        payment = check.get(PaymentAttempt, "p1")
        assert payment.status == "completed"
        assert payment.payment_data["verified_by"] == "webhook"
        assert len(check.exec(select(Enrollment)).all()) == 1


def test_late_failure_cannot_override_completion(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'late.db'}")
    SQLModel.metadata.create_all(engine)

    with Session(engine) as setup:
        setup.add(Profile(id="s1", email="s1@example.com"))
        setup.add(Course(id="c1", title_en="C", title_ar="C", price=50, is_published=True))
        setup.add(PaymentAttempt(id="p1", user_id="s1", course_id="c1", amount_cents=5000,
                                 payment_method="card", paymob_order_id="321"))
        setup.commit()

    first = Session(engine)
    second = Session(engine)
    success_view = first.get(PaymentAttempt, "p1")
    failure_view = second.get(PaymentAttempt, "p1")

    apply_transaction(first, success_view, {"success": True}, source="webhook")
    apply_transaction(second, failure_view, {"success": False}, source="poll")

    assert failure_view.status == "completed"
    first.close()
    second.close()
