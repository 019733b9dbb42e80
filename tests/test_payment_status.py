import pytest
from sqlmodel import select

from coursepay.models import Enrollment, PaymentAttempt


@pytest.fixture
def pending_payment(session, student, course):
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


def test_poll_by_payment_id_returns_payment_and_item(client, student, course, pending_payment, auth_headers):
    res = client.post("/payments/status", json={"paymentId": pending_payment.id}, headers=auth_headers(student))

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    payment = body["payment"]
    assert payment["id"] == pending_payment.id
    assert payment["status"] == "pending"
    assert payment["amount"] == 99.0
    assert payment["currency"] == "EGP"
    assert payment["paymentMethod"] == "card"
    assert payment["createdAt"]
    assert payment["item"] == {
        "id": course.id,
        "titleEn": course.title_en,
        "titleAr": course.title_ar,
        "price": 99.0,
    }


def test_poll_refreshes_pending_attempt_from_gateway(client, session, student, pending_payment, auth_headers, paymob_http):
    paymob_http.routes["/ecommerce/orders/transaction_inquiry"] = (200, {"id": 901, "success": True, "order": {"id": 123}})

    res = client.post("/payments/status", json={"orderId": "123"}, headers=auth_headers(student))

    assert res.status_code == 200
    assert res.json()["payment"]["status"] == "completed"
    assert paymob_http.paths() == ["/auth/tokens", "/ecommerce/orders/transaction_inquiry"]

    session.refresh(pending_payment)
    assert pending_payment.payment_data["verified_by"] == "poll"
    enrollments = session.exec(select(Enrollment)).all()
    assert len(enrollments) == 1


def test_poll_maps_error_flag_to_failed(client, session, student, pending_payment, auth_headers, paymob_http):
    paymob_http.routes["/ecommerce/orders/transaction_inquiry"] = (200, {"id": 902, "error_occured": True})

    res = client.post("/payments/status", json={"paymentId": pending_payment.id}, headers=auth_headers(student))

    assert res.json()["payment"]["status"] == "failed"
    assert session.exec(select(Enrollment)).all() == []


def test_poll_without_outcome_stays_pending(client, student, pending_payment, auth_headers, paymob_http):
    res = client.post("/payments/status", json={"paymentId": pending_payment.id}, headers=auth_headers(student))

    assert res.json()["payment"]["status"] == "pending"
    assert "refreshError" not in res.json()


def test_gateway_error_during_refresh_returns_stored_status(client, session, student, pending_payment, auth_headers, paymob_http):
    paymob_http.routes["/auth/tokens"] = (503, {"detail": "maintenance"})

    res = client.post("/payments/status", json={"paymentId": pending_payment.id}, headers=auth_headers(student))

    assert res.status_code == 200
    body = res.json()
    assert body["payment"]["status"] == "pending"
    assert body["refreshError"] == {"step": "auth", "status": 503}
    session.refresh(pending_payment)
    assert pending_payment.status == "pending"


def test_settled_attempt_is_not_requeried(client, session, student, pending_payment, auth_headers, paymob_http):
    pending_payment.status = "completed"
    session.add(pending_payment)
    session.commit()

    res = client.post("/payments/status", json={"paymentId": pending_payment.id}, headers=auth_headers(student))

    assert res.json()["payment"]["status"] == "completed"
    assert paymob_http.calls == []


def test_poll_requires_an_identifier(client, student, auth_headers):
    res = client.post("/payments/status", json={}, headers=auth_headers(student))

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Either payment ID or order ID is required"}


def test_poll_only_sees_own_payments(client, other_student, pending_payment, auth_headers, paymob_http):
    res = client.post("/payments/status", json={"paymentId": pending_payment.id}, headers=auth_headers(other_student))

    assert res.status_code == 404
    assert res.json()["error"] == "Payment not found"
    assert paymob_http.calls == []
