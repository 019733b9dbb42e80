from fastapi import APIRouter, Depends
from sqlmodel import Session

from coursepay.database import get_session
from coursepay.exceptions import CheckoutValidationError
from coursepay.models.course import Course
from coursepay.models.payment import PaymentAttempt
from coursepay.models.profile import Profile
from coursepay.schemas.payment_schemas import PaymentStatusRequest
from coursepay.services.payment_service import find_user_payment, refresh_from_gateway
from coursepay.services.paymob_client import PaymobClient, get_paymob_client
from coursepay.utils.token import get_current_user

router = APIRouter()


def serialize_payment(payment: PaymentAttempt, course: Course | None) -> dict:
    return {
        "id": payment.id,
        "status": payment.status,
        "amount": payment.amount,
        "currency": payment.currency,
        "paymentMethod": payment.payment_method,
        "createdAt": payment.created_at.isoformat(),
        "item": {
            "id": course.id,
            "titleEn": course.title_en,
            "titleAr": course.title_ar,
            "price": course.price,
        } if course else None,
    }


@router.post("/status")
def check_payment_status(
    payload: PaymentStatusRequest,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    gateway: PaymobClient = Depends(get_paymob_client),
):
    if not payload.payment_id and not payload.order_id:
        raise CheckoutValidationError("Either payment ID or order ID is required")

    payment = find_user_payment(
        session,
        current_user.id,
        payment_id=payload.payment_id,
        order_id=payload.order_id,
    )

    refresh_error = refresh_from_gateway(session, payment, gateway)

    response = {
        "success": True,
        "payment": serialize_payment(payment, session.get(Course, payment.course_id)),
    }
    if refresh_error:
        response["refreshError"] = {
            "step": refresh_error.step,
            "status": refresh_error.upstream_status,
        }
    return response
