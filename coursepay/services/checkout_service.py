import logging
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from coursepay.config import settings
from coursepay.constants.payment_status import PaymentMethod, PaymentStatus
from coursepay.exceptions import (
    AlreadyEnrolled,
    CheckoutValidationError,
    CourseNotFound,
    PaymentPersistenceError,
)
from coursepay.models.course import Course
from coursepay.models.payment import PaymentAttempt
from coursepay.models.profile import Profile
from coursepay.services.enrollment_service import find_enrollment
from coursepay.services.paymob_client import PaymobClient, build_billing_data

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int(value * 100)


def initiate_checkout(
    *,
    session: Session,
    user: Profile,
    course_id: str,
    payment_method: str,
    gateway: PaymobClient,
) -> dict:
    """
    Create a Paymob order for a course and persist a pending attempt.

    Either the attempt row exists at pending afterwards, or nothing was written.
    """
    method = PaymentMethod(payment_method)
    logger.info(f"[CHECKOUT] started user_id={user.id} course_id={course_id} method={method.value}")

    course = session.get(Course, course_id)
    if not course or not course.is_published:
        raise CourseNotFound("Course not found or not published")

    if find_enrollment(session, user.id, course_id):
        raise AlreadyEnrolled("User is already enrolled in this course")

    if course.is_free:
        raise CheckoutValidationError("Course is free, enroll directly")

    amount_cents = to_minor_units(course.price)
    currency = settings.paymob_currency
    billing_data = build_billing_data(user.full_name, user.email, user.phone)

    checkout = gateway.start_checkout(
        amount_cents=amount_cents,
        currency=currency,
        method=method.value,
        item_name=course.title_en,
        item_description=course.short_description_en,
        billing_data=billing_data,
        redirect_url=settings.paymob_redirect_url,
    )

    payment = PaymentAttempt(
        user_id=user.id,
        course_id=course.id,
        amount_cents=amount_cents,
        currency=currency,
        payment_method=method.value,
        paymob_order_id=checkout.order_id,
        paymob_payment_key=checkout.payment_key,
        status=PaymentStatus.pending.value,
        payment_data={
            "integration_id": checkout.integration_id,
            "billing_data": checkout.billing_data,
            "order_data": checkout.order,
        },
    )
    session.add(payment)

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[CHECKOUT] could not persist attempt order_id={checkout.order_id}")
        raise PaymentPersistenceError("Could not save payment attempt") from e

    session.refresh(payment)
    logger.info(
        f"[CHECKOUT] pending payment_id={payment.id} order_id={payment.paymob_order_id} "
        f"amount_cents={amount_cents}"
    )

    return {
        "success": True,
        "checkoutUrl": checkout.checkout_url,
        "paymentId": payment.id,
        "orderId": payment.paymob_order_id,
        "amount": payment.amount,
        "currency": payment.currency,
    }
