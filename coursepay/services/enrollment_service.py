import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from coursepay.constants.payment_status import EnrollmentType, PaymentStatus
from coursepay.exceptions import AlreadyEnrolled, CheckoutValidationError, CourseNotFound
from coursepay.models.course import Course
from coursepay.models.enrollment import Enrollment
from coursepay.models.payment import PaymentAttempt

logger = logging.getLogger(__name__)


def find_enrollment(session: Session, student_id: str, course_id: str) -> Optional[Enrollment]:
    return session.exec(
        select(Enrollment)
        .where(Enrollment.student_id == student_id)
        .where(Enrollment.course_id == course_id)
    ).first()


def _mark_paid(enrollment: Enrollment, payment: PaymentAttempt):
    enrollment.enrollment_type = EnrollmentType.purchase.value
    enrollment.payment_status = PaymentStatus.completed.value
    enrollment.payment_id = enrollment.payment_id or payment.id
    enrollment.updated_at = datetime.utcnow()


def upsert_paid_enrollment(session: Session, payment: PaymentAttempt) -> Enrollment:
    """
    Grant access for a completed payment.

    Safe to call repeatedly and concurrently: an existing row is updated, and
    losing the insert race against the unique (student, course) constraint
    falls back to the update path.
    """
    existing = find_enrollment(session, payment.user_id, payment.course_id)
    if existing:
        _mark_paid(existing, payment)
        session.add(existing)
        session.commit()
        session.refresh(existing)
        logger.info(f"[ENROLLMENT] updated enrollment_id={existing.id} payment_id={payment.id}")
        return existing

    enrollment = Enrollment(
        student_id=payment.user_id,
        course_id=payment.course_id,
        payment_id=payment.id,
        enrollment_type=EnrollmentType.purchase.value,
        payment_status=PaymentStatus.completed.value,
    )
    session.add(enrollment)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(f"[ENROLLMENT] concurrent insert detected payment_id={payment.id}, updating instead")
        existing = find_enrollment(session, payment.user_id, payment.course_id)
        if existing is None:
            raise
        _mark_paid(existing, payment)
        session.add(existing)
        session.commit()
        session.refresh(existing)
        return existing

    session.refresh(enrollment)
    logger.info(f"[ENROLLMENT] created enrollment_id={enrollment.id} payment_id={payment.id}")
    return enrollment


def enroll_free(session: Session, student_id: str, course_id: str) -> Enrollment:
    """Direct enrollment for free courses, no payment involved."""
    course = session.get(Course, course_id)
    if not course or not course.is_published:
        raise CourseNotFound("Course not found or not published")

    if not course.is_free:
        raise CheckoutValidationError("Course requires payment")

    if find_enrollment(session, student_id, course_id):
        raise AlreadyEnrolled("User is already enrolled in this course")

    enrollment = Enrollment(
        student_id=student_id,
        course_id=course_id,
        enrollment_type=EnrollmentType.free.value,
        payment_status=PaymentStatus.completed.value,
    )
    session.add(enrollment)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise AlreadyEnrolled("User is already enrolled in this course")

    session.refresh(enrollment)
    logger.info(f"[ENROLLMENT] free enrollment student_id={student_id} course_id={course_id}")
    return enrollment
