from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select, func
from typing import Optional
from coursepay.constants.payment_status import PaymentStatus
from coursepay.database import get_session
from coursepay.dependencies.admin import require_admin
from coursepay.models.course import Course
from coursepay.models.enrollment import Enrollment
from coursepay.models.payment import PaymentAttempt
from coursepay.models.profile import Profile
from coursepay.utils.pagination import paginate

router = APIRouter()


@router.get("/payments")
def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[PaymentStatus] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    query = (
        select(PaymentAttempt, Profile, Course)
        .join(Profile, Profile.id == PaymentAttempt.user_id)
        .join(Course, Course.id == PaymentAttempt.course_id)
    )

    if status:
        query = query.where(PaymentAttempt.status == status.value)
    if start_date:
        query = query.where(func.date(PaymentAttempt.created_at) >= start_date)
    if end_date:
        query = query.where(func.date(PaymentAttempt.created_at) <= end_date)

    if search:
        s = f"%{search}%"
        query = query.where(
            (Profile.email.ilike(s)) |
            (Profile.full_name.ilike(s)) |
            (PaymentAttempt.paymob_order_id.ilike(s)) |
            (Course.title_en.ilike(s))
        )

    page_data = paginate(
        session=session,
        query=query.order_by(PaymentAttempt.created_at.desc()),
        page=page,
        limit=limit,
    )

    page_data["results"] = [
        {
            "payment_id": p.id,
            "order_id": p.paymob_order_id,
            "transaction_id": p.paymob_transaction_id,
            "amount": p.amount,
            "currency": p.currency,
            "status": p.status,
            "method": p.payment_method,
            "customer_email": u.email,
            "customer_name": u.full_name,
            "course_id": c.id,
            "course_title": c.title_en,
            "created_at": p.created_at,
            "completed_at": p.completed_at,
        }
        for p, u, c in page_data["results"]
    ]
    return page_data


@router.get("/payments/summary")
def payments_summary(
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    counts = dict(
        session.exec(
            select(PaymentAttempt.status, func.count())
            .group_by(PaymentAttempt.status)
        ).all()
    )

    revenue_cents = session.exec(
        select(func.coalesce(func.sum(PaymentAttempt.amount_cents), 0))
        .where(PaymentAttempt.status == PaymentStatus.completed.value)
    ).one()

    return {
        "pending": counts.get(PaymentStatus.pending.value, 0),
        "completed": counts.get(PaymentStatus.completed.value, 0),
        "failed": counts.get(PaymentStatus.failed.value, 0),
        "revenue": revenue_cents / 100,
    }


@router.get("/enrollments")
def list_enrollments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    course_id: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    query = select(Enrollment)
    if course_id:
        query = query.where(Enrollment.course_id == course_id)

    return paginate(
        session=session,
        query=query.order_by(Enrollment.enrolled_at.desc()),
        page=page,
        limit=limit,
    )
