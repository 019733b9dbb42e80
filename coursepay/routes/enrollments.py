from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from coursepay.database import get_session
from coursepay.models.enrollment import Enrollment
from coursepay.models.profile import Profile
from coursepay.services.enrollment_service import enroll_free
from coursepay.utils.token import get_current_user

router = APIRouter()


@router.post("/courses/{course_id}/enroll")
def enroll_in_free_course(
    course_id: str,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    enrollment = enroll_free(session, current_user.id, course_id)

    return {
        "success": True,
        "enrollment_id": enrollment.id,
        "course_id": enrollment.course_id,
        "enrollment_type": enrollment.enrollment_type,
        "payment_status": enrollment.payment_status,
    }


@router.get("/enrollments/me")
def my_enrollments(
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    enrollments = session.exec(
        select(Enrollment)
        .where(Enrollment.student_id == current_user.id)
        .order_by(Enrollment.enrolled_at.desc())
    ).all()

    return {"enrollments": enrollments}
