from fastapi import APIRouter, Depends
from sqlmodel import Session

from coursepay.database import get_session
from coursepay.models.profile import Profile
from coursepay.schemas.payment_schemas import CheckoutRequest
from coursepay.services.checkout_service import initiate_checkout
from coursepay.services.paymob_client import PaymobClient, get_paymob_client
from coursepay.utils.token import get_current_user

router = APIRouter()


@router.post("/checkout")
def create_checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    gateway: PaymobClient = Depends(get_paymob_client),
):
    """Start a Paymob checkout for a paid course and return the redirect URL."""
    return initiate_checkout(
        session=session,
        user=current_user,
        course_id=payload.item_id,
        payment_method=payload.payment_method.value,
        gateway=gateway,
    )
