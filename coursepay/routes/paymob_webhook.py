import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlmodel import Session

from coursepay.config import settings
from coursepay.database import get_session
from coursepay.exceptions import (
    CheckoutValidationError,
    InvalidSignature,
    PaymentNotFound,
    UnsupportedWebhook,
)
from coursepay.schemas.payment_schemas import PaymobWebhook
from coursepay.services.payment_service import apply_transaction, get_payment_by_order_id
from coursepay.services.paymob_hmac import verify_hmac

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/paymob/webhook")
def paymob_webhook(
    payload: PaymobWebhook,
    session: Session = Depends(get_session),
    x_paymob_hmac: Optional[str] = Header(default=None),
    hmac: Optional[str] = Query(default=None),
):
    """Transaction callback pushed by Paymob."""
    if payload.type != "TRANSACTION":
        logger.info(f"[WEBHOOK] unsupported type={payload.type}")
        raise UnsupportedWebhook("Unsupported webhook type")

    transaction = payload.obj
    signature = x_paymob_hmac or hmac

    if settings.hmac_enforced:
        if not verify_hmac(transaction, signature, settings.paymob_hmac_secret):
            logger.warning(f"[WEBHOOK] HMAC verification failed transaction_id={transaction.get('id')}")
            raise InvalidSignature("Unauthorized")
    else:
        logger.info("[WEBHOOK] skipping HMAC verification (not enforced)")

    order = transaction.get("order")
    order_id = order.get("id") if isinstance(order, dict) else order
    if order_id is None:
        raise CheckoutValidationError("Order ID not found in transaction")

    logger.info(
        f"[WEBHOOK] transaction_id={transaction.get('id')} order_id={order_id} "
        f"success={transaction.get('success')}"
    )

    payment = get_payment_by_order_id(session, str(order_id))
    if not payment:
        raise PaymentNotFound(f"Payment record not found for order {order_id}")

    apply_transaction(session, payment, transaction, source="webhook")

    return {"success": True, "message": "Webhook processed successfully"}
