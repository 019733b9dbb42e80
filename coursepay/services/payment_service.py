import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from coursepay.constants.payment_status import PaymentStatus, can_transition
from coursepay.exceptions import PaymentNotFound, PaymobError
from coursepay.models.payment import PaymentAttempt
from coursepay.services.enrollment_service import upsert_paid_enrollment
from coursepay.services.paymob_client import PaymobClient

logger = logging.getLogger(__name__)


def _flag(value: Any) -> Optional[bool]:
    # callback query strings carry "true"/"false"
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return None
    if value is None:
        return None
    return bool(value)


def map_transaction_status(transaction: Dict[str, Any]) -> PaymentStatus:
    success = _flag(transaction.get("success"))
    if success is True:
        return PaymentStatus.completed
    if success is False or _flag(transaction.get("error_occured")):
        return PaymentStatus.failed
    return PaymentStatus.pending


def apply_transaction(
    session: Session,
    payment: PaymentAttempt,
    transaction: Dict[str, Any],
    source: str,
) -> PaymentAttempt:
    """
    Single source of truth for settling a payment attempt.

    pending -> completed | failed, once. The UPDATE is conditional on the row
    still being pending, so racing webhook and poll deliveries converge on
    whichever lands first.
    """
    new_status = map_transaction_status(transaction)

    if new_status == PaymentStatus.pending:
        logger.info(f"[RECONCILE] no outcome yet payment_id={payment.id} source={source}")
        return payment

    if can_transition(payment.status, new_status):
        now = datetime.utcnow()
        audit = dict(payment.payment_data or {})
        audit["transaction_data"] = transaction
        audit["verified_at"] = now.isoformat()
        audit["verified_by"] = source

        values = {
            "status": new_status.value,
            "payment_data": audit,
            "updated_at": now,
        }
        if transaction.get("id") is not None:
            values["paymob_transaction_id"] = str(transaction["id"])
        if new_status == PaymentStatus.completed:
            values["completed_at"] = now

        result = session.execute(
            update(PaymentAttempt)
            .where(PaymentAttempt.id == payment.id)
            .where(PaymentAttempt.status == PaymentStatus.pending.value)
            .values(**values)
        )
        session.commit()
        session.refresh(payment)

        if result.rowcount:
            logger.info(
                f"[RECONCILE] payment_id={payment.id} order_id={payment.paymob_order_id} "
                f"pending -> {new_status.value} source={source}"
            )
        else:
            logger.info(f"[RECONCILE] payment_id={payment.id} already settled as {payment.status}")

    elif payment.status != new_status.value:
        logger.warning(
            f"[RECONCILE] ignoring {new_status.value} for settled payment_id={payment.id} "
            f"status={payment.status} source={source}"
        )

    if payment.status == PaymentStatus.completed.value:
        upsert_paid_enrollment(session, payment)

    return payment


def get_payment_by_order_id(session: Session, order_id: str) -> Optional[PaymentAttempt]:
    return session.exec(
        select(PaymentAttempt).where(PaymentAttempt.paymob_order_id == str(order_id))
    ).first()


def find_user_payment(
    session: Session,
    user_id: str,
    payment_id: Optional[str] = None,
    order_id: Optional[str] = None,
) -> PaymentAttempt:
    query = select(PaymentAttempt).where(PaymentAttempt.user_id == user_id)
    if payment_id:
        query = query.where(PaymentAttempt.id == payment_id)
    else:
        query = query.where(PaymentAttempt.paymob_order_id == str(order_id))

    payment = session.exec(query).first()
    if not payment:
        raise PaymentNotFound("Payment not found")
    return payment


def refresh_from_gateway(
    session: Session,
    payment: PaymentAttempt,
    gateway: PaymobClient,
) -> Optional[PaymobError]:
    """
    Ask Paymob about a pending attempt. Gateway errors are returned, not
    raised: the poller keeps going and a webhook may still settle it.
    """
    if payment.status != PaymentStatus.pending.value or not payment.paymob_order_id:
        return None

    try:
        token = gateway.authenticate()
        transaction = gateway.inquire_transaction(token, payment.paymob_order_id)
    except PaymobError as e:
        logger.warning(f"[RECONCILE] refresh failed payment_id={payment.id}: {e.message}")
        return e

    apply_transaction(session, payment, transaction, source="poll")
    return None
