from enum import Enum


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class PaymentMethod(str, Enum):
    card = "card"
    voucher = "voucher"


class EnrollmentType(str, Enum):
    # mirrors the stored column; this service only writes free and purchase
    free = "free"
    purchase = "purchase"
    voucher = "voucher"


ALLOWED_TRANSITIONS = {
    PaymentStatus.pending: [PaymentStatus.completed, PaymentStatus.failed],
    PaymentStatus.completed: [],
    PaymentStatus.failed: [],
}


def can_transition(current, new) -> bool:
    return PaymentStatus(new) in ALLOWED_TRANSITIONS[PaymentStatus(current)]
