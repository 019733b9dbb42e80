import hashlib
import hmac
from typing import Any, Optional

# Order matters: Paymob hashes the values concatenated in exactly this order.
HMAC_FIELDS = (
    "amount_cents",
    "created_at",
    "currency",
    "error_occured",
    "has_parent_transaction",
    "id",
    "integration_id",
    "is_3d_secure",
    "is_auth",
    "is_capture",
    "is_refunded",
    "is_standalone_payment",
    "is_voided",
    "order.id",
    "owner",
    "pending",
    "source_data.pan",
    "source_data.sub_type",
    "source_data.type",
    "success",
)


def _lookup(transaction: dict, path: str) -> Any:
    value: Any = transaction
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def hmac_verification_string(transaction: dict) -> str:
    return "".join(_as_text(_lookup(transaction, f)) for f in HMAC_FIELDS)


def compute_hmac(transaction: dict, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        hmac_verification_string(transaction).encode("utf-8"),
        hashlib.sha512,
    ).hexdigest()


def verify_hmac(transaction: dict, received: Optional[str], secret: str) -> bool:
    if not received or not secret:
        return False
    expected = compute_hmac(transaction, secret).encode("utf-8")
    return hmac.compare_digest(expected, received.strip().lower().encode("utf-8"))
