from typing import Optional


class PaymentFlowError(Exception):
    """Base error for checkout and reconciliation, rendered as {success: false, error}."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class CourseNotFound(PaymentFlowError):
    status_code = 404


class AlreadyEnrolled(PaymentFlowError):
    status_code = 409


class CheckoutValidationError(PaymentFlowError):
    status_code = 400


class PaymentNotFound(PaymentFlowError):
    status_code = 404


class InvalidSignature(PaymentFlowError):
    status_code = 401


class UnsupportedWebhook(PaymentFlowError):
    status_code = 400


class PaymentPersistenceError(PaymentFlowError):
    status_code = 500


class PaymobError(PaymentFlowError):
    """A gateway call failed. Carries the failing step and upstream HTTP status."""

    status_code = 502

    def __init__(self, step: str, message: str, upstream_status: Optional[int] = None):
        detail = f"Paymob {step} failed"
        if upstream_status is not None:
            detail += f": {upstream_status}"
        if message:
            detail += f" ({message})"
        super().__init__(detail)
        self.step = step
        self.upstream_status = upstream_status
