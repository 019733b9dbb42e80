"""
Client side of payment verification.

After redirecting a student to the Paymob checkout, the frontend keeps asking
``POST /payments/status`` until the attempt settles. ``PaymentStatusPoller``
is that loop as a cancellable task: one stop event drives both the sleep
between checks and cancellation, and one deadline bounds the whole wait, so
nothing keeps ticking after the poller ends for any reason.
"""
import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

import requests

from coursepay.config import settings
from coursepay.constants.payment_status import PaymentStatus

logger = logging.getLogger(__name__)


class PollOutcome(str, Enum):
    completed = "completed"
    failed = "failed"
    timeout = "timeout"
    cancelled = "cancelled"


class HttpStatusChecker:
    """Calls the poll entry point with the student's bearer token."""

    def __init__(
        self,
        api_base_url: str,
        access_token: str,
        payment_id: Optional[str] = None,
        order_id: Optional[str] = None,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ):
        if not payment_id and not order_id:
            raise ValueError("Either payment ID or order ID is required")
        self.url = f"{api_base_url.rstrip('/')}/payments/status"
        self.access_token = access_token
        self.payment_id = payment_id
        self.order_id = order_id
        self.timeout = timeout
        self.http = http or requests.Session()

    def __call__(self) -> str:
        response = self.http.post(
            self.url,
            json={"paymentId": self.payment_id, "orderId": self.order_id},
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()["payment"]["status"]


class PaymentStatusPoller:
    def __init__(
        self,
        check_status: Callable[[], str],
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.check_status = check_status
        self.interval = interval if interval is not None else settings.payment_poll_interval_seconds
        self.timeout = timeout if timeout is not None else settings.payment_poll_timeout_seconds
        self.clock = clock

        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._outcome: Optional[PollOutcome] = None
        self.checks = 0

    @property
    def outcome(self) -> Optional[PollOutcome]:
        return self._outcome

    def run(self) -> PollOutcome:
        deadline = self.clock() + self.timeout

        while not self._stop.is_set():
            status = self._check_once()
            if status == PaymentStatus.completed.value:
                return self._finish(PollOutcome.completed)
            if status == PaymentStatus.failed.value:
                return self._finish(PollOutcome.failed)

            remaining = deadline - self.clock()
            if remaining <= 0:
                # the attempt stays pending; a late webhook can still settle it
                logger.info(f"[POLLER] verification timed out after {self.checks} checks")
                return self._finish(PollOutcome.timeout)

            self._stop.wait(min(self.interval, remaining))

        return self._finish(PollOutcome.cancelled)

    def _check_once(self) -> Optional[str]:
        self.checks += 1
        try:
            return self.check_status()
        except Exception as e:
            logger.warning(f"[POLLER] status check {self.checks} failed: {e}")
            return None

    def _record(self, outcome: PollOutcome) -> PollOutcome:
        # first recorded outcome wins, whichever thread gets here first
        with self._lock:
            if self._outcome is None:
                self._outcome = outcome
            return self._outcome

    def _finish(self, outcome: PollOutcome) -> PollOutcome:
        self._stop.set()
        return self._record(outcome)

    def start(self) -> "PaymentStatusPoller":
        if self._thread is not None:
            raise RuntimeError("poller already started")
        self._thread = threading.Thread(target=self.run, name="payment-status-poller", daemon=True)
        self._thread.start()
        return self

    def stop(self):
        """Cancel polling. Safe to call at any time, any number of times."""
        self._record(PollOutcome.cancelled)
        self._stop.set()

    def wait(self, timeout: Optional[float] = None) -> Optional[PollOutcome]:
        if self._thread is not None:
            self._thread.join(timeout)
        return self._outcome
