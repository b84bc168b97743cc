"""
Alert Notifiers

Delivery backends for emergency-contact alerts.

IMPORTANT: Delivery is best effort. A notifier reports failure
through DispatchResult and never raises to the escalation workflow,
which stays in its confirming state so the user can retry or use
crisis resources instead.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, Sequence

import httpx
from tenacity import (
    RetryError,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.exceptions import ExternalFailureError
from calmcompanion.domain.models.contact import EmergencyContact
from calmcompanion.domain.models.escalation import DispatchResult

logger = get_logger(__name__)


ALERT_MESSAGE = (
    "Someone who listed you as an emergency contact is in severe distress "
    "and has asked you to check on them immediately."
)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ExternalFailureError) and error.is_retryable


class Notifier(ABC):
    """
    Abstract alert delivery interface.

    Implementations must return a DispatchResult for both delivered
    and failed alerts.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logs and metrics."""
        pass

    @abstractmethod
    def dispatch(
        self,
        contacts: Sequence[EmergencyContact],
        location_hint: Optional[str] = None,
    ) -> DispatchResult:
        """
        Send an alert to each contact.

        Args:
            contacts: Recipients
            location_hint: Free-text location to include in the alert

        Returns:
            DispatchResult describing the outcome
        """
        pass


class LoggingNotifier(Notifier):
    """
    Notifier that records alerts in memory and logs them.

    Default backend for development; nothing leaves the process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outbox: list[dict] = []

    @property
    def name(self) -> str:
        return "log"

    @property
    def outbox(self) -> list[dict]:
        """Alerts dispatched so far, oldest first."""
        with self._lock:
            return list(self._outbox)

    def dispatch(
        self,
        contacts: Sequence[EmergencyContact],
        location_hint: Optional[str] = None,
    ) -> DispatchResult:
        result = DispatchResult(
            success=True,
            contact_ids=[contact.id for contact in contacts],
            detail=f"Alert recorded for {len(contacts)} contact(s)",
        )

        with self._lock:
            self._outbox.append({
                "dispatch_id": str(result.dispatch_id),
                "contact_ids": result.contact_ids,
                "location_hint": location_hint,
                "message": ALERT_MESSAGE,
            })

        # Contact details are never logged
        logger.warning(
            "Emergency alert dispatched",
            notifier=self.name,
            dispatch_id=str(result.dispatch_id),
            contact_count=len(contacts),
            hint_included=location_hint is not None,
        )
        return result


class WebhookNotifier(Notifier):
    """
    Notifier that POSTs alerts as JSON to an HTTP endpoint.

    Transport errors and 5xx/429 responses are retried with
    exponential backoff; other 4xx responses fail immediately.
    """

    RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout_seconds: float = 5.0,
        max_attempts: int = 3,
        retry_wait_seconds: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize webhook notifier.

        Args:
            url: Webhook endpoint
            token: Optional bearer token
            timeout_seconds: Per-attempt timeout
            max_attempts: Attempts before giving up
            retry_wait_seconds: Base of the exponential backoff
            transport: Optional httpx transport (tests)
        """
        if not url:
            raise ValueError("Webhook notifier requires a URL")

        self._url = url
        self._token = token
        self._timeout = timeout_seconds
        self._transport = transport

        self._post_with_retry = retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=retry_wait_seconds, min=0, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=False,
        )(self._post)

    @property
    def name(self) -> str:
        return "webhook"

    def dispatch(
        self,
        contacts: Sequence[EmergencyContact],
        location_hint: Optional[str] = None,
    ) -> DispatchResult:
        contact_ids = [contact.id for contact in contacts]
        payload = {
            "type": "emergency_alert",
            "message": ALERT_MESSAGE,
            "location_hint": location_hint,
            "contacts": [contact.to_dict() for contact in contacts],
            "sent_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            self._post_with_retry(payload)
        except RetryError as e:
            error = e.last_attempt.exception()
            logger.error(
                "Emergency alert delivery failed",
                notifier=self.name,
                attempts=e.last_attempt.attempt_number,
                error_type=type(error).__name__,
            )
            return DispatchResult(success=False, contact_ids=contact_ids, detail=str(error))
        except ExternalFailureError as e:
            logger.error(
                "Emergency alert rejected",
                notifier=self.name,
                error=str(e),
            )
            return DispatchResult(success=False, contact_ids=contact_ids, detail=str(e))

        logger.warning(
            "Emergency alert dispatched",
            notifier=self.name,
            contact_count=len(contacts),
            hint_included=location_hint is not None,
        )
        return DispatchResult(
            success=True,
            contact_ids=contact_ids,
            detail=f"Alert delivered for {len(contacts)} contact(s)",
        )

    def _post(self, payload: dict) -> None:
        headers = {"content-type": "application/json"}
        if self._token:
            headers["authorization"] = f"Bearer {self._token}"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ExternalFailureError(
                f"Webhook transport error: {type(e).__name__}",
                collaborator=self.name,
                is_retryable=True,
                original_error=e,
            ) from e

        if response.status_code in self.RETRYABLE_STATUS:
            raise ExternalFailureError(
                f"Webhook returned {response.status_code}",
                collaborator=self.name,
                is_retryable=True,
            )
        if response.status_code >= 400:
            raise ExternalFailureError(
                f"Webhook rejected alert with {response.status_code}",
                collaborator=self.name,
                is_retryable=False,
            )
