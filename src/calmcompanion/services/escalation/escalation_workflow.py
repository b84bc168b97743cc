"""
Escalation Workflow

Contact selection, confirmation and dispatch for severe distress.

Flow:
    SELECTING --confirm()--> CONFIRMING --send()--> SENT
        ^                        |
        +--------back()----------+

reset() returns to SELECTING from any state with the selection
cleared. Every transition from the wrong state raises
InvalidStateError; nothing is silently ignored.

SAFETY: A failed dispatch keeps the workflow in CONFIRMING so the
user can retry. The failure is recorded, never raised.
"""

import threading
from typing import Callable, Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.exceptions import InvalidInputError, InvalidStateError
from calmcompanion.domain.models.contact import EmergencyContact
from calmcompanion.domain.models.escalation import (
    DispatchResult,
    EscalationPhase,
    EscalationState,
)
from calmcompanion.infrastructure.metrics.prometheus_metrics import track_escalation_dispatch
from calmcompanion.services.escalation.contact_store import ContactStore
from calmcompanion.services.escalation.notifier import Notifier

logger = get_logger(__name__)

StateListener = Callable[[EscalationState], None]


class EscalationWorkflow:
    """
    Emergency-contact escalation state machine.

    Usage:
        workflow = EscalationWorkflow(contact_store, notifier)
        workflow.toggle_contact("1")
        workflow.confirm()
        result = workflow.send(location_hint="home")
    """

    def __init__(
        self,
        contact_store: ContactStore,
        notifier: Notifier,
        default_location_hint: Optional[str] = None,
    ) -> None:
        self._contacts = contact_store
        self._notifier = notifier
        self._default_location_hint = default_location_hint
        self._lock = threading.RLock()

        self._phase = EscalationPhase.SELECTING
        self._selected: set[str] = set()
        self._last_result: Optional[DispatchResult] = None
        self._last_failure: Optional[DispatchResult] = None
        self._listeners: list[StateListener] = []
        # Bumped on every phase change; a send only applies its result to its own activation
        self._generation = 0
        self._sending = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def phase(self) -> EscalationPhase:
        return self._phase

    @property
    def state(self) -> EscalationState:
        with self._lock:
            return self._state()

    @property
    def last_result(self) -> Optional[DispatchResult]:
        return self._last_result

    @property
    def last_failure(self) -> Optional[DispatchResult]:
        """Most recent failed dispatch of this activation, if any."""
        return self._last_failure

    def contacts(self) -> list[EmergencyContact]:
        return self._contacts.list_contacts()

    def selected_contacts(self) -> list[EmergencyContact]:
        """Selected contacts in contact-store order."""
        with self._lock:
            selected = set(self._selected)
        return [contact for contact in self._contacts.list_contacts() if contact.id in selected]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def toggle_contact(self, contact_id: str) -> EscalationState:
        """
        Add or remove a contact from the selection.

        Raises:
            InvalidInputError: If the contact is unknown
            InvalidStateError: If not selecting
        """
        with self._lock:
            self._require(EscalationPhase.SELECTING, "toggle a contact")
            if not self._contacts.contains(contact_id):
                raise InvalidInputError(f"Unknown contact '{contact_id}'", value=contact_id)

            if contact_id in self._selected:
                self._selected.discard(contact_id)
            else:
                self._selected.add(contact_id)
            state = self._state()

        self._emit(state)
        return state

    def confirm(self) -> EscalationState:
        """
        Move to confirmation.

        Raises:
            InvalidStateError: If not selecting or nothing is selected
        """
        with self._lock:
            self._require(EscalationPhase.SELECTING, "confirm")
            if not self._selected:
                raise InvalidStateError(
                    "Select at least one contact before confirming",
                    state=self._phase.value,
                )
            self._phase = EscalationPhase.CONFIRMING
            self._generation += 1
            state = self._state()

        logger.info("Escalation awaiting confirmation", contact_count=len(state.selected_contact_ids))
        self._emit(state)
        return state

    def back(self) -> EscalationState:
        """Return to selection, keeping the selection."""
        with self._lock:
            self._require(EscalationPhase.CONFIRMING, "go back")
            self._phase = EscalationPhase.SELECTING
            self._generation += 1
            state = self._state()

        self._emit(state)
        return state

    def send(self, location_hint: Optional[str] = None) -> DispatchResult:
        """
        Dispatch the alert to the selected contacts.

        Blocks on the notifier; call from a worker thread in async code.
        The lock is not held during dispatch, so state reads and other
        transitions proceed. A result is only applied if the workflow
        has not moved since the send began.

        Args:
            location_hint: Location to include; falls back to the configured default

        Returns:
            DispatchResult; on failure the workflow stays CONFIRMING

        Raises:
            InvalidStateError: If not confirming or a send is already in flight
        """
        with self._lock:
            self._require(EscalationPhase.CONFIRMING, "send")
            if self._sending:
                raise InvalidStateError("An alert is already being sent", state=self._phase.value)
            self._sending = True
            generation = self._generation
            selected = set(self._selected)
            hint = location_hint if location_hint is not None else self._default_location_hint

        try:
            contacts = [c for c in self._contacts.list_contacts() if c.id in selected]
            try:
                result = self._notifier.dispatch(contacts, hint)
            except Exception as e:
                logger.exception("Notifier raised during dispatch", notifier=self._notifier.name)
                result = DispatchResult(
                    success=False,
                    contact_ids=[c.id for c in contacts],
                    detail=f"{type(e).__name__}: {e}",
                )
        finally:
            with self._lock:
                self._sending = False

        track_escalation_dispatch(result.success)

        with self._lock:
            applied = generation == self._generation and self._phase == EscalationPhase.CONFIRMING
            if applied:
                self._last_result = result
                if result.success:
                    self._phase = EscalationPhase.SENT
                    self._last_failure = None
                else:
                    self._last_failure = result
            state = self._state()

        if not applied:
            logger.warning(
                "Escalation moved during dispatch; result not applied",
                dispatch_id=str(result.dispatch_id),
                success=result.success,
                phase=state.phase.value,
            )
        elif result.success:
            logger.warning(
                "Escalation alert sent",
                dispatch_id=str(result.dispatch_id),
                contact_count=len(result.contact_ids),
            )
            self._emit(state)
        else:
            logger.error(
                "Escalation alert failed; staying in confirmation",
                dispatch_id=str(result.dispatch_id),
                detail=result.detail,
            )
        return result

    def reset(self) -> EscalationState:
        """Restart at SELECTING with an empty selection."""
        with self._lock:
            changed = self._phase != EscalationPhase.SELECTING or bool(self._selected)
            self._phase = EscalationPhase.SELECTING
            self._generation += 1
            self._selected.clear()
            self._last_result = None
            self._last_failure = None
            state = self._state()

        if changed:
            self._emit(state)
        return state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Receive a state snapshot after each transition."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _state(self) -> EscalationState:
        return EscalationState(phase=self._phase, selected_contact_ids=frozenset(self._selected))

    def _require(self, phase: EscalationPhase, action: str) -> None:
        if self._phase != phase:
            raise InvalidStateError(
                f"Cannot {action} while {self._phase.value}",
                state=self._phase.value,
            )

    def _emit(self, state: EscalationState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Escalation listener failed")
