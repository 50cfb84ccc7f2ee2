"""
Design (engine.py)
- Purpose: The facade the shell calls: create, load-for-edit, edit, process and remove jobs.
           Validates input, applies the Express surcharge, allocates tags and gates
           processing behind a two-step confirmation per queue.
- Inputs: Raw field strings, Priority values, ServiceRecord references, confirmation flags.
- Outputs: ServiceRecord / EditForm / ProcessOutcome values; ServiceError subclasses on failure.
- Side effects: Mutates the router; notifies subscribed listeners after each committed change.
- Thread-safety: Every operation runs under one RLock; listeners are called after it is released.
"""

import logging
import threading
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Dict, List, Optional

from .errors import EmptyQueueError, NotFoundError, TagSpaceExhaustedError, ValidationError
from .models import Priority, ServiceRecord
from .router import Location, PriorityQueueRouter
from .tags import TagAllocator
from .utils import apply_surcharge, parse_cost, remove_surcharge

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    PROCESSED = "processed"
    REMOVED = "removed"


@dataclass(frozen=True)
class ServiceEvent:
    kind: EventKind
    record: ServiceRecord


@dataclass(frozen=True)
class EditForm:
    """Values to pre-fill an edit form with; `cost` is the base cost (surcharge removed)."""
    service_tag: int
    client_name: str
    drone_model: str
    service_problem: str
    cost: Decimal
    priority: Priority


@dataclass(frozen=True)
class ProcessOutcome:
    """confirmed=False: the queue is now armed for `record`; call again to finish it."""
    confirmed: bool
    record: ServiceRecord


Listener = Callable[[ServiceEvent], None]


class ServiceLifecycleEngine:
    """
    Design (ServiceLifecycleEngine)
    - State:
        _router: PriorityQueueRouter holding every live record
        _tags: TagAllocator
        _pending: {Priority -> ServiceRecord | None} record armed for confirmation per queue
        _listeners: callbacks receiving ServiceEvent after each committed change
        _lock: threading.RLock around all reads and writes
    """

    def __init__(self, router: Optional[PriorityQueueRouter] = None, tags: Optional[TagAllocator] = None) -> None:
        self._lock = threading.RLock()
        self._router = router if router is not None else PriorityQueueRouter()
        self._tags = tags if tags is not None else TagAllocator()
        self._pending: Dict[Priority, Optional[ServiceRecord]] = {p: None for p in Priority}
        self._listeners: List[Listener] = []

    # -------- Notification --------

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, kind: EventKind, record: ServiceRecord) -> None:
        with self._lock:
            listeners = list(self._listeners)
        event = ServiceEvent(kind, record)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s for tag %s", listener, kind.value, record.service_tag)

    # -------- Validation & tags --------

    @staticmethod
    def _validate(client_name, drone_model, problem, raw_cost, priority) -> tuple[Decimal, Priority]:
        """
        Purpose: Check the fields in order; the first failure wins.
        Outputs: (parsed raw cost, Priority)
        Raises: ValidationError(field, reason)
        """
        if not (client_name or "").strip():
            raise ValidationError("client_name", "Client Name required.")
        if not (drone_model or "").strip():
            raise ValidationError("drone_model", "Drone Model required.")
        if not (problem or "").strip():
            raise ValidationError("service_problem", "Service Problem required.")
        cost = parse_cost(raw_cost)
        if cost is None:
            raise ValidationError("service_cost", "Cost must be numeric.")
        if cost < 0:
            raise ValidationError("service_cost", "Cost cannot be negative.")
        try:
            apply_surcharge(cost, express=True)
        except InvalidOperation:
            raise ValidationError("service_cost", "Cost is too large.") from None
        try:
            return cost, Priority.parse(priority)
        except ValueError:
            raise ValidationError("service_priority", "Priority must be Regular or Express.") from None

    def _allocate_tag(self) -> int:
        """Next tag from the allocator, stepping past tags still live after a wrap."""
        live = self._router.all_tags()
        tag = self._tags.next_tag(live)
        for _ in range(self._tags.capacity):
            if tag not in live:
                return tag
            tag = self._tags.following(tag)
        raise TagSpaceExhaustedError(self._tags.capacity)

    def next_tag(self) -> int:
        """Tag the next create_record would receive (shown read-only on the intake form)."""
        with self._lock:
            return self._allocate_tag()

    # -------- Operations --------

    def create_record(self, client_name: str, drone_model: str, problem: str, raw_cost, priority) -> ServiceRecord:
        """
        Purpose: Validate intake, allocate a tag, price the job and queue it.
        Outputs: The new ServiceRecord (already at the tail of its queue).
        Raises: ValidationError, TagSpaceExhaustedError. Nothing is stored on failure.
        """
        try:
            cost, prio = self._validate(client_name, drone_model, problem, raw_cost, priority)
        except ValidationError as exc:
            logger.debug("Rejected new job: %s", exc.reason)
            raise
        with self._lock:
            record = ServiceRecord(
                client_name=client_name,
                drone_model=drone_model,
                service_tag=self._allocate_tag(),
                service_problem=problem,
                service_cost=apply_surcharge(cost, prio is Priority.EXPRESS),
                service_priority=prio,
            )
            self._router.enqueue(record, prio)
        logger.info("Added %s tag %s (cost %s)", prio.value, record.service_tag, record.service_cost)
        self._emit(EventKind.CREATED, record)
        return record

    def load_for_edit(self, record: ServiceRecord) -> EditForm:
        """
        Purpose: Field values for editing a queued job. Express cost is shown without the
                 surcharge so saving re-applies it once.
        Raises: NotFoundError if the job is no longer queued.
        """
        with self._lock:
            self._require_queued(record)
            return EditForm(
                service_tag=record.service_tag,
                client_name=record.display_client_name,
                drone_model=record.drone_model,
                service_problem=record.display_problem,
                cost=remove_surcharge(record.service_cost, record.service_priority is Priority.EXPRESS),
                priority=record.service_priority,
            )

    def edit_record(self, existing: ServiceRecord, client_name: str, drone_model: str, problem: str,
                    raw_cost, priority) -> ServiceRecord:
        """
        Purpose: Update a queued job in place. The tag never changes; a priority change moves
                 the job to the tail of the other queue before the new values are committed.
        Inputs: raw_cost is the base (pre-surcharge) cost, as returned by load_for_edit.
        Outputs: The same ServiceRecord object.
        Raises: ValidationError, NotFoundError. Nothing changes on failure.
        """
        try:
            cost, prio = self._validate(client_name, drone_model, problem, raw_cost, priority)
        except ValidationError as exc:
            logger.debug("Rejected edit of tag %s: %s", existing.service_tag, exc.reason)
            raise
        with self._lock:
            self._require_queued(existing)
            old = existing.service_priority
            if prio != old:
                self._router.relocate(existing, old, prio)
                if self._pending[old] is existing:
                    self._pending[old] = None
            existing.client_name = client_name
            existing.drone_model = drone_model
            existing.service_problem = problem
            existing.service_priority = prio
            existing.service_cost = apply_surcharge(cost, prio is Priority.EXPRESS)
        if prio != old:
            logger.info("Updated tag %s, moved %s -> %s", existing.service_tag, old.value, prio.value)
        else:
            logger.info("Updated tag %s", existing.service_tag)
        self._emit(EventKind.UPDATED, existing)
        return existing

    def process_next(self, priority, selected: Optional[ServiceRecord] = None) -> ProcessOutcome:
        """
        Purpose: Two-step processing of a queue. The candidate is `selected` when given,
                 otherwise the head of the queue.
                 1st call: arm the queue for the candidate, return confirmed=False.
                 2nd call, same candidate: move it to Finished, return confirmed=True.
                 A different candidate re-arms instead of finishing.
        Raises: EmptyQueueError (no selection, empty queue), NotFoundError (selected job
                is not in that queue). Neither mutates anything.
        """
        prio = Priority.parse(priority)
        with self._lock:
            if selected is not None:
                if self._router.locate(selected) != Location(prio.value):
                    raise NotFoundError(selected, f"the {prio.value} queue")
                candidate = selected
            else:
                candidate = self._router.peek(prio)
                if candidate is None:
                    raise EmptyQueueError(prio)
            if self._pending[prio] is not candidate:
                self._pending[prio] = candidate
                logger.debug("Awaiting confirmation for %s tag %s", prio.value, candidate.service_tag)
                return ProcessOutcome(confirmed=False, record=candidate)
            self._pending[prio] = None
            if candidate is self._router.peek(prio):
                self._router.add_finished(self._router.dequeue_front(prio))
            else:
                self._router.move_to_finished(candidate)
        logger.info("Processed %s tag %s", prio.value, candidate.service_tag)
        self._emit(EventKind.PROCESSED, candidate)
        return ProcessOutcome(confirmed=True, record=candidate)

    def select(self, priority, record: Optional[ServiceRecord]) -> None:
        """Selection changed in a queue view; a different candidate disarms that queue."""
        prio = Priority.parse(priority)
        with self._lock:
            if self._pending[prio] is not None and self._pending[prio] is not record:
                self._pending[prio] = None

    def clear_pending(self, priority) -> None:
        with self._lock:
            self._pending[Priority.parse(priority)] = None

    def is_pending(self, priority) -> bool:
        with self._lock:
            return self._pending[Priority.parse(priority)] is not None

    def remove_finished(self, record: ServiceRecord, confirmed: bool) -> bool:
        """
        Purpose: Delete a finished job once the caller has confirmed.
        Outputs: True if removed; False if not confirmed (nothing changes).
        Raises: NotFoundError if the job is no longer in Finished.
        """
        if not confirmed:
            logger.debug("Removal of tag %s not confirmed", record.service_tag)
            return False
        with self._lock:
            self._router.remove_finished(record)
        logger.info("Removed finished tag %s", record.service_tag)
        self._emit(EventKind.REMOVED, record)
        return True

    # -------- Snapshots for safe reading --------

    def snapshot(self, priority) -> List[ServiceRecord]:
        with self._lock:
            return self._router.snapshot(priority)

    def finished_snapshot(self) -> List[ServiceRecord]:
        with self._lock:
            return self._router.finished_snapshot()

    def _require_queued(self, record: ServiceRecord) -> None:
        if self._router.locate(record) not in (Location.REGULAR, Location.EXPRESS):
            raise NotFoundError(record, "any service queue")
