"""
Design (router.py)
- Purpose: Own the three places a job can live (Regular queue, Express queue, Finished list)
           behind a tiny API, so the engine never touches the lists directly.
- Inputs: ServiceRecord objects and Priority values.
- Outputs: Records popped from a queue; snapshots (copies) of each collection.
- Side effects: Mutates the internal lists.
- Thread-safety: None of its own; ServiceLifecycleEngine holds its lock around every call.
"""

from collections import deque
from enum import Enum
from typing import Deque, List, Set

from .errors import EmptyQueueError, NotFoundError
from .models import Priority, ServiceRecord


class Location(str, Enum):
    REGULAR = "Regular"
    EXPRESS = "Express"
    FINISHED = "Finished"


def _remove_by_identity(items, record: ServiceRecord) -> bool:
    """Stable in-place filter: drop `record` (by reference), keep everyone else in order."""
    kept = [item for item in items if item is not record]
    if len(kept) == len(items):
        return False
    items.clear()
    items.extend(kept)
    return True


class PriorityQueueRouter:
    """
    Design (PriorityQueueRouter)
    - State:
        _queues: {Priority -> deque[ServiceRecord]} FIFO, head on the left
        _finished: list[ServiceRecord] in the order jobs were finished
    """

    def __init__(self) -> None:
        self._queues: dict[Priority, Deque[ServiceRecord]] = {
            Priority.REGULAR: deque(),
            Priority.EXPRESS: deque(),
        }
        self._finished: List[ServiceRecord] = []

    def _queue(self, priority) -> Deque[ServiceRecord]:
        return self._queues[Priority.parse(priority)]

    # -------- Queue operations --------

    def enqueue(self, record: ServiceRecord, priority) -> None:
        """
        Purpose: Append a record to the tail of the queue for `priority`.
        Side effects: Mutates that queue.
        """
        self._queue(priority).append(record)

    def relocate(self, record: ServiceRecord, from_priority, to_priority) -> None:
        """
        Purpose: Move a record from one queue to the tail of the other.
        Inputs: record, from_priority, to_priority
        Outputs: None. Same priority on both sides is a no-op (no duplicate, no reorder).
        Side effects: Mutates both queues.
        Raises: NotFoundError if `record` is not in the from_priority queue.
        """
        source = Priority.parse(from_priority)
        target = Priority.parse(to_priority)
        if source == target:
            if not any(item is record for item in self._queues[source]):
                raise NotFoundError(record, f"the {source.value} queue")
            return
        if not _remove_by_identity(self._queues[source], record):
            raise NotFoundError(record, f"the {source.value} queue")
        self._queues[target].append(record)

    def dequeue_front(self, priority) -> ServiceRecord:
        """
        Purpose: Remove and return the head of the queue.
        Raises: EmptyQueueError if the queue is empty (nothing is mutated).
        """
        queue = self._queue(priority)
        if not queue:
            raise EmptyQueueError(Priority.parse(priority))
        return queue.popleft()

    def peek(self, priority) -> ServiceRecord | None:
        queue = self._queue(priority)
        return queue[0] if queue else None

    def move_to_finished(self, record: ServiceRecord) -> None:
        """
        Purpose: Take a record out of whichever queue holds it and add it to Finished.
        Raises: NotFoundError if neither queue holds it.
        """
        for queue in self._queues.values():
            if _remove_by_identity(queue, record):
                self._finished.append(record)
                return
        raise NotFoundError(record, "any service queue")

    def add_finished(self, record: ServiceRecord) -> None:
        """Append a record that has already left its queue (see dequeue_front)."""
        self._finished.append(record)

    def remove_finished(self, record: ServiceRecord) -> None:
        """
        Purpose: Delete a record from Finished.
        Raises: NotFoundError if it is not there.
        """
        if not _remove_by_identity(self._finished, record):
            raise NotFoundError(record, "the finished list")

    # -------- Lookups & snapshots --------

    def locate(self, record: ServiceRecord) -> Location | None:
        for priority, queue in self._queues.items():
            if any(item is record for item in queue):
                return Location(priority.value)
        if any(item is record for item in self._finished):
            return Location.FINISHED
        return None

    def all_tags(self) -> Set[int]:
        """Tags of every live record (both queues and Finished)."""
        tags = {r.service_tag for queue in self._queues.values() for r in queue}
        tags.update(r.service_tag for r in self._finished)
        return tags

    def snapshot(self, priority) -> List[ServiceRecord]:
        """
        Purpose: Copy of one queue in FIFO order, for display.
        Outputs: New list (records themselves are shared; do not mutate them outside the engine).
        """
        return list(self._queue(priority))

    def finished_snapshot(self) -> List[ServiceRecord]:
        return list(self._finished)

    def __len__(self) -> int:
        return sum(len(q) for q in self._queues.values()) + len(self._finished)
