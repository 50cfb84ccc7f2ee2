"""
Design (errors.py)
- Purpose: Typed failures raised by the core and caught by the shell.
- Side effects: None. No failure leaves the engine partially mutated.
"""


class ServiceError(Exception):
    """Base class for every failure the engine reports to its caller."""


class ValidationError(ServiceError):
    """User-correctable input problem; `reason` is shown to the user verbatim."""

    def __init__(self, field: str, reason: str):
        super().__init__(reason)
        self.field = field
        self.reason = reason


class EmptyQueueError(ServiceError):
    def __init__(self, priority):
        super().__init__(f"No {priority.value} jobs waiting.")
        self.priority = priority


class NotFoundError(ServiceError):
    """The referenced record is no longer where the caller expected it."""

    def __init__(self, record, where: str):
        super().__init__(f"Tag {record.service_tag} is not in {where}.")
        self.record = record
        self.where = where


class TagSpaceExhaustedError(ServiceError):
    def __init__(self, capacity: int):
        super().__init__(f"All {capacity} service tags are in use.")
        self.capacity = capacity
