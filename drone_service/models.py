"""
Design (models.py)
- Purpose: Define the data structures for a drone service job (ServiceRecord) and its Priority.
- Inputs: Field values (str, int, Decimal, Priority).
- Outputs: Dataclass instances.
- Side effects: None.
- Thread-safety: Plain containers; the engine serializes every mutation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from .config import COST_PLACES
from .utils import quantize_cost, sentence_case, title_case


class Priority(str, Enum):
    REGULAR = "Regular"
    EXPRESS = "Express"

    @classmethod
    def parse(cls, value: "Priority | str") -> "Priority":
        """Accept a Priority or its name/value in any case ("express", "EXPRESS", ...)."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown priority: {value!r}")


@dataclass(eq=False)
class ServiceRecord:
    """
    Design (ServiceRecord)
    - Purpose: One drone repair job.
    - Fields:
        client_name: stored trimmed; displayed in Title Case.
        drone_model: stored trimmed.
        service_tag: unique tag (100..900 step 10); fixed once set.
        service_problem: stored trimmed; displayed in sentence case.
        service_cost: Decimal quantized to 2 places (surcharge already applied for Express).
        service_priority: Priority.REGULAR or Priority.EXPRESS.
    - Equality is identity (eq=False), so queues can remove a record by reference.
    """
    client_name: str
    drone_model: str
    service_tag: int
    service_problem: str
    service_cost: Decimal = field(default=Decimal("0.00"))
    service_priority: Priority = Priority.REGULAR

    def __setattr__(self, name, value):
        if name in ("client_name", "drone_model", "service_problem"):
            value = (value or "").strip()
        elif name == "service_cost":
            value = quantize_cost(value)
        elif name == "service_priority":
            value = Priority.parse(value)
        elif name == "service_tag" and "service_tag" in self.__dict__:
            if value != self.__dict__["service_tag"]:
                raise AttributeError("service_tag cannot be changed once assigned")
        object.__setattr__(self, name, value)

    @property
    def display_client_name(self) -> str:
        return title_case(self.client_name)

    @property
    def display_problem(self) -> str:
        return sentence_case(self.service_problem)

    def display(self) -> str:
        """Single-line rendering of every field, as shown in the queue lists."""
        cost = self.service_cost.quantize(COST_PLACES)
        return (
            f"Tag: {self.service_tag}, Client: {self.display_client_name}, Model: {self.drone_model}, "
            f"Problem: {self.display_problem}, Cost: ${cost}, Priority: {self.service_priority.value}"
        )
