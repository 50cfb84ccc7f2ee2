"""
Design (tags.py)
- Purpose: Produce the next service tag: multiples of 10 from 100 up to 900, wrapping to 100.
- Inputs: The tags currently live anywhere in the system.
- Outputs: int tag.
- Side effects: None. No uniqueness check is made here (see ServiceLifecycleEngine._allocate_tag).
- Thread-safety: Stateless.
"""

from typing import Iterable

from .config import TAG_MAX, TAG_START, TAG_STEP


class TagAllocator:
    def __init__(self, start: int = TAG_START, step: int = TAG_STEP, maximum: int = TAG_MAX) -> None:
        self.start = start
        self.step = step
        self.maximum = maximum

    @property
    def capacity(self) -> int:
        """Number of distinct tags in the range (81 with the defaults)."""
        return (self.maximum - self.start) // self.step + 1

    def next_tag(self, existing_tags: Iterable[int]) -> int:
        """
        Purpose: Highest live tag + step, or start if nothing is live.
        Outputs: Tag; anything past maximum wraps to start.
        """
        highest = max(existing_tags, default=self.start - self.step)
        candidate = highest + self.step
        return candidate if candidate <= self.maximum else self.start

    def following(self, tag: int) -> int:
        """The tag after `tag` in allocation order (wrapping)."""
        candidate = tag + self.step
        return candidate if candidate <= self.maximum else self.start
