from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from insights_events.constants import MAX_BUFFER_SIZE
from insights_events.encoding import SEPARATOR


@dataclass(frozen=True)
class Batch:
    """
    One buffer generation, captured at flush time.
    """

    fragments: Tuple[str, ...]
    size: int
    generation: int

    def __len__(self) -> int:
        return len(self.fragments)

    @property
    def is_empty(self) -> bool:
        return not self.fragments

    def as_text(self) -> str:
        """
        The comma separated interior of the JSON array.
        """
        return SEPARATOR.join(self.fragments)


class EventBuffer:
    """
    Serialized events waiting to be posted.

    Size is the length of the comma separated fragments, which is the
    uncompressed body size minus the two array brackets.
    """

    def __init__(self, max_size: int = MAX_BUFFER_SIZE):
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size

        self._lock = threading.Lock()
        self._fragments: List[str] = []
        self._size = 0
        self._generation = 0

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    @property
    def size(self) -> int:
        return self._size

    @property
    def count(self) -> int:
        return len(self._fragments)

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return self.count

    def append(self, fragment: str) -> Optional[Batch]:
        """
        Add a serialized event and cut a batch if the buffer overflowed.

        Must be called with ``lock`` held.

        Returns:
            Optional[Batch]: The captured generation when the size threshold
            was exceeded, the buffer being empty again; otherwise None.
        """
        if self._fragments:
            self._size += len(SEPARATOR)
        self._fragments.append(fragment)
        self._size += len(fragment)

        if self._size > self.max_size:
            return self.drain()
        return None

    def drain(self) -> Batch:
        """
        Capture the current generation and reset to empty.

        Must be called with ``lock`` held.
        """
        batch = Batch(
            fragments=tuple(self._fragments),
            size=self._size,
            generation=self._generation,
        )
        self._fragments = []
        self._size = 0
        self._generation += 1
        return batch
