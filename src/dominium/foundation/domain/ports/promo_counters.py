"""Port interface for promotional redemption counters.

Counters are adjusted with optimistic concurrency: callers read the current
value and write the new one only if it is unchanged (compare-and-set).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PromoCounterStorePort(Protocol):
    """Port for redemption records and their parent counters."""

    def delete_redemption(self, redemption_id: str) -> int:
        """Delete one redemption record. Returns 1 if removed, 0 if already gone."""
        ...

    def read_counter(self, counter_id: str) -> int | None:
        """Current counter value, or None if the counter does not exist."""
        ...

    def compare_and_set(self, counter_id: str, expected: int, new_value: int) -> bool:
        """Write ``new_value`` only if the counter still equals ``expected``."""
        ...
