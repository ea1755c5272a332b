"""Promotional counter adjustment.

A special-status account holds one redemption of a counter-bearing promo
code. When the account is deleted the redemption is removed and the code's
counter goes down by one, never below zero.

Two deletion runs for the same account may race. Only the run whose
:meth:`CounterAdjuster.claim` actually removed the redemption decrements
the counter, so a redemption is never counted back twice.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dominium.foundation.domain.exceptions import ConflictError

if TYPE_CHECKING:
    from dominium.foundation.domain.account_value_objects import PromoRedemption
    from dominium.foundation.domain.ports.promo_counters import PromoCounterStorePort

logger = logging.getLogger(__name__)


class CounterAdjuster:
    """Claims redemptions and decrements their counters with compare-and-set.

    Attributes:
        _store: Redemption and counter store.
        _max_attempts: Compare-and-set attempts before giving up.
    """

    def __init__(self, store: PromoCounterStorePort, max_attempts: int = 5) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self._store = store
        self._max_attempts = max_attempts

    def claim(self, redemption: PromoRedemption) -> bool:
        """Delete the redemption record.

        Returns:
            True only if this call removed the record. An already-deleted
            redemption returns False and is not an error.
        """
        removed = self._store.delete_redemption(redemption.id) > 0
        logger.debug(
            "promo_redemption_claimed" if removed else "promo_redemption_already_removed",
            extra={
                "redemption_id": redemption.id,
                "promo_code_id": redemption.promo_code_id,
            },
        )
        return removed

    def decrement(self, counter_id: str) -> int:
        """Decrement a counter by one, clamped at zero.

        Reads the current value and writes ``max(0, value - 1)`` only if the
        value is unchanged, re-reading on contention.

        Args:
            counter_id: Promo code whose counter is adjusted.

        Returns:
            The value after adjustment. A missing counter is a no-op returning 0.

        Raises:
            ConflictError: If every compare-and-set attempt lost a race.
        """
        for attempt in range(1, self._max_attempts + 1):
            current = self._store.read_counter(counter_id)
            if current is None:
                logger.warning("promo_counter_missing", extra={"counter_id": counter_id})
                return 0
            new_value = max(0, current - 1)
            if new_value == current:
                return new_value
            if self._store.compare_and_set(counter_id, current, new_value):
                logger.info(
                    "promo_counter_decremented",
                    extra={
                        "counter_id": counter_id,
                        "previous_value": current,
                        "new_value": new_value,
                        "attempt": attempt,
                    },
                )
                return new_value
            logger.debug(
                "promo_counter_cas_lost",
                extra={"counter_id": counter_id, "attempt": attempt},
            )
        raise ConflictError(
            "Counter changed concurrently on every attempt",
            counter_id=counter_id,
            attempts=self._max_attempts,
        )
