"""Tier classification for streak lengths.

The thresholds are configuration, not logic: each tier owns the half-open
interval ``[threshold, next_threshold)`` of consecutive days and the last tier
is open-ended. With the default table a 7-day run is SUPER and a 365-day run is
INFINITY.
"""

from collections.abc import Mapping
from functools import lru_cache

from learnstreak.config.settings import get_settings
from learnstreak.exceptions import ValidationError

from .models import TIER_ORDER, OffensiveTier


class TierClassifier:
    """Maps consecutive-day counts to tiers using an ordered threshold table."""

    def __init__(self, thresholds: Mapping[str | OffensiveTier, int]) -> None:
        table: dict[OffensiveTier, int] = {}
        for key, value in thresholds.items():
            try:
                tier = OffensiveTier(key.upper() if isinstance(key, str) else key)
            except ValueError as e:
                msg = f"Unknown offensive tier in threshold table: {key!r}"
                raise ValidationError(msg) from e
            table[tier] = int(value)

        missing = [tier.value for tier in TIER_ORDER if tier not in table]
        if missing:
            msg = f"Threshold table is missing tiers: {', '.join(missing)}"
            raise ValidationError(msg)

        ordered = [(tier, table[tier]) for tier in TIER_ORDER]
        if ordered[0][1] != 1:
            msg = f"{ordered[0][0].value} must start at 1 day, got {ordered[0][1]}"
            raise ValidationError(msg)
        for (lower_tier, lower), (upper_tier, upper) in zip(ordered, ordered[1:], strict=False):
            if upper <= lower:
                msg = (
                    f"Thresholds must strictly increase in tier order: "
                    f"{lower_tier.value}={lower} >= {upper_tier.value}={upper}"
                )
                raise ValidationError(msg)

        self._ordered = ordered

    @property
    def thresholds(self) -> dict[OffensiveTier, int]:
        return dict(self._ordered)

    def threshold(self, tier: OffensiveTier) -> int:
        """Return the first day count that reaches ``tier``."""
        return dict(self._ordered)[tier]

    def classify(self, consecutive_days: int) -> OffensiveTier:
        """Return the tier whose interval contains ``consecutive_days``."""
        if consecutive_days < 1:
            msg = f"consecutive_days must be >= 1, got {consecutive_days}"
            raise ValidationError(msg)

        current = self._ordered[0][0]
        for tier, lower in self._ordered:
            if consecutive_days < lower:
                break
            current = tier
        return current

    def days_until(self, tier: OffensiveTier, consecutive_days: int) -> int:
        """Days still needed to reach ``tier``; 0 once it is reached."""
        return max(0, self.threshold(tier) - max(consecutive_days, 0))


@lru_cache
def get_tier_classifier() -> TierClassifier:
    """Classifier built from the configured threshold table."""
    return TierClassifier(get_settings().OFFENSIVE_TIER_THRESHOLDS)


def classify(consecutive_days: int) -> OffensiveTier:
    """Classify with the configured threshold table."""
    return get_tier_classifier().classify(consecutive_days)
