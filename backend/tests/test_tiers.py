"""Tier classification over the configured threshold table."""

import pytest

from learnstreak.exceptions import ValidationError
from learnstreak.offensives.models import TIER_ORDER, OffensiveTier
from learnstreak.offensives.tiers import TierClassifier, classify, get_tier_classifier


DEFAULT_THRESHOLDS = {"NORMAL": 1, "SUPER": 7, "ULTRA": 30, "KING": 180, "INFINITY": 365}


@pytest.fixture
def classifier() -> TierClassifier:
    return TierClassifier(DEFAULT_THRESHOLDS)


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (1, OffensiveTier.NORMAL),
        (6, OffensiveTier.NORMAL),
        (7, OffensiveTier.SUPER),
        (29, OffensiveTier.SUPER),
        (30, OffensiveTier.ULTRA),
        (179, OffensiveTier.ULTRA),
        (180, OffensiveTier.KING),
        (364, OffensiveTier.KING),
        (365, OffensiveTier.INFINITY),
        (5000, OffensiveTier.INFINITY),
    ],
)
def test_classify_boundaries(classifier: TierClassifier, days: int, expected: OffensiveTier) -> None:
    assert classifier.classify(days) is expected


def test_classify_is_non_decreasing(classifier: TierClassifier) -> None:
    ranks = [classifier.classify(days).rank for days in range(1, 800)]
    assert ranks == sorted(ranks)
    assert {TIER_ORDER[rank] for rank in ranks} == set(OffensiveTier)


def test_classify_rejects_non_positive_days(classifier: TierClassifier) -> None:
    with pytest.raises(ValidationError):
        classifier.classify(0)


def test_default_classifier_uses_settings() -> None:
    assert get_tier_classifier().thresholds == {OffensiveTier(k): v for k, v in DEFAULT_THRESHOLDS.items()}
    assert classify(7) is OffensiveTier.SUPER


def test_thresholds_are_configurable() -> None:
    fast = TierClassifier({"NORMAL": 1, "SUPER": 2, "ULTRA": 3, "KING": 4, "INFINITY": 5})
    assert [fast.classify(days) for days in range(1, 6)] == list(TIER_ORDER)


def test_table_keys_are_case_insensitive() -> None:
    table = {key.lower(): value for key, value in DEFAULT_THRESHOLDS.items()}
    assert TierClassifier(table).classify(30) is OffensiveTier.ULTRA


@pytest.mark.parametrize(
    "table",
    [
        {"NORMAL": 1, "SUPER": 7, "ULTRA": 30, "KING": 180},
        {"NORMAL": 2, "SUPER": 7, "ULTRA": 30, "KING": 180, "INFINITY": 365},
        {"NORMAL": 1, "SUPER": 30, "ULTRA": 30, "KING": 180, "INFINITY": 365},
        {"NORMAL": 1, "SUPER": 7, "ULTRA": 30, "KING": 400, "INFINITY": 365},
        {"NORMAL": 1, "SUPER": 7, "ULTRA": 30, "KING": 180, "INFINITY": 365, "LEGEND": 1000},
    ],
    ids=["missing-tier", "not-starting-at-one", "duplicate", "out-of-order", "unknown-tier"],
)
def test_invalid_tables_are_rejected(table: dict[str, int]) -> None:
    with pytest.raises(ValidationError):
        TierClassifier(table)


def test_days_until(classifier: TierClassifier) -> None:
    assert classifier.days_until(OffensiveTier.SUPER, 0) == 7
    assert classifier.days_until(OffensiveTier.SUPER, 5) == 2
    assert classifier.days_until(OffensiveTier.SUPER, 10) == 0
    assert classifier.days_until(OffensiveTier.INFINITY, 100) == 265
