from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScoreLadder:
    """Ordered ``(threshold, score)`` rungs evaluated top-down with ``>=``.

    ``positive_floor`` is returned for any positive value below the lowest
    rung; everything else scores 0.
    """

    name: str
    rungs: tuple[tuple[float, float], ...]
    positive_floor: Optional[float] = None

    def __post_init__(self):
        thresholds = [threshold for threshold, _ in self.rungs]
        scores = [score for _, score in self.rungs]
        if any(upper <= lower for upper, lower in zip(thresholds, thresholds[1:])):
            raise ValueError("{} thresholds must be strictly descending".format(self.name))
        if any(upper < lower for upper, lower in zip(scores, scores[1:])):
            raise ValueError("{} scores must not increase down the ladder".format(self.name))
        if self.positive_floor is not None and scores and self.positive_floor > scores[-1]:
            raise ValueError("{} positive floor exceeds the lowest rung".format(self.name))


REVENUE_LADDER = ScoreLadder(
    name="revenue",
    rungs=(
        (50000, 1.0),
        (20000, 0.9),
        (10000, 0.8),
        (5000, 0.7),
        (2000, 0.6),
        (1000, 0.5),
        (500, 0.4),
        (100, 0.3),
        (50, 0.2),
    ),
    positive_floor=0.1,
)

VOLUME_LADDER = ScoreLadder(
    name="volume",
    rungs=(
        (5000, 1.0),
        (2000, 0.9),
        (1000, 0.8),
        (500, 0.7),
        (200, 0.6),
        (100, 0.5),
        (50, 0.4),
        (20, 0.3),
        (10, 0.2),
    ),
    positive_floor=0.1,
)

FREQUENCY_LADDER = ScoreLadder(
    name="frequency",
    rungs=(
        (100, 1.0),
        (75, 0.9),
        (50, 0.8),
        (30, 0.7),
        (20, 0.6),
        (15, 0.5),
        (10, 0.4),
        (5, 0.3),
        (3, 0.2),
    ),
    positive_floor=0.1,
)

UNIT_PRICE_LADDER = ScoreLadder(
    name="unit_price",
    rungs=(
        (1000, 1.0),
        (500, 0.8),
        (200, 0.6),
        (100, 0.5),
        (50, 0.4),
        (20, 0.3),
        (10, 0.2),
    ),
    positive_floor=0.1,
)

AVERAGE_ORDER_VALUE_LADDER = ScoreLadder(
    name="average_order_value",
    rungs=(
        (500, 1.0),
        (200, 0.8),
        (100, 0.6),
        (50, 0.4),
        (20, 0.2),
    ),
    positive_floor=0.1,
)

# 1.0 is an average month; no credit below half of it.
SEASONALITY_LADDER = ScoreLadder(
    name="seasonality",
    rungs=(
        (2.0, 1.0),
        (1.5, 0.8),
        (1.2, 0.6),
        (0.8, 0.4),
        (0.5, 0.2),
    ),
)

LADDERS = {
    ladder.name: ladder
    for ladder in (
        REVENUE_LADDER,
        VOLUME_LADDER,
        FREQUENCY_LADDER,
        UNIT_PRICE_LADDER,
        AVERAGE_ORDER_VALUE_LADDER,
        SEASONALITY_LADDER,
    )
}


def score_component(value, ladder: ScoreLadder) -> float:
    numeric = float(value)
    if math.isnan(numeric):
        return 0.0
    for threshold, score in ladder.rungs:
        if numeric >= threshold:
            return score
    if ladder.positive_floor is not None and numeric > 0:
        return ladder.positive_floor
    return 0.0


def revenue_score(revenue) -> float:
    return score_component(revenue, REVENUE_LADDER)


def volume_score(volume) -> float:
    return score_component(volume, VOLUME_LADDER)


def frequency_score(frequency) -> float:
    return score_component(frequency, FREQUENCY_LADDER)


def unit_price_score(unit_price) -> float:
    return score_component(unit_price, UNIT_PRICE_LADDER)


def average_order_value_score(average_order_value) -> float:
    return score_component(average_order_value, AVERAGE_ORDER_VALUE_LADDER)


def seasonality_score(seasonality_index) -> float:
    return score_component(seasonality_index, SEASONALITY_LADDER)


__all__ = [
    "AVERAGE_ORDER_VALUE_LADDER",
    "FREQUENCY_LADDER",
    "LADDERS",
    "REVENUE_LADDER",
    "SEASONALITY_LADDER",
    "ScoreLadder",
    "UNIT_PRICE_LADDER",
    "VOLUME_LADDER",
    "average_order_value_score",
    "frequency_score",
    "revenue_score",
    "score_component",
    "seasonality_score",
    "unit_price_score",
    "volume_score",
]
