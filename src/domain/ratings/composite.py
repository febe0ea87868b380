"""Composite opponent built from two city ratings and one pair rating.

The city base rate is the inverse-variance weighted mean of the two cities.
A confidence factor alpha, derived from the pair's RD, then interpolates
between that base rate and the pair-specific rating:

    alpha = clamp((RD_MAX - pair.rd) / (RD_MAX - RD_MIN), 0, 1)
    rating = (1 - alpha) * base + alpha * pair.rating
    rd = sqrt((1 - alpha)^2 * sigma_base^2 + alpha^2 * pair.rd^2)

A brand-new pair (rd = RD_MAX) is rated entirely from its cities; a pair that
has converged (rd <= RD_MIN) is rated entirely on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt

from domain.ratings.common import RD_MAX, RD_MIN, CityRating, GlickoRating


@dataclass(frozen=True)
class CompositeParameters:
    rd_min: float = RD_MIN
    rd_max: float = RD_MAX
    city_skip_alpha: float = 0.99


@dataclass(frozen=True)
class CompositeOpponent:
    opponent: GlickoRating
    alpha: float


def calculate_city_base_rate(city_a: CityRating, city_b: CityRating) -> float:
    """Inverse-variance weighted average of two city ratings."""
    weight_a = 1.0 / (city_a.rd**2)
    weight_b = 1.0 / (city_b.rd**2)
    return ((weight_a * city_a.rating) + (weight_b * city_b.rating)) / (weight_a + weight_b)


def calculate_alpha(pair_rd: float, *, rd_min: float = RD_MIN, rd_max: float = RD_MAX) -> float:
    """Confidence in the pair-specific rating, clamped to [0, 1]."""
    return max(0.0, min(1.0, (rd_max - pair_rd) / (rd_max - rd_min)))


def calculate_composite_rd(
    city_a: CityRating,
    city_b: CityRating,
    pair_rd: float,
    alpha: float,
) -> float:
    sigma_base_squared = ((city_a.rd**2) * (city_b.rd**2)) / ((city_a.rd**2) + (city_b.rd**2))
    sigma_final_squared = ((1.0 - alpha) ** 2) * sigma_base_squared + (alpha**2) * (pair_rd**2)
    return sqrt(sigma_final_squared)


class CompositeOpponentBuilder:
    """Builds the effective opponent a player faces for one question."""

    def __init__(self, params: CompositeParameters | None = None) -> None:
        self.params = params or CompositeParameters()

    def alpha(self, pair_rd: float) -> float:
        return calculate_alpha(pair_rd, rd_min=self.params.rd_min, rd_max=self.params.rd_max)

    def build(self, city_a: CityRating, city_b: CityRating, pair: GlickoRating) -> CompositeOpponent:
        base_rate = calculate_city_base_rate(city_a, city_b)
        alpha = self.alpha(pair.rd)
        composite_rating = (1.0 - alpha) * base_rate + alpha * pair.rating
        composite_rd = calculate_composite_rd(city_a, city_b, pair.rd, alpha)
        return CompositeOpponent(
            opponent=GlickoRating(rating=composite_rating, rd=composite_rd, vol=pair.vol),
            alpha=alpha,
        )


__all__ = [
    "CompositeOpponent",
    "CompositeOpponentBuilder",
    "CompositeParameters",
    "calculate_alpha",
    "calculate_city_base_rate",
    "calculate_composite_rd",
]
