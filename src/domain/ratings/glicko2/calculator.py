"""Glicko-2 single-period update."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from math import exp, isfinite, log, pi, sqrt
from typing import Final

from domain.ratings.common import GlickoRating
from domain.ratings.errors import InvalidRatingError, VolatilityConvergenceError

GLICKO2_SCALE: Final[float] = 173.7178
DEFAULT_RATING: Final[float] = 1500.0


@dataclass(frozen=True)
class Glicko2Parameters:
    initial_rating: float = 1500.0
    initial_rd: float = 350.0
    initial_volatility: float = 0.06
    tau: float = 0.5
    epsilon: float = 1e-6
    max_iterations: int = 1_000

    @property
    def initial(self) -> GlickoRating:
        return GlickoRating(
            rating=self.initial_rating,
            rd=self.initial_rd,
            vol=self.initial_volatility,
        )


@dataclass(frozen=True)
class Glicko2OpponentResult:
    opponent_rating: float
    opponent_rd: float
    score: float


def _to_mu(rating: float) -> float:
    return (rating - DEFAULT_RATING) / GLICKO2_SCALE


def _to_phi(rd: float) -> float:
    return rd / GLICKO2_SCALE


def _from_mu(mu: float) -> float:
    return (mu * GLICKO2_SCALE) + DEFAULT_RATING


def _from_phi(phi: float) -> float:
    return phi * GLICKO2_SCALE


def _g(phi: float) -> float:
    return 1.0 / sqrt(1.0 + ((3.0 * (phi**2)) / (pi**2)))


def _expected(mu: float, opp_mu: float, opp_phi: float) -> float:
    exponent = -_g(opp_phi) * (mu - opp_mu)
    if exponent >= 0.0:
        exp_term = exp(-exponent)
        return exp_term / (1.0 + exp_term)
    exp_term = exp(exponent)
    return 1.0 / (1.0 + exp_term)


def calculate_expected_score(
    *,
    rating: float,
    rd: float,
    opponent_rating: float,
    opponent_rd: float,
) -> float:
    """Compute expected score for one side under Glicko-2."""
    return _expected(
        _to_mu(rating),
        _to_mu(opponent_rating),
        _to_phi(opponent_rd),
    )


def solve_volatility(
    *,
    phi: float,
    sigma: float,
    delta: float,
    v: float,
    tau: float,
    epsilon: float,
    max_iterations: int = 1_000,
) -> float:
    """Find the new volatility with the Illinois variant of regula falsi.

    All quantities are on the Glicko-2 internal scale. Raises
    ``VolatilityConvergenceError`` when the root cannot be bracketed or the
    interval does not shrink below ``epsilon`` within ``max_iterations``.
    """
    a = log(sigma**2)

    def f(x: float) -> float:
        ex = exp(x)
        numerator = ex * ((delta**2) - (phi**2) - v - ex)
        denominator = 2.0 * ((phi**2) + v + ex) ** 2
        return (numerator / denominator) - ((x - a) / (tau**2))

    a_value = a
    if (delta**2) > ((phi**2) + v):
        b_value = log((delta**2) - (phi**2) - v)
    else:
        k = 1
        b_value = a_value - (k * tau)
        while f(b_value) < 0.0:
            k += 1
            if k > max_iterations:
                raise VolatilityConvergenceError("Glicko-2 volatility solve failed to bracket root.")
            b_value = a_value - (k * tau)

    f_a = f(a_value)
    f_b = f(b_value)
    iterations = 0
    while abs(b_value - a_value) > epsilon:
        iterations += 1
        if iterations > max_iterations:
            raise VolatilityConvergenceError(
                f"Glicko-2 volatility solve did not converge within {max_iterations} iterations."
            )
        if f_b == f_a:
            c_value = (a_value + b_value) / 2.0
        else:
            c_value = a_value + (((a_value - b_value) * f_a) / (f_b - f_a))
        f_c = f(c_value)
        if f_c * f_b < 0.0:
            a_value = b_value
            f_a = f_b
        else:
            f_a /= 2.0
        b_value = c_value
        f_b = f_c

    return exp(a_value / 2.0)


def update_glicko2_player(
    *,
    rating: float,
    rd: float,
    volatility: float,
    results: Sequence[Glicko2OpponentResult],
    tau: float = 0.5,
    epsilon: float = 1e-6,
    max_iterations: int = 1_000,
) -> tuple[float, float, float]:
    """Update one rated entity for one Glicko-2 rating period."""
    if not results:
        return rating, rd, volatility

    mu = _to_mu(rating)
    phi = _to_phi(rd)

    g_terms: list[float] = []
    e_terms: list[float] = []
    score_minus_e_terms: list[float] = []
    for result in results:
        opp_mu = _to_mu(result.opponent_rating)
        opp_phi = _to_phi(result.opponent_rd)
        g_term = _g(opp_phi)
        expected = _expected(mu, opp_mu, opp_phi)
        g_terms.append(g_term)
        e_terms.append(expected)
        score_minus_e_terms.append(result.score - expected)

    v_inverse = 0.0
    for g_term, expected in zip(g_terms, e_terms):
        v_inverse += (g_term**2) * expected * (1.0 - expected)
    if v_inverse <= 0.0:
        return rating, rd, volatility

    v = 1.0 / v_inverse
    delta = v * sum(g_term * score_minus_e for g_term, score_minus_e in zip(g_terms, score_minus_e_terms))
    sigma_prime = solve_volatility(
        phi=phi,
        sigma=volatility,
        delta=delta,
        v=v,
        tau=tau,
        epsilon=epsilon,
        max_iterations=max_iterations,
    )

    phi_star = sqrt((phi**2) + (sigma_prime**2))
    phi_prime = 1.0 / sqrt((1.0 / (phi_star**2)) + (1.0 / v))
    mu_prime = mu + (phi_prime**2) * sum(
        g_term * score_minus_e for g_term, score_minus_e in zip(g_terms, score_minus_e_terms)
    )

    return _from_mu(mu_prime), _from_phi(phi_prime), sigma_prime


def _validate_rating(label: str, rating: float, rd: float, vol: float | None = None) -> None:
    if not isfinite(rating):
        raise InvalidRatingError(f"{label}: rating must be finite, got {rating!r}")
    if not isfinite(rd) or rd <= 0.0:
        raise InvalidRatingError(f"{label}: rd must be > 0, got {rd!r}")
    if vol is not None and (not isfinite(vol) or vol <= 0.0):
        raise InvalidRatingError(f"{label}: vol must be > 0, got {vol!r}")


class GlickoEngine:
    """Stateless Glicko-2 updater over ``GlickoRating`` triples."""

    def __init__(self, params: Glicko2Parameters | None = None) -> None:
        self.params = params or Glicko2Parameters()

    def update(
        self,
        subject: GlickoRating,
        opponents: Sequence[Glicko2OpponentResult],
    ) -> GlickoRating:
        _validate_rating("subject", subject.rating, subject.rd, subject.vol)
        for index, opponent in enumerate(opponents):
            _validate_rating(f"opponent[{index}]", opponent.opponent_rating, opponent.opponent_rd)
            if opponent.score not in (0, 1):
                raise ValueError(f"opponent[{index}]: score must be 0 or 1, got {opponent.score!r}")

        rating, rd, vol = update_glicko2_player(
            rating=subject.rating,
            rd=subject.rd,
            volatility=subject.vol,
            results=opponents,
            tau=self.params.tau,
            epsilon=self.params.epsilon,
            max_iterations=self.params.max_iterations,
        )
        return GlickoRating(rating=rating, rd=rd, vol=vol)

    def update_against(self, subject: GlickoRating, opponent: GlickoRating, score: int) -> GlickoRating:
        """Apply a single outcome against one opponent rating."""
        return self.update(
            subject,
            [
                Glicko2OpponentResult(
                    opponent_rating=opponent.rating,
                    opponent_rd=opponent.rd,
                    score=score,
                )
            ],
        )
