"""Unit tests for scaled city rating updates."""

from __future__ import annotations

import pytest

from domain.ratings.city_updater import CityRatingUpdater
from domain.ratings.common import CityRating, GlickoRating
from domain.ratings.glicko2.calculator import GlickoEngine

CITY = CityRating(rating=1500.0, rd=300.0, vol=0.06, country_code="JP", play_count=4)
PLAYER = GlickoRating(rating=1650.0, rd=120.0, vol=0.06)


def _full_update(score: int) -> GlickoRating:
    return GlickoEngine().update_against(CITY.as_glicko(), PLAYER, score)


def test_city_is_skipped_once_pair_is_confident() -> None:
    updater = CityRatingUpdater()
    assert updater.update(CITY, PLAYER.rating, PLAYER.rd, 0, alpha=0.995) is None
    assert updater.update(CITY, PLAYER.rating, PLAYER.rd, 0, alpha=0.99) is None


def test_zero_alpha_gives_full_update() -> None:
    updated = CityRatingUpdater().update(CITY, PLAYER.rating, PLAYER.rd, 0, alpha=0.0)
    full = _full_update(0)

    assert updated is not None
    assert updated.rating == pytest.approx(full.rating)
    assert updated.rd == pytest.approx(full.rd)
    assert updated.vol == pytest.approx(full.vol)


def test_partial_alpha_scales_every_component() -> None:
    updated = CityRatingUpdater().update(CITY, PLAYER.rating, PLAYER.rd, 1, alpha=0.5)
    full = _full_update(1)

    assert updated is not None
    assert updated.rating - CITY.rating == pytest.approx((full.rating - CITY.rating) * 0.5)
    assert updated.rd - CITY.rd == pytest.approx((full.rd - CITY.rd) * 0.5)
    assert updated.vol - CITY.vol == pytest.approx((full.vol - CITY.vol) * 0.5)
    assert updated.rating > CITY.rating


def test_city_loses_rating_when_player_answers_correctly() -> None:
    # The city's score is inverted: a correct answer is a city loss.
    updated = CityRatingUpdater().update(CITY, PLAYER.rating, PLAYER.rd, 0, alpha=0.2)

    assert updated is not None
    assert updated.rating < CITY.rating
    assert updated.rd < CITY.rd


def test_skip_threshold_is_configurable() -> None:
    updater = CityRatingUpdater(skip_alpha=0.5)

    assert updater.update(CITY, PLAYER.rating, PLAYER.rd, 0, alpha=0.5) is None
    assert updater.update(CITY, PLAYER.rating, PLAYER.rd, 0, alpha=0.4) is not None
