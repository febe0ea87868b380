"""Unit tests for per-answer rating updates."""

from __future__ import annotations

import pytest

from domain.ratings.city_updater import CityRatingUpdater
from domain.ratings.common import CityRating, GlickoRating, PairRating
from domain.ratings.composite import CompositeOpponentBuilder
from domain.ratings.glicko2.calculator import GlickoEngine
from domain.ratings.rated_answer import RatedAnswerCalculator, calculate_new_ratings

PLAYER = GlickoRating(rating=1580.0, rd=140.0, vol=0.06)
CITY_A = CityRating(rating=1450.0, rd=90.0, vol=0.06, country_code="BR")
CITY_B = CityRating(rating=1620.0, rd=260.0, vol=0.06, country_code="PT")


def test_correct_answer_updates_player_pair_and_cities() -> None:
    engine = GlickoEngine()
    pair = PairRating(rating=1530.0, rd=230.0, vol=0.06, question_id=12)
    calculator = RatedAnswerCalculator(engine)

    outcome = calculator.rate(player=PLAYER, city_a=CITY_A, city_b=CITY_B, pair=pair, won=True)
    composite = CompositeOpponentBuilder().build(CITY_A, CITY_B, pair)

    assert outcome.won is True
    assert outcome.player_before == PLAYER
    assert outcome.opponent == composite.opponent
    assert outcome.alpha == pytest.approx(0.4)
    assert outcome.player == engine.update_against(PLAYER, composite.opponent, 1)
    assert outcome.rating_change == pytest.approx(outcome.player.rating - PLAYER.rating)
    assert outcome.rating_change > 0.0

    # The pair loses to the player's pre-answer rating.
    assert outcome.pair == engine.update_against(pair.as_glicko(), PLAYER, 0)
    assert outcome.pair.rating < pair.rating

    assert outcome.updates_cities is True
    expected_city_a = CityRatingUpdater(engine).update(CITY_A, PLAYER.rating, PLAYER.rd, 0, outcome.alpha)
    assert outcome.city_a == expected_city_a
    assert outcome.city_b is not None
    assert outcome.city_b.rating < CITY_B.rating


def test_wrong_answer_moves_everything_the_other_way() -> None:
    pair = PairRating(rating=1530.0, rd=230.0, vol=0.06)

    outcome = RatedAnswerCalculator().rate(
        player=PLAYER,
        city_a=CITY_A,
        city_b=CITY_B,
        pair=pair,
        won=False,
    )

    assert outcome.rating_change < 0.0
    assert outcome.pair.rating > pair.rating
    assert outcome.city_a is not None
    assert outcome.city_a.rating > CITY_A.rating


def test_confident_pair_leaves_cities_untouched() -> None:
    pair = PairRating(rating=1700.0, rd=45.0, vol=0.06)

    outcome = RatedAnswerCalculator().rate(
        player=PLAYER,
        city_a=CITY_A,
        city_b=CITY_B,
        pair=pair,
        won=True,
    )

    assert outcome.alpha == pytest.approx(1.0)
    assert outcome.city_a is None
    assert outcome.city_b is None
    assert outcome.updates_cities is False
    assert outcome.opponent.rating == pytest.approx(1700.0)


def test_head_to_head_update_inverts_question_score() -> None:
    engine = GlickoEngine()
    question = GlickoRating(rating=1500.0, rd=350.0, vol=0.06)

    outcome = calculate_new_ratings(engine, PLAYER, question, 0)

    assert outcome.player == engine.update_against(PLAYER, question, 0)
    assert outcome.question == engine.update_against(question, PLAYER, 1)
    assert outcome.rating_change < 0.0
    assert outcome.question.rating > question.rating
