"""Tests for the review outcome calculator."""

import random

import pytest

from tangoroid.models.vocabulary import DAY_MS, MIN_EASE_FACTOR, Rating, ScheduleState, now_millis
from tangoroid.srs.calculator import compute, grade_for, round_half_up

from tests.conftest import T0


NEW = ScheduleState(interval=0, repetitions=0, ease_factor=2.5, next_review_at=T0)


class TestLadder:

    def test_good_three_times_follows_1_6_then_multiplier(self):
        first = compute(Rating.GOOD, NEW, T0)
        assert (first.repetitions, first.interval) == (1, 1)

        second = compute(Rating.GOOD, first, T0)
        assert (second.repetitions, second.interval) == (2, 6)

        third = compute(Rating.GOOD, second, T0)
        assert third.repetitions == 3
        assert third.interval == round_half_up(6 * third.ease_factor)
        assert third.interval == 15

    def test_multiplier_uses_updated_ease(self):
        state = ScheduleState(interval=10, repetitions=4, ease_factor=2.0, next_review_at=T0)
        result = compute(Rating.EASY, state, T0)
        assert result.ease_factor == pytest.approx(2.1)
        assert result.interval == 21

    def test_first_success_after_reset_restarts_ladder(self):
        lapsed = compute(Rating.AGAIN, ScheduleState(interval=40, repetitions=5, ease_factor=2.2), T0)
        again = compute(Rating.HARD, lapsed, T0)
        assert (again.repetitions, again.interval) == (1, 1)


class TestEase:

    @pytest.mark.parametrize("rating,delta", [
        (Rating.HARD, -0.14),
        (Rating.GOOD, 0.0),
        (Rating.EASY, 0.1),
    ])
    def test_ease_adjustment_per_rating(self, rating, delta):
        result = compute(rating, NEW, T0)
        assert result.ease_factor == pytest.approx(2.5 + delta)

    def test_ease_never_below_floor(self):
        state = NEW
        for _ in range(20):
            state = compute(Rating.HARD, state, T0)
        assert state.ease_factor == MIN_EASE_FACTOR

    def test_random_sequences_respect_invariants(self):
        rng = random.Random(1234)
        ratings = list(Rating)
        for _ in range(200):
            state = NEW
            for _ in range(15):
                state = compute(rng.choice(ratings), state, T0)
                assert state.ease_factor >= MIN_EASE_FACTOR
                assert isinstance(state.interval, int)
                assert state.interval >= 0
                assert state.repetitions >= 0

    def test_grade_mapping(self):
        assert [grade_for(r) for r in (Rating.HARD, Rating.GOOD, Rating.EASY)] == [3, 4, 5]


class TestAgain:

    @pytest.mark.parametrize("previous", [
        NEW,
        ScheduleState(interval=1, repetitions=1, ease_factor=2.5),
        ScheduleState(interval=120, repetitions=9, ease_factor=1.3),
        ScheduleState(interval=6, repetitions=2, ease_factor=2.8, next_review_at=None),
    ])
    def test_again_resets_regardless_of_state(self, previous):
        result = compute(Rating.AGAIN, previous, T0)
        assert result.interval == 1
        assert result.repetitions == 0

    def test_again_keeps_ease(self):
        previous = ScheduleState(interval=30, repetitions=4, ease_factor=2.36)
        assert compute(Rating.AGAIN, previous, T0).ease_factor == 2.36


class TestNextReview:

    @pytest.mark.parametrize("rating", list(Rating))
    def test_next_review_is_now_plus_interval_days(self, rating):
        state = ScheduleState(interval=6, repetitions=2, ease_factor=2.5)
        result = compute(rating, state, T0)
        assert result.next_review_at == T0 + result.interval * DAY_MS

    def test_defaults_to_wall_clock(self):
        before = now_millis()
        result = compute(Rating.GOOD, NEW)
        after = now_millis()
        assert before + DAY_MS <= result.next_review_at <= after + DAY_MS

    def test_previous_state_is_not_modified(self):
        previous = ScheduleState(interval=6, repetitions=2, ease_factor=2.5, next_review_at=T0)
        compute(Rating.EASY, previous, T0 + 5)
        assert previous == ScheduleState(interval=6, repetitions=2, ease_factor=2.5, next_review_at=T0)


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(6.5) == 7
    assert round_half_up(6.49) == 6
