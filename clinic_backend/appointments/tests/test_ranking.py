from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from clinic_backend.appointments.exceptions import InvalidArgument
from clinic_backend.appointments.services.policy import SchedulingPolicy
from clinic_backend.appointments.services.preferences import PreferenceProfile, analyze_preferences
from clinic_backend.appointments.services.ranking import score_and_rank, wrapped_hour_diff
from clinic_backend.appointments.services.slots import TimeSlot

from .fakes import record

UTC = dt_timezone.utc
NO_PREFERENCES = PreferenceProfile()


def slot(start, minutes=30):
    return TimeSlot(start=start, end=start + timedelta(minutes=minutes))


def at(day, hour, minute=0):
    return datetime(2024, 1, day, hour, minute, tzinfo=UTC)


class WrappedHourDiffTests(SimpleTestCase):
    def test_wraps_around_midnight(self):
        self.assertEqual(wrapped_hour_diff(23, 1), 2)
        self.assertEqual(wrapped_hour_diff(1, 23), 2)
        self.assertEqual(wrapped_hour_diff(0, 12), 12)
        self.assertEqual(wrapped_hour_diff(14, 14), 0)


class ScoreAndRankTests(SimpleTestCase):
    def setUp(self):
        # 20 half-hour slots from Monday 08:00 UTC
        self.slots = [slot(at(15, 8) + timedelta(minutes=30 * i)) for i in range(20)]

    def test_top_k_truncates_and_sorts(self):
        ranked = score_and_rank(self.slots, [], NO_PREFERENCES, "UTC", preferred_instant=at(15, 13), top_k=5)
        self.assertEqual(len(ranked), 5)
        scores = [s.score for s in ranked]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_fewer_slots_than_top_k(self):
        ranked = score_and_rank(self.slots[:3], [], NO_PREFERENCES, "UTC", top_k=5)
        self.assertEqual(len(ranked), 3)

    def test_ranking_is_deterministic(self):
        existing = [record(1, at(15, 10))]
        history = [record(2, at(10, 9)), record(3, at(3, 15))]
        preferences = analyze_preferences(history, "UTC")
        first = score_and_rank(self.slots, existing, preferences, "UTC", preferred_instant=at(15, 11), top_k=10)
        second = score_and_rank(self.slots, existing, preferences, "UTC", preferred_instant=at(15, 11), top_k=10)
        self.assertEqual(first, second)

    def test_equal_scores_keep_earlier_start_first(self):
        ranked = score_and_rank(list(reversed(self.slots)), [], NO_PREFERENCES, "UTC", top_k=20)
        morning = [s.start for s in ranked if s.start.hour < 12]
        self.assertEqual(morning, sorted(morning))
        self.assertEqual(ranked[0].start, at(15, 8))

    def test_preferred_weekday_wins(self):
        # three past appointments, all Wednesdays at 14:00
        history = [record(i, at(day, 14)) for i, day in enumerate((3, 10, 17), start=1)]
        preferences = analyze_preferences(history, "UTC")
        wednesday = slot(at(24, 14))
        thursday = slot(at(25, 14))

        ranked = score_and_rank([thursday, wednesday], [], preferences, "UTC", top_k=2)

        self.assertEqual(ranked[0].start, wednesday.start)
        self.assertGreater(ranked[0].score, ranked[1].score)

    def test_preferred_hour_distance_wraps(self):
        policy = SchedulingPolicy(morning_bonus=0)
        midnight = slot(at(16, 0))
        evening = slot(at(15, 20))
        ranked = score_and_rank(
            [evening, midnight], [], NO_PREFERENCES, "UTC",
            preferred_instant=at(15, 23), top_k=2, policy=policy,
        )
        # 00:00 is one hour from 23:00, 20:00 is three
        self.assertEqual(ranked[0].start, midnight.start)
        self.assertEqual(ranked[0].score, 46.0)
        self.assertEqual(ranked[1].score, 42.0)

    def test_nearby_booking_penalised(self):
        free = slot(at(15, 14))
        crowded = slot(at(16, 14))
        existing = [record(1, at(16, 14, 30))]
        ranked = score_and_rank([crowded, free], existing, NO_PREFERENCES, "UTC", top_k=2)
        self.assertEqual(ranked[0].start, free.start)
        self.assertEqual(ranked[0].score - ranked[1].score, 5.0)

    def test_booking_exactly_one_hour_away_is_not_penalised(self):
        candidate = slot(at(15, 14))
        existing = [record(1, at(15, 15))]
        (ranked,) = score_and_rank([candidate], existing, NO_PREFERENCES, "UTC", top_k=1)
        self.assertEqual(ranked.score, 0.0)

    def test_cancelled_booking_is_not_penalised(self):
        candidate = slot(at(15, 14))
        existing = [record(1, at(15, 14), status="cancelled")]
        (ranked,) = score_and_rank([candidate], existing, NO_PREFERENCES, "UTC", top_k=1)
        self.assertEqual(ranked.score, 0.0)

    def test_morning_bonus(self):
        ranked = score_and_rank([slot(at(15, 12)), slot(at(15, 11, 30))], [], NO_PREFERENCES, "UTC", top_k=2)
        self.assertEqual([s.score for s in ranked], [3.0, 0.0])

    def test_hours_are_read_in_clinic_zone(self):
        # 05:00 UTC is 10:30 in Kolkata (morning); 07:00 UTC is 12:30 there
        ranked = score_and_rank(
            [slot(at(15, 7)), slot(at(15, 5))], [], NO_PREFERENCES, "Asia/Kolkata", top_k=2,
        )
        self.assertEqual(ranked[0].start, at(15, 5))
        self.assertEqual(ranked[0].score, 3.0)

    def test_invalid_top_k(self):
        with self.assertRaises(InvalidArgument):
            score_and_rank(self.slots, [], NO_PREFERENCES, "UTC", top_k=0)

    def test_naive_preferred_instant_rejected(self):
        with self.assertRaises(InvalidArgument):
            score_and_rank(self.slots, [], NO_PREFERENCES, "UTC", preferred_instant=datetime(2024, 1, 15, 9, 0))
