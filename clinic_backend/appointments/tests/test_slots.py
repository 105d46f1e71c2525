from __future__ import annotations

from datetime import datetime, time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo

from django.test import SimpleTestCase

from clinic_backend.appointments.exceptions import InvalidArgument
from clinic_backend.appointments.services.slots import DayHours, generate_slots, parse_business_hours
from clinic_backend.appointments.services.store import local_day_bounds

UTC = dt_timezone.utc
KOLKATA = ZoneInfo("Asia/Kolkata")

# 2024-01-15 is a Monday
MONDAY = datetime(2024, 1, 15).date()

WEEKDAYS_9_TO_5 = {
    0: {"open": "09:00", "close": "17:00"},
    1: {"open": "09:00", "close": "17:00"},
    2: {"open": "09:00", "close": "17:00"},
    3: {"open": "09:00", "close": "17:00"},
    4: {"open": "09:00", "close": "17:00"},
    5: {"closed": True},
    6: {"closed": True},
}


class ParseBusinessHoursTests(SimpleTestCase):
    def test_accepts_string_keys_and_times(self):
        hours = parse_business_hours({"0": {"open": "08:30", "close": "12:00"}, 6: {"closed": True}})
        self.assertEqual(hours[0], DayHours(open=time(8, 30), close=time(12, 0)))
        self.assertTrue(hours[6].closed)

    def test_rejects_open_after_close(self):
        with self.assertRaises(InvalidArgument):
            parse_business_hours({0: {"open": "17:00", "close": "09:00"}})

    def test_rejects_unknown_weekday(self):
        with self.assertRaises(InvalidArgument):
            parse_business_hours({7: {"open": "09:00", "close": "17:00"}})

    def test_rejects_garbage_time(self):
        with self.assertRaises(InvalidArgument):
            parse_business_hours({0: {"open": "nine", "close": "17:00"}})


class GenerateSlotsTests(SimpleTestCase):
    def setUp(self):
        self.hours = parse_business_hours(WEEKDAYS_9_TO_5)

    def test_monday_in_kolkata(self):
        start, end = local_day_bounds(MONDAY, KOLKATA, days=7)
        slots = generate_slots(start, end, self.hours, KOLKATA, 30)

        monday = [s for s in slots if s.start.astimezone(KOLKATA).date() == MONDAY]
        self.assertEqual(len(monday), 16)
        first, last = monday[0], monday[-1]
        self.assertEqual(first.start.astimezone(KOLKATA).time(), time(9, 0))
        self.assertEqual(first.end.astimezone(KOLKATA).time(), time(9, 30))
        self.assertEqual(last.start.astimezone(KOLKATA).time(), time(16, 30))
        self.assertEqual(last.end.astimezone(KOLKATA).time(), time(17, 0))
        # 09:00 IST is 03:30 UTC
        self.assertEqual(first.start, datetime(2024, 1, 15, 3, 30, tzinfo=UTC))

        # Saturday and Sunday are closed
        weekdays = {s.start.astimezone(KOLKATA).weekday() for s in slots}
        self.assertEqual(weekdays, {0, 1, 2, 3, 4})
        self.assertEqual(len(slots), 5 * 16)

    def test_slots_stay_inside_business_hours(self):
        start, end = local_day_bounds(MONDAY, KOLKATA, days=7)
        for duration in (15, 25, 45, 60, 90):
            for slot in generate_slots(start, end, self.hours, KOLKATA, duration):
                local_start = slot.start.astimezone(KOLKATA)
                local_end = slot.end.astimezone(KOLKATA)
                self.assertEqual(local_start.date(), local_end.date())
                self.assertGreaterEqual(local_start.time(), time(9, 0))
                self.assertLessEqual(local_end.time(), time(17, 0))
                self.assertEqual(slot.end - slot.start, timedelta(minutes=duration))

    def test_slots_within_a_day_do_not_overlap(self):
        start, end = local_day_bounds(MONDAY, KOLKATA, days=7)
        slots = generate_slots(start, end, self.hours, KOLKATA, 45)
        by_day = {}
        for slot in slots:
            by_day.setdefault(slot.start.astimezone(KOLKATA).date(), []).append(slot)
        for day_slots in by_day.values():
            for earlier, later in zip(day_slots, day_slots[1:]):
                self.assertLessEqual(earlier.end, later.start)

    def test_last_partial_slot_is_dropped(self):
        start, end = local_day_bounds(MONDAY, UTC)
        slots = generate_slots(start, end, self.hours, UTC, 45)
        # 8 hours hold ten 45-minute slots; the eleventh would end at 17:15
        self.assertEqual(len(slots), 10)
        self.assertEqual(slots[-1].end, datetime(2024, 1, 15, 16, 30, tzinfo=UTC))

    def test_closed_weekday_yields_nothing_for_any_range(self):
        hours = parse_business_hours({**WEEKDAYS_9_TO_5, 2: {"closed": True}})
        for days in (1, 7, 21):
            start, end = local_day_bounds(MONDAY, UTC, days=days)
            slots = generate_slots(start, end, hours, UTC, 30)
            self.assertFalse([s for s in slots if s.start.weekday() == 2])

    def test_weekday_missing_from_config_is_closed(self):
        hours = parse_business_hours({0: {"open": "09:00", "close": "10:00"}})
        start, end = local_day_bounds(MONDAY, UTC, days=7)
        slots = generate_slots(start, end, hours, UTC, 30)
        self.assertEqual(len(slots), 2)

    def test_range_clips_slots(self):
        start = datetime(2024, 1, 15, 10, 15, tzinfo=UTC)
        end = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
        slots = generate_slots(start, end, self.hours, UTC, 30)
        self.assertEqual(
            [s.start.time() for s in slots],
            [time(10, 30), time(11, 0), time(11, 30)],
        )

    def test_empty_range(self):
        start = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        self.assertEqual(generate_slots(start, start, self.hours, UTC, 30), [])

    def test_reversed_range_is_rejected(self):
        start = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        with self.assertRaises(InvalidArgument):
            generate_slots(start, start - timedelta(hours=1), self.hours, UTC, 30)

    def test_invalid_arguments(self):
        start, end = local_day_bounds(MONDAY, UTC)
        with self.assertRaises(InvalidArgument):
            generate_slots(start, end, self.hours, UTC, 0)
        with self.assertRaises(InvalidArgument):
            generate_slots(start, end, self.hours, "Mars/Olympus_Mons", 30)
        with self.assertRaises(InvalidArgument):
            generate_slots(start.replace(tzinfo=None), end, self.hours, UTC, 30)

    def test_dst_gap_does_not_duplicate_slots(self):
        new_york = ZoneInfo("America/New_York")
        # 2024-03-10 is a Sunday; clocks jump from 02:00 to 03:00
        hours = parse_business_hours({6: {"open": "01:00", "close": "04:00"}})
        start, end = local_day_bounds(datetime(2024, 3, 10).date(), new_york)
        slots = generate_slots(start, end, hours, new_york, 30)

        # only two real hours between 01:00 EST and 04:00 EDT
        self.assertEqual(len(slots), 4)
        self.assertEqual(len({s.start for s in slots}), 4)
        for earlier, later in zip(slots, slots[1:]):
            self.assertEqual(earlier.end, later.start)
