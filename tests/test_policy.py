import unittest
from datetime import date, time

from workspace_booking import (
    AdvanceWindowExceeded,
    Employee,
    Holiday,
    HolidayBlackout,
    HolidayCalendar,
    InMemoryHolidayStore,
    Interval,
    NotFound,
    PastDate,
    ResourceKind,
    Role,
    TimeslotCatalog,
    WeekendNotAllowed,
    country_holidays,
)
from workspace_booking.policy import DESK_RULES, SHARED_RULES, BookingPolicy, max_advance_weeks, policy_for
from workspace_booking.timeslots import InMemoryTimeslotStore

# a Monday
TODAY = date(2026, 10, 19)
NORMAL = Employee("E", Role.NORMAL)
ADMIN = Employee("A", Role.ADMIN)


class TestHolidayCalendar(unittest.TestCase):
    def test_date_without_record_is_bookable(self) -> None:
        calendar = HolidayCalendar(InMemoryHolidayStore())
        self.assertTrue(calendar.is_booking_allowed(date(2026, 10, 20)))

    def test_holiday_blocks_unless_flag_allows(self) -> None:
        calendar = HolidayCalendar(
            InMemoryHolidayStore(
                [
                    Holiday(date(2026, 10, 26), "National Day", booking_allowed=False),
                    Holiday(date(2026, 12, 24), "Christmas Eve", booking_allowed=True),
                ]
            )
        )
        self.assertFalse(calendar.is_booking_allowed(date(2026, 10, 26)))
        self.assertTrue(calendar.is_booking_allowed(date(2026, 12, 24)))

    def test_explicit_record_replaces_imported_one(self) -> None:
        store = InMemoryHolidayStore([Holiday(date(2026, 12, 8), "Imported", booking_allowed=False)])
        store.add(Holiday(date(2026, 12, 8), "Office open", booking_allowed=True))
        self.assertTrue(HolidayCalendar(store).is_booking_allowed(date(2026, 12, 8)))
        self.assertEqual(len(store.all()), 1)

    def test_country_holidays_are_blackouts_by_default(self) -> None:
        imported = country_holidays("AT", years=[2026])
        by_date = {holiday.date: holiday for holiday in imported}

        self.assertIn(date(2026, 12, 25), by_date)
        self.assertIn(date(2026, 10, 26), by_date)
        self.assertTrue(all(not holiday.booking_allowed for holiday in imported))
        self.assertEqual([holiday.date for holiday in imported], sorted(by_date))


class TestTimeslotCatalog(unittest.TestCase):
    def test_resolves_default_slots(self) -> None:
        catalog = TimeslotCatalog(InMemoryTimeslotStore())
        self.assertEqual(catalog.resolve("AM"), Interval(time(8, 0), time(12, 30)))
        self.assertEqual(catalog.resolve("PM"), Interval(time(12, 30), time(17, 0)))
        self.assertEqual(catalog.resolve("ALL_DAY"), Interval(time(8, 0), time(17, 0)))

    def test_unknown_slot_raises_not_found(self) -> None:
        catalog = TimeslotCatalog(InMemoryTimeslotStore())
        with self.assertRaises(NotFound):
            catalog.resolve("NIGHT")


class TestBookingPolicy(unittest.TestCase):
    def setUp(self) -> None:
        self.calendar = HolidayCalendar(InMemoryHolidayStore([Holiday(date(2026, 10, 21), "Closed", False)]))
        self.desk_policy = policy_for(ResourceKind.DESK, self.calendar)
        self.room_policy = policy_for(ResourceKind.ROOM, self.calendar)

    def test_rule_sets_per_kind(self) -> None:
        self.assertEqual(self.desk_policy.rules, DESK_RULES)
        self.assertEqual(self.room_policy.rules, SHARED_RULES)
        self.assertEqual(policy_for(ResourceKind.EQUIPMENT, self.calendar).rules, SHARED_RULES)

    def test_today_is_allowed(self) -> None:
        self.desk_policy.validate(NORMAL, TODAY, TODAY)

    def test_past_date_rejected_for_every_kind(self) -> None:
        with self.assertRaises(PastDate):
            self.desk_policy.validate(NORMAL, date(2026, 10, 16), TODAY)
        with self.assertRaises(PastDate):
            self.room_policy.validate(NORMAL, date(2026, 10, 18), TODAY)

    def test_weekend_rejected_for_desks_only(self) -> None:
        with self.assertRaises(WeekendNotAllowed):
            self.desk_policy.validate(NORMAL, date(2026, 10, 24), TODAY)
        self.room_policy.validate(NORMAL, date(2026, 10, 24), TODAY)

    def test_normal_role_limited_to_one_week(self) -> None:
        self.desk_policy.validate(NORMAL, date(2026, 10, 26), TODAY)
        with self.assertRaises(AdvanceWindowExceeded) as context:
            self.desk_policy.validate(NORMAL, date(2026, 10, 27), TODAY)
        self.assertEqual(context.exception.max_weeks, 1)

    def test_other_roles_limited_to_twelve_weeks(self) -> None:
        for role in (Role.PRIVILEGED, Role.OPERATOR, Role.ADMIN):
            employee = Employee("X", role)
            self.desk_policy.validate(employee, date(2026, 10, 27), TODAY)
            self.desk_policy.validate(employee, date(2027, 1, 11), TODAY)
            with self.assertRaises(AdvanceWindowExceeded) as context:
                self.desk_policy.validate(employee, date(2027, 1, 12), TODAY)
            self.assertEqual(context.exception.max_weeks, 12)

    def test_rooms_ignore_advance_window(self) -> None:
        self.room_policy.validate(NORMAL, date(2027, 6, 1), TODAY)

    def test_holiday_blackout_applies_to_every_kind(self) -> None:
        with self.assertRaises(HolidayBlackout):
            self.desk_policy.validate(NORMAL, date(2026, 10, 21), TODAY)
        with self.assertRaises(HolidayBlackout):
            self.room_policy.validate(NORMAL, date(2026, 10, 21), TODAY)

    def test_first_failing_rule_wins(self) -> None:
        # past Saturday: the past-date rule runs before the weekday rule
        with self.assertRaises(PastDate):
            self.desk_policy.validate(NORMAL, date(2026, 10, 17), TODAY)
        # Saturday beyond the window: the weekday rule runs before the window rule
        with self.assertRaises(WeekendNotAllowed):
            self.desk_policy.validate(NORMAL, date(2026, 10, 31), TODAY)

    def test_custom_rule_order(self) -> None:
        policy = BookingPolicy([], self.calendar)
        policy.validate(NORMAL, date(2020, 1, 4), TODAY)

    def test_max_advance_weeks(self) -> None:
        self.assertEqual(max_advance_weeks(Role.NORMAL), 1)
        self.assertEqual(max_advance_weeks(Role.ADMIN), 12)


class TestRoleParsing(unittest.TestCase):
    def test_accepts_legacy_names(self) -> None:
        self.assertEqual(Role.parse("ROLE_N_EMPLOYEE"), Role.NORMAL)
        self.assertEqual(Role.parse("role_p_employee"), Role.PRIVILEGED)
        self.assertEqual(Role.parse("admin"), Role.ADMIN)

    def test_rejects_unknown_role(self) -> None:
        with self.assertRaises(ValueError):
            Role.parse("GUEST")

    def test_only_operator_and_admin_can_reassign(self) -> None:
        self.assertFalse(Role.NORMAL.can_reassign)
        self.assertFalse(Role.PRIVILEGED.can_reassign)
        self.assertTrue(Role.OPERATOR.can_reassign)
        self.assertTrue(Role.ADMIN.can_reassign)


if __name__ == "__main__":
    unittest.main()
