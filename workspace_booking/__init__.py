from .booking import Interval, can_reserve, find_available_resources, find_conflicts, has_time_overlap, is_resource_available, overlaps
from .config import BookingSettings, build_service, load_settings
from .errors import (
	AdvanceWindowExceeded,
	BookingError,
	BookingResult,
	EmployeeAlreadyBooked,
	HolidayBlackout,
	NotFound,
	PastDate,
	PermissionDenied,
	PolicyViolation,
	ReservationStorageError,
	ResourceConflict,
	WeekendNotAllowed,
)
from .holiday_calendar import HolidayCalendar, InMemoryHolidayStore, country_holidays
from .lifecycle import BookingLifecycleManager, ReservationChanges, ReservationRequest
from .models import Employee, Holiday, Reservation, ResourceKind, Role, Timeslot
from .service import BookingService
from .store import InMemoryReservationStore
from .timeslots import TimeslotCatalog
from .yaml_store import ReservationYamlRepository

__all__ = [
	"Interval",
	"overlaps",
	"has_time_overlap",
	"can_reserve",
	"find_conflicts",
	"is_resource_available",
	"find_available_resources",
	"BookingSettings",
	"build_service",
	"load_settings",
	"BookingError",
	"BookingResult",
	"PolicyViolation",
	"PastDate",
	"WeekendNotAllowed",
	"AdvanceWindowExceeded",
	"HolidayBlackout",
	"EmployeeAlreadyBooked",
	"PermissionDenied",
	"ResourceConflict",
	"NotFound",
	"ReservationStorageError",
	"HolidayCalendar",
	"InMemoryHolidayStore",
	"country_holidays",
	"BookingLifecycleManager",
	"ReservationRequest",
	"ReservationChanges",
	"Employee",
	"Holiday",
	"Reservation",
	"ResourceKind",
	"Role",
	"Timeslot",
	"BookingService",
	"InMemoryReservationStore",
	"TimeslotCatalog",
	"ReservationYamlRepository",
]
