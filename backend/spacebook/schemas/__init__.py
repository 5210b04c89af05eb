"""Schema exports."""

from spacebook.schemas.availability import (
    AvailabilityDayRead,
    AvailabilityResponse,
    BookedSlotRead,
    CandidateRequest,
    CandidateValidationResponse,
    DerivedBookingRead,
    ReservationBrief,
    ViolationRead,
)
from spacebook.schemas.reservation import (
    BookingParamsPayload,
    ReservationCreate,
    ReservationRead,
    ReservationReschedule,
    ReservationStatusUpdate,
    ReservationUpdate,
    StatusTransitionRead,
    TickResponse,
)
from spacebook.schemas.space import (
    DayScheduleBase,
    DayScheduleRead,
    OperationalStatusRead,
    SpaceCreate,
    SpaceHoursReplace,
    SpaceRead,
    SpaceUpdate,
)

__all__ = [
    "AvailabilityDayRead",
    "AvailabilityResponse",
    "BookedSlotRead",
    "BookingParamsPayload",
    "CandidateRequest",
    "CandidateValidationResponse",
    "DayScheduleBase",
    "DayScheduleRead",
    "DerivedBookingRead",
    "OperationalStatusRead",
    "ReservationBrief",
    "ReservationCreate",
    "ReservationRead",
    "ReservationReschedule",
    "ReservationStatusUpdate",
    "ReservationUpdate",
    "SpaceCreate",
    "SpaceHoursReplace",
    "SpaceRead",
    "SpaceUpdate",
    "StatusTransitionRead",
    "TickResponse",
    "ViolationRead",
]
