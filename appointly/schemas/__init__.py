# appointly/schemas/__init__.py
from .booking import (
    BookingData,
    BookingResult,
    CancelRequest,
    StatusUpdateRequest,
    AvailableDatesResponse,
    AvailableTimesResponse,
    AvailabilityCheckResponse,
)

from .business import (
    WorkingHoursEntry,
    BreakEntry,
    BusinessSettingsUpdate,
    BusinessSettingsResponse,
    ServiceCreate,
    ServiceUpdate,
    EmployeeCreate,
    EmployeeUpdate,
)

from .chat import ChatMessageRequest, ChatReply

__all__ = [
    "BookingData",
    "BookingResult",
    "CancelRequest",
    "StatusUpdateRequest",
    "AvailableDatesResponse",
    "AvailableTimesResponse",
    "AvailabilityCheckResponse",
    "WorkingHoursEntry",
    "BreakEntry",
    "BusinessSettingsUpdate",
    "BusinessSettingsResponse",
    "ServiceCreate",
    "ServiceUpdate",
    "EmployeeCreate",
    "EmployeeUpdate",
    "ChatMessageRequest",
    "ChatReply",
]
