# appointly/models/__init__.py
from .base import Base
from .business import Business, BusinessSettings
from .service import Service
from .employee import Employee
from .customer import Customer
from .appointment import Appointment, AppointmentSlotLock

__all__ = [
    "Base",
    "Business",
    "BusinessSettings",
    "Service",
    "Employee",
    "Customer",
    "Appointment",
    "AppointmentSlotLock",
]
