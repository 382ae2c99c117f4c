"""Service layer: appointment booking facade."""
from salonbook.services.appointment_service import AppointmentService, CalendarEvent

__all__ = [
    "AppointmentService",
    "CalendarEvent",
]
