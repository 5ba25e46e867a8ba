"""Database domain mixins package."""

from .db_students import StudentDbMixin
from .db_events import EventDbMixin
from .db_registrations import RegistrationDbMixin
from .db_otp import OtpDbMixin
from .db_admins import AdminDbMixin

__all__ = [
    "StudentDbMixin",
    "EventDbMixin",
    "RegistrationDbMixin",
    "OtpDbMixin",
    "AdminDbMixin",
]
