from app.models.user import User
from app.models.booking import Booking, BookingDeadline
from app.models.notification import Notification

__all__ = [
    "User",
    "Booking", "BookingDeadline",
    "Notification",
]
