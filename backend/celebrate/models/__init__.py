from celebrate.models.user import User
from celebrate.models.venue import Venue
from celebrate.models.booking import Booking
from celebrate.models.processed_event import ProcessedEvent

__all__ = ["User", "Venue", "Booking", "ProcessedEvent"]
