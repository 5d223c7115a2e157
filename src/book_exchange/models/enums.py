"""Closed value sets shared by models, schemas and services."""

from enum import Enum


class ExchangeStatus(str, Enum):
    """Lifecycle states of an exchange request."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


ACTIVE_EXCHANGE_STATUSES = (ExchangeStatus.PENDING, ExchangeStatus.ACCEPTED)


class AvailabilityStatus(str, Enum):
    """Availability of a book for new exchange requests."""

    AVAILABLE = "Available"
    PENDING_EXCHANGE = "Pending Exchange"
    EXCHANGED = "Exchanged"


class BookCondition(str, Enum):
    """Physical condition of a listed book."""

    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    WORN = "Worn"


class NotificationType(str, Enum):
    """Kinds of notifications delivered to users."""

    EXCHANGE_REQUEST = "exchange_request"
    MESSAGE = "message"
    STATUS_UPDATE = "status_update"
    SYSTEM_ALERT = "system_alert"
    REVIEW = "review"
