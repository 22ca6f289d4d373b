from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class ItemStatus(str, Enum):
    ACTIVE = "active"
    COMING_SOON = "coming_soon"
    ARCHIVED = "archived"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


# Requests leave PENDING exactly once; resolved states are terminal.
REQUEST_TRANSITIONS: dict[RequestStatus, list[RequestStatus]] = {
    RequestStatus.PENDING: [RequestStatus.APPROVED, RequestStatus.DENIED],
    RequestStatus.APPROVED: [],
    RequestStatus.DENIED: [],
}
