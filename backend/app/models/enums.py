from __future__ import annotations

from enum import Enum


class ContactRequestStatus(str, Enum):
    """Lifecycle states for contact requests."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    """Kinds of notifications delivered through polling."""

    NEW_MEMBER = "new_member"
    CONTACT_REQUEST = "contact_request"
    CONTACT_ACCEPTED = "contact_accepted"
    CONTACT_REJECTED = "contact_rejected"
    SYSTEM = "system"


class ContactVisibility(str, Enum):
    """Per-member contact state as seen by a viewer inside a room."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    PENDING = "pending"
    REJECTED = "rejected"
