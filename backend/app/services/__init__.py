"""Domain services operating on a request-scoped session."""

from .rate_limit import RateLimitStore, get_rate_limit_store
from .rooms import JoinResult, RoomKey, join_room, leave_room, resolve_room
from .visibility import MemberView, resolve_members

__all__ = [
    "RateLimitStore",
    "get_rate_limit_store",
    "JoinResult",
    "RoomKey",
    "join_room",
    "leave_room",
    "resolve_room",
    "MemberView",
    "resolve_members",
]
