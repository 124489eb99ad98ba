"""Client for the Bee storage node HTTP API."""

from .client import HTTP_CONFLICT, HTTP_NOT_FOUND, BeeClient
from .models import FeedUpdate, TagStatus

__all__ = [
    "BeeClient",
    "FeedUpdate",
    "HTTP_CONFLICT",
    "HTTP_NOT_FOUND",
    "TagStatus",
]
