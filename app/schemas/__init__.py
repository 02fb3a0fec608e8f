"""
Schema definitions for the Events API.
"""

# Import and expose main schemas
from .event import (
    # Event schemas
    EventBase, EventFiles, EventResponse,
    # Response envelopes
    EventPage, PaginationMeta, EventCreatedResponse, EventUpdatedResponse,
    EventDeletedResponse, ErrorResponse,
    # Constants and helpers
    EVENT_TYPE, MESSAGES, serialize_event,
)

# Indicate which schemas are publicly available
__all__ = [
    'EventBase', 'EventFiles', 'EventResponse',
    'EventPage', 'PaginationMeta', 'EventCreatedResponse', 'EventUpdatedResponse',
    'EventDeletedResponse', 'ErrorResponse',
    'EVENT_TYPE', 'MESSAGES', 'serialize_event',
]
