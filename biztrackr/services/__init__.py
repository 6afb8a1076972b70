"""
Business logic layer.
Services orchestrate data access, validation, and domain rules.
"""

from biztrackr.services.bookkeeping import BookkeepingService

__all__ = ["BookkeepingService"]
