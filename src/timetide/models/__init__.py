"""Data models shared across the TimeTide API."""

from timetide.models.location import Coordinates

__all__ = ["Coordinates"]
