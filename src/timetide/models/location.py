"""Location models for the weather gateway."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    """Geographic coordinates (latitude/longitude).

    Latitude:
        - Negative (-) = south of equator
        - Positive (+) = north of equator
        - Range: -90 to +90

    Longitude:
        - Negative (-) = west of prime meridian
        - Positive (+) = east of prime meridian
        - Range: -180 to +180
    """

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"

    def to_query_params(self) -> dict[str, float]:
        """Return coordinates as `lat`/`lon` query parameters."""
        return {"lat": self.latitude, "lon": self.longitude}
