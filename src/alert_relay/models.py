from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict


class ImageRecord(BaseModel):
    """
    One mirrored emergency frame.

    The capture time lives in the filename: the stem ends in HHMMSS, of which we
    only read HHMM (e.g. "imgA_010059.jpg" -> 01:00). See recency.extract_time.
    There is no date component, so comparisons are same-day only.
    """
    model_config = ConfigDict(frozen=True)

    filename: str
    hour: int
    minute: int

    @property
    def minutes(self) -> int:
        """Minutes since midnight."""
        return self.hour * 60 + self.minute

    @classmethod
    def from_filename(cls, filename: str) -> Optional["ImageRecord"]:
        """Return None when the filename does not carry a readable HHMM."""
        # Local import keeps recency.py free of model imports.
        from .recency import extract_time

        parsed = extract_time(filename)
        if parsed is None:
            return None
        hour, minute = parsed
        return cls(filename=filename, hour=hour, minute=minute)


class LocationRecord(BaseModel):
    latitude: float
    longitude: float

    @classmethod
    def from_document(cls, value: Any) -> Optional["LocationRecord"]:
        """
        Build a record from the raw `location` document.

        Returns None unless both coordinates are present. A 0.0 coordinate is valid.
        """
        if not isinstance(value, Mapping):
            return None
        lat = value.get("latitude")
        lng = value.get("longitude")
        if lat is None or lng is None:
            return None
        try:
            return cls(latitude=lat, longitude=lng)
        except ValueError:
            # pydantic.ValidationError subclasses ValueError (e.g. latitude="north")
            return None


class RemoteObject(BaseModel):
    name: str
    size: Optional[int] = None
    updated: Optional[datetime] = None


# --- Real-time wire events ---

class NewImageEvent(BaseModel):
    filename: str


class LocationEvent(BaseModel):
    latitude: float
    longitude: float


class RelayEvent(BaseModel):
    """Envelope sent to viewers: {"event": "...", "data": {...}}."""

    event: Literal["new_image", "location_data"]
    data: Union[NewImageEvent, LocationEvent]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"event": "new_image", "data": {"filename": "imgA_010000.jpg"}},
                {"event": "location_data", "data": {"latitude": 6.52, "longitude": 3.37}},
            ]
        }
    }

    @classmethod
    def new_image(cls, filename: str) -> "RelayEvent":
        return cls(event="new_image", data=NewImageEvent(filename=filename))

    @classmethod
    def location(cls, record: LocationRecord) -> "RelayEvent":
        return cls(
            event="location_data",
            data=LocationEvent(latitude=record.latitude, longitude=record.longitude),
        )
