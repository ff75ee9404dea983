# courier_app/modules/tracking/schemas.py
from pydantic import Field
from typing import Optional
from datetime import datetime
from enum import Enum

from courier_app.shared.schemas.common import WireModel


class PermissionState(str, Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class LocationSample(WireModel):
    """Posición del dispositivo; sólo se conserva la más reciente"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    note: Optional[str] = None
    notify_customer: bool = True
    timestamp: datetime = Field(default_factory=datetime.now)


class LocationUpdateRequest(WireModel):
    latitude: float
    longitude: float
    location_note: Optional[str] = Field(None, alias="locationNote")
    notify_customer: bool = Field(True, alias="notifyCustomer")
