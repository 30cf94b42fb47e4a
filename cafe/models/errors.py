"""Error models and exceptions.

``AppError`` is the serialisable error payload returned to clients.
``CafeError`` and its subclasses are raised by the service layer and turned
into ``AppError`` responses by the handlers registered in ``cafe.main``.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    INVALID_LOCATION = "INVALID_LOCATION"
    INACCURATE_GPS = "INACCURATE_GPS"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    API_ERROR = "API_ERROR"


class AppError(BaseModel):
    """Error payload included in failed responses."""

    code: ErrorCode = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Technical error message")
    user_message: str = Field(..., description="Message suitable for display")
    details: Optional[dict[str, Any]] = Field(
        None, description="Extra context such as rejected coordinates"
    )


class CafeError(Exception):
    """Base class for errors raised by the service layer."""

    code: ErrorCode = ErrorCode.API_ERROR
    status_code: int = 500
    user_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_app_error(self) -> AppError:
        return AppError(
            code=self.code,
            message=self.message,
            user_message=self.user_message,
            details=self.details,
        )


class InvalidLocation(CafeError):
    """Coordinates out of range or outside the serviceable area."""

    code = ErrorCode.INVALID_LOCATION
    status_code = 400
    user_message = "This location is outside our delivery area."

    def __init__(self, reason: str, latitude: float, longitude: float) -> None:
        self.reason = reason
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"{reason} ({latitude:.4f}, {longitude:.4f})",
            details={"latitude": latitude, "longitude": longitude},
        )


class InaccurateGPS(CafeError):
    """GPS fix is valid but too imprecise to store without confirmation."""

    code = ErrorCode.INACCURATE_GPS
    status_code = 400
    user_message = "GPS signal is not accurate enough. Confirm the location or move to open sky."

    def __init__(self, reading: Any, suggestion: Any) -> None:
        self.reading = reading
        self.suggestion = suggestion
        super().__init__(
            f"GPS accuracy {reading.accuracy}m is too low for {reading.area_type.value} area",
            details={
                "gps_validation": reading.model_dump(mode="json"),
                "suggestions": suggestion.model_dump(mode="json"),
                "can_force_update": True,
            },
        )


class NotFound(CafeError):
    """Referenced cart line, session or menu item does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404
    user_message = "The requested item could not be found."

    def __init__(self, entity: str, key: Any = None, message: Optional[str] = None) -> None:
        self.entity = entity
        self.key = key
        if message is None:
            message = f"{entity} with ID {key} not found"
        super().__init__(message, details={"entity": entity, "key": key})


class Forbidden(CafeError):
    code = ErrorCode.FORBIDDEN
    status_code = 403
    user_message = "You do not have permission to perform this action."
