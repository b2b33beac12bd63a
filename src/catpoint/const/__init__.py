"""Constants for catpoint."""

from .states import AlarmStatus, ArmingStatus, SensorType
from .strings import (
    ALARM_STATUS,
    ALARM_STATUS_STYLE,
    ARMING_STATUS,
    ARMING_STATUS_STYLE,
    SENSOR_TYPE,
)

__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "SensorType",
    "ALARM_STATUS",
    "ALARM_STATUS_STYLE",
    "ARMING_STATUS",
    "ARMING_STATUS_STYLE",
    "SENSOR_TYPE",
]
