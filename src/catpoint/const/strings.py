"""Human-readable text for catpoint states.

Kept apart from the enums so display text can change without touching
persisted values.
"""

from .states import AlarmStatus, ArmingStatus, SensorType

ARMING_STATUS: dict[ArmingStatus, str] = {
    ArmingStatus.DISARMED: "Disarmed",
    ArmingStatus.ARMED_HOME: "Armed - At Home",
    ArmingStatus.ARMED_AWAY: "Armed - Away",
}

ALARM_STATUS: dict[AlarmStatus, str] = {
    AlarmStatus.NO_ALARM: "Cool and Good",
    AlarmStatus.PENDING_ALARM: "I'm in Danger...",
    AlarmStatus.ALARM: "Awooga!",
}

SENSOR_TYPE: dict[SensorType, str] = {
    SensorType.DOOR: "Door",
    SensorType.WINDOW: "Window",
    SensorType.MOTION: "Motion",
}

# rich style names
ARMING_STATUS_STYLE: dict[ArmingStatus, str] = {
    ArmingStatus.DISARMED: "green",
    ArmingStatus.ARMED_HOME: "yellow",
    ArmingStatus.ARMED_AWAY: "magenta",
}

ALARM_STATUS_STYLE: dict[AlarmStatus, str] = {
    AlarmStatus.NO_ALARM: "green",
    AlarmStatus.PENDING_ALARM: "yellow",
    AlarmStatus.ALARM: "red",
}
