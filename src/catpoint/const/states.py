"""State definitions for catpoint entities."""

from enum import Enum


class ArmingStatus(str, Enum):
    """Arming modes selected by the user."""

    DISARMED = "disarmed"
    ARMED_HOME = "armed_home"
    ARMED_AWAY = "armed_away"

    @property
    def is_armed(self) -> bool:
        """Check if this is any armed mode."""
        return self is not ArmingStatus.DISARMED


class AlarmStatus(str, Enum):
    """Alarm states decided by the controller."""

    NO_ALARM = "no_alarm"
    PENDING_ALARM = "pending_alarm"
    ALARM = "alarm"


class SensorType(str, Enum):
    """Sensor kinds.

    Only used for display; no transition rule looks at the type.
    """

    DOOR = "door"
    WINDOW = "window"
    MOTION = "motion"
