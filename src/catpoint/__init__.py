"""Catpoint - home security controller.

Decides the alarm status of a home security system from sensor events,
camera cat detection and the arming mode, and notifies listeners of every
change.

Example:
    >>> from catpoint import (
    ...     ArmingStatus, FakeImageClassifier, InMemorySecurityRepository,
    ...     SecurityController, Sensor, SensorType,
    ... )
    >>>
    >>> controller = SecurityController(InMemorySecurityRepository(), FakeImageClassifier())
    >>> door = Sensor("Front Door", SensorType.DOOR)
    >>> controller.add_sensor(door)
    >>> controller.arm_system(ArmingStatus.ARMED_AWAY)
    >>> controller.change_sensor_activation_status(door, True)
    >>> controller.get_alarm_status()
    <AlarmStatus.PENDING_ALARM: 'pending_alarm'>
"""

from . import const, exceptions
from .const.states import AlarmStatus, ArmingStatus, SensorType
from .controller import SecurityController
from .image import FakeImageClassifier, FixedImageClassifier, ImageClassifier
from .listener import StatusListener
from .repository import (
    InMemorySecurityRepository,
    SecurityRepository,
    YamlSecurityRepository,
)
from .sensor import Sensor

__version__ = "0.1.0"

__all__ = [
    # Controller
    "SecurityController",
    # Entities and states
    "Sensor",
    "SensorType",
    "AlarmStatus",
    "ArmingStatus",
    # Collaborators
    "StatusListener",
    "SecurityRepository",
    "InMemorySecurityRepository",
    "YamlSecurityRepository",
    "ImageClassifier",
    "FakeImageClassifier",
    "FixedImageClassifier",
    # Submodules
    "const",
    "exceptions",
    # Version
    "__version__",
]
