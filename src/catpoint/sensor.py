"""Sensor abstraction."""

import logging
from typing import Any

from .const.states import SensorType
from .exceptions import CatpointConfigError, CatpointInvalidParameterError

_LOGGER = logging.getLogger(__name__)


class Sensor:
    """Represents a door, window or motion sensor.

    Two sensors are the same entity when both name and type match, so
    equality and hashing ignore the activation flag.
    """

    def __init__(
        self,
        name: str,
        sensor_type: SensorType,
        active: bool = False,
    ):
        """Initialize sensor.

        Args:
            name: Sensor name
            sensor_type: Door, window or motion
            active: Initial activation flag (default: False)
        """
        if not name:
            raise CatpointInvalidParameterError("Sensor name must not be empty")

        self._name = name
        self._sensor_type = SensorType(sensor_type)
        self.active = bool(active)

        _LOGGER.debug(f"Sensor initialized: {name} ({self._sensor_type.value})")

    @property
    def name(self) -> str:
        """Get sensor name."""
        return self._name

    @property
    def sensor_type(self) -> SensorType:
        """Get sensor type."""
        return self._sensor_type

    @property
    def key(self) -> tuple[str, SensorType]:
        """Identity of the sensor within a sensor set."""
        return (self._name, self._sensor_type)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain mapping."""
        return {
            "name": self._name,
            "type": self._sensor_type.value,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sensor":
        """Build a sensor from a mapping produced by ``to_dict``.

        Raises:
            CatpointConfigError: If the mapping is missing fields or names an
                unknown sensor type
        """
        try:
            sensor_type = SensorType(str(data["type"]).lower())
            name = str(data["name"])
            active = data.get("active", False)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CatpointConfigError(f"Invalid sensor entry {data!r}: {e}") from e

        # Strings such as "false" must not read as active
        if not isinstance(active, bool):
            raise CatpointConfigError(
                f"Invalid sensor entry {data!r}: active must be true or false"
            )
        return cls(name, sensor_type, active)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        """String representation."""
        state = "active" if self.active else "inactive"
        return f"<Sensor {self._name} ({self._sensor_type.value}, {state})>"
