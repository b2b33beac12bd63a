"""Security repositories.

The controller reads and writes all persistent state through a
``SecurityRepository``. Two implementations are provided: an in-memory one
for tests and embedding, and one that mirrors its state into a YAML file
after every change.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

import yaml

from .const.states import AlarmStatus, ArmingStatus, SensorType
from .exceptions import CatpointConfigError, CatpointRepositoryError
from .sensor import Sensor

_LOGGER = logging.getLogger(__name__)


class SecurityRepository(ABC):
    """Storage for the sensor set, alarm status and arming status."""

    @abstractmethod
    def get_arming_status(self) -> ArmingStatus:
        """Get current arming status."""

    @abstractmethod
    def set_arming_status(self, status: ArmingStatus) -> None:
        """Store arming status."""

    @abstractmethod
    def get_alarm_status(self) -> AlarmStatus:
        """Get current alarm status."""

    @abstractmethod
    def set_alarm_status(self, status: AlarmStatus) -> None:
        """Store alarm status."""

    @abstractmethod
    def get_sensors(self) -> set[Sensor]:
        """Get all sensors."""

    @abstractmethod
    def add_sensor(self, sensor: Sensor) -> None:
        """Add a sensor to the set."""

    @abstractmethod
    def remove_sensor(self, sensor: Sensor) -> None:
        """Remove a sensor from the set."""

    @abstractmethod
    def update_sensor(self, sensor: Sensor) -> None:
        """Persist the current state of a sensor."""


class InMemorySecurityRepository(SecurityRepository):
    """Repository holding its state in process memory."""

    def __init__(
        self,
        sensors: Iterable[Sensor] | None = None,
        arming_status: ArmingStatus = ArmingStatus.DISARMED,
        alarm_status: AlarmStatus = AlarmStatus.NO_ALARM,
    ):
        """Initialize repository.

        Args:
            sensors: Initial sensors (duplicates collapse on identity)
            arming_status: Initial arming status
            alarm_status: Initial alarm status
        """
        self._sensors: dict[tuple[str, SensorType], Sensor] = {}
        for sensor in sensors or ():
            self._sensors.setdefault(sensor.key, sensor)
        self._arming_status = ArmingStatus(arming_status)
        self._alarm_status = AlarmStatus(alarm_status)

    def get_arming_status(self) -> ArmingStatus:
        return self._arming_status

    def set_arming_status(self, status: ArmingStatus) -> None:
        self._arming_status = ArmingStatus(status)
        self._changed()

    def get_alarm_status(self) -> AlarmStatus:
        return self._alarm_status

    def set_alarm_status(self, status: AlarmStatus) -> None:
        self._alarm_status = AlarmStatus(status)
        self._changed()

    def get_sensors(self) -> set[Sensor]:
        return set(self._sensors.values())

    def add_sensor(self, sensor: Sensor) -> None:
        if sensor.key in self._sensors:
            _LOGGER.debug(f"Sensor {sensor.name} already present, keeping stored entry")
            return
        self._sensors[sensor.key] = sensor
        self._changed()

    def remove_sensor(self, sensor: Sensor) -> None:
        if self._sensors.pop(sensor.key, None) is None:
            _LOGGER.debug(f"Sensor {sensor.name} not present, nothing to remove")
            return
        self._changed()

    def update_sensor(self, sensor: Sensor) -> None:
        # Last write wins, unknown sensors are inserted
        self._sensors[sensor.key] = sensor
        self._changed()

    def _changed(self) -> None:
        """Hook run after every mutation."""

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<{type(self).__name__} {self._arming_status.value}, "
            f"{self._alarm_status.value}, {len(self._sensors)} sensors>"
        )


class YamlSecurityRepository(InMemorySecurityRepository):
    """Repository persisted to a YAML file.

    The whole state is rewritten after every mutation, through a temporary
    file in the same directory that replaces the state file in one step. A
    missing file yields the default state (disarmed, no alarm, no sensors).

    Besides the repository contract the file also keeps the last image
    classification, so callers that build a fresh controller per request
    can carry it over.

    File layout::

        arming_status: armed_home
        alarm_status: no_alarm
        cat_detected: false
        sensors:
          - name: Front Door
            type: door
            active: false
    """

    def __init__(self, path: str | Path):
        """Initialize repository and load existing state.

        Args:
            path: State file location

        Raises:
            CatpointRepositoryError: If the file exists but cannot be read
                or parsed
        """
        self.path = Path(path)
        super().__init__()
        self._cat_detected = False
        self._load()

    @property
    def cat_detected(self) -> bool:
        """Last stored image classification result."""
        return self._cat_detected

    def set_cat_detected(self, cat_present: bool) -> None:
        """Store the last image classification result."""
        self._cat_detected = bool(cat_present)
        self._changed()

    def _load(self) -> None:
        if not self.path.exists():
            _LOGGER.debug(f"No state file at {self.path}, using defaults")
            return

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise CatpointRepositoryError(f"Failed to read state file {self.path}: {e}") from e

        if raw is None:
            return
        if not isinstance(raw, dict):
            raise CatpointRepositoryError(f"State file {self.path} must contain a mapping")

        cat_detected = raw.get("cat_detected", False)
        if not isinstance(cat_detected, bool):
            raise CatpointRepositoryError(
                f"Invalid state file {self.path}: cat_detected must be true or false"
            )
        self._cat_detected = cat_detected

        try:
            self._arming_status = ArmingStatus(raw.get("arming_status", ArmingStatus.DISARMED.value))
            self._alarm_status = AlarmStatus(raw.get("alarm_status", AlarmStatus.NO_ALARM.value))
            for entry in raw.get("sensors") or []:
                sensor = Sensor.from_dict(entry)
                self._sensors[sensor.key] = sensor
        except (ValueError, CatpointConfigError) as e:
            raise CatpointRepositoryError(f"Invalid state file {self.path}: {e}") from e

        _LOGGER.debug(f"Loaded state from {self.path}: {len(self._sensors)} sensors")

    def to_dict(self) -> dict[str, Any]:
        """Serialize the repository state."""
        return {
            "arming_status": self._arming_status.value,
            "alarm_status": self._alarm_status.value,
            "cat_detected": self._cat_detected,
            "sensors": [
                s.to_dict() for s in sorted(self._sensors.values(), key=lambda s: s.key)
            ],
        }

    def _changed(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise CatpointRepositoryError(f"Failed to write state file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise CatpointRepositoryError(f"Failed to write state file {self.path}: {e}") from e
        finally:
            # Only left behind when the write or replace failed
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
