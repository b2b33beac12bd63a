"""Alarm controller.

Decides the alarm status from sensor events, image classification results
and the arming mode, persists it through the repository and notifies
listeners.
"""

import logging

from .const.states import AlarmStatus, ArmingStatus
from .image import ImageClassifier
from .listener import StatusListener
from .repository import SecurityRepository
from .sensor import Sensor

_LOGGER = logging.getLogger(__name__)


class SecurityController:
    """Security system state machine.

    All operations are synchronous and run to completion. Repository,
    classifier and listener errors propagate to the caller unchanged.
    """

    def __init__(
        self,
        repository: SecurityRepository,
        image_classifier: ImageClassifier,
        cat_detected: bool = False,
    ):
        """Initialize controller.

        The controller does not set any initial status; it starts from
        whatever the repository reports.

        Args:
            repository: Storage for sensors and statuses
            image_classifier: Source of cat detection results
            cat_detected: Last known classification result (default: False)
        """
        self._repository = repository
        self._image_classifier = image_classifier
        self._listeners: set[StatusListener] = set()
        self._cat_detected = bool(cat_detected)

        _LOGGER.debug("Controller initialized")

    @property
    def cat_detected(self) -> bool:
        """Most recent image classification result."""
        return self._cat_detected

    def add_status_listener(self, listener: StatusListener) -> None:
        """Register a listener. Registering twice has no effect."""
        self._listeners.add(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        """Deregister a listener. Unknown listeners are ignored."""
        self._listeners.discard(listener)

    def set_alarm_status(self, status: AlarmStatus) -> None:
        """Store alarm status and notify all listeners.

        Every alarm status change goes through here.
        """
        _LOGGER.info(f"Alarm status: {status.value}")
        self._repository.set_alarm_status(status)
        for listener in list(self._listeners):
            listener.on_alarm_status_changed(status)

    def set_arming_status(self, status: ArmingStatus) -> None:
        """Change the arming mode.

        Arming deactivates every sensor. Disarming an armed system clears
        the alarm; arming at home while a cat is in view raises it.

        Args:
            status: New arming status
        """
        current = self._repository.get_arming_status()
        _LOGGER.info(f"Arming status: {current.value} -> {status.value}")

        if status.is_armed:
            for sensor in list(self._repository.get_sensors()):
                sensor.active = False
                self._repository.update_sensor(sensor)

        if status is ArmingStatus.DISARMED and current.is_armed:
            self.set_alarm_status(AlarmStatus.NO_ALARM)
        elif self._cat_detected and status is ArmingStatus.ARMED_HOME:
            self.set_alarm_status(AlarmStatus.ALARM)

        self._repository.set_arming_status(status)
        self._notify_sensor_status_changed()

    def arm_system(self, status: ArmingStatus) -> None:
        """Set arming status and make sure every sensor is inactive when armed.

        Args:
            status: New arming status
        """
        self.set_arming_status(status)
        if self._repository.get_arming_status().is_armed:
            self.reset_all_sensors()

    def reset_all_sensors(self) -> None:
        """Deactivate any sensor that is still active.

        Sensors that are already inactive are not written again.
        """
        for sensor in list(self._repository.get_sensors()):
            if sensor.active:
                sensor.active = False
                self._repository.update_sensor(sensor)

    def change_sensor_activation_status(self, sensor: Sensor, active: bool) -> None:
        """Change a sensor's activation flag and update the alarm status.

        A raised alarm is not affected by sensor changes. Calls that do not
        flip the flag never change the alarm status. The sensor is written
        to the repository in every case.

        Args:
            sensor: Sensor that changed
            active: New activation flag
        """
        alarm_status = self._repository.get_alarm_status()

        if alarm_status is not AlarmStatus.ALARM and sensor.active != active:
            if active:
                self._handle_sensor_activated(alarm_status)
            else:
                self._handle_sensor_deactivated(sensor, alarm_status)

        sensor.active = active
        self._repository.update_sensor(sensor)

    def process_image(self) -> bool:
        """Classify the current image and update the alarm status.

        Returns:
            True if a cat was detected
        """
        cat = bool(self._image_classifier.image_contains_cat())
        self._cat_detected = cat
        _LOGGER.debug(f"Cat detected: {cat}")

        if cat and self._repository.get_arming_status() is ArmingStatus.ARMED_HOME:
            self.set_alarm_status(AlarmStatus.ALARM)
        elif (
            not cat
            and self._all_sensors_inactive()
            and self._repository.get_alarm_status() is not AlarmStatus.NO_ALARM
        ):
            self.set_alarm_status(AlarmStatus.NO_ALARM)

        for listener in list(self._listeners):
            listener.on_cat_detected(cat)
        return cat

    def add_sensor(self, sensor: Sensor) -> None:
        """Add a sensor to the repository."""
        self._repository.add_sensor(sensor)

    def remove_sensor(self, sensor: Sensor) -> None:
        """Remove a sensor from the repository."""
        self._repository.remove_sensor(sensor)

    def get_alarm_status(self) -> AlarmStatus:
        """Get current alarm status."""
        return self._repository.get_alarm_status()

    def get_arming_status(self) -> ArmingStatus:
        """Get current arming status."""
        return self._repository.get_arming_status()

    def get_sensors(self) -> set[Sensor]:
        """Get all sensors."""
        return self._repository.get_sensors()

    def _handle_sensor_activated(self, alarm_status: AlarmStatus) -> None:
        armed = self._repository.get_arming_status().is_armed
        if armed and alarm_status is AlarmStatus.NO_ALARM:
            self.set_alarm_status(AlarmStatus.PENDING_ALARM)
        elif alarm_status is AlarmStatus.PENDING_ALARM:
            self.set_alarm_status(AlarmStatus.ALARM)

    def _handle_sensor_deactivated(self, sensor: Sensor, alarm_status: AlarmStatus) -> None:
        # Evaluated as if this sensor were already inactive
        all_inactive = self._all_sensors_inactive(excluding=sensor)
        if all_inactive and alarm_status is AlarmStatus.PENDING_ALARM:
            self.set_alarm_status(AlarmStatus.NO_ALARM)
        elif all_inactive and not self._cat_detected:
            self.set_alarm_status(AlarmStatus.NO_ALARM)

    def _all_sensors_inactive(self, excluding: Sensor | None = None) -> bool:
        return not any(
            s.active for s in self._repository.get_sensors() if s != excluding
        )

    def _notify_sensor_status_changed(self) -> None:
        for listener in list(self._listeners):
            listener.on_sensor_status_changed()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SecurityController {self.get_arming_status().value}, "
            f"{self.get_alarm_status().value}, {len(self._listeners)} listeners>"
        )
