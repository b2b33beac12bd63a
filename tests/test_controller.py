"""Tests for the security controller state machine."""

import pytest

from catpoint.const.states import AlarmStatus, ArmingStatus, SensorType
from catpoint.controller import SecurityController
from catpoint.image import FixedImageClassifier
from catpoint.listener import StatusListener
from catpoint.repository import InMemorySecurityRepository
from catpoint.sensor import Sensor


class CountingRepository(InMemorySecurityRepository):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.updates: list[Sensor] = []
        self.alarm_writes: list[AlarmStatus] = []

    def update_sensor(self, sensor):
        self.updates.append(sensor)
        super().update_sensor(sensor)

    def set_alarm_status(self, status):
        self.alarm_writes.append(status)
        super().set_alarm_status(status)


class RecordingListener(StatusListener):
    def __init__(self):
        self.events = []

    def on_alarm_status_changed(self, status):
        self.events.append(("alarm", status))

    def on_sensor_status_changed(self):
        self.events.append(("sensors",))

    def on_cat_detected(self, cat_present):
        self.events.append(("cat", cat_present))

    @property
    def alarm_events(self):
        return [e[1] for e in self.events if e[0] == "alarm"]


def make_controller(
    sensors=(),
    arming=ArmingStatus.DISARMED,
    alarm=AlarmStatus.NO_ALARM,
    cat=False,
):
    repo = CountingRepository(sensors, arming_status=arming, alarm_status=alarm)
    classifier = FixedImageClassifier(cat)
    controller = SecurityController(repo, classifier)
    listener = RecordingListener()
    controller.add_status_listener(listener)
    return controller, repo, classifier, listener


@pytest.fixture
def door():
    return Sensor("Front Door", SensorType.DOOR)


@pytest.fixture
def window():
    return Sensor("Kitchen", SensorType.WINDOW)


class TestSensorActivation:
    """Alarm transitions driven by sensor changes."""

    @pytest.mark.parametrize("arming", [ArmingStatus.ARMED_HOME, ArmingStatus.ARMED_AWAY])
    def test_armed_activation_sets_pending(self, door, arming):
        """Activating a sensor while armed with no alarm goes pending."""
        controller, repo, _, listener = make_controller([door], arming=arming)

        controller.change_sensor_activation_status(door, True)

        assert controller.get_alarm_status() == AlarmStatus.PENDING_ALARM
        assert listener.alarm_events == [AlarmStatus.PENDING_ALARM]
        assert door.active is True
        assert repo.updates == [door]

    def test_activation_while_pending_sets_alarm(self, door, window):
        """A second activation escalates pending to alarm."""
        controller, *_ = make_controller(
            [door, window], arming=ArmingStatus.ARMED_AWAY, alarm=AlarmStatus.PENDING_ALARM
        )

        controller.change_sensor_activation_status(window, True)

        assert controller.get_alarm_status() == AlarmStatus.ALARM

    def test_two_activations_escalate_to_alarm(self, door, window):
        """Pending then alarm through two consecutive activations."""
        controller, _, _, listener = make_controller([door, window], arming=ArmingStatus.ARMED_HOME)

        controller.change_sensor_activation_status(door, True)
        controller.change_sensor_activation_status(window, True)

        assert listener.alarm_events == [AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM]

    def test_activation_while_disarmed_has_no_effect(self, door):
        """Disarmed system ignores sensor activation."""
        controller, repo, _, listener = make_controller([door])

        controller.change_sensor_activation_status(door, True)

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert listener.alarm_events == []
        assert repo.alarm_writes == []
        assert door.active is True

    def test_last_sensor_deactivated_while_pending_clears(self, door):
        """Pending alarm reverts when the last active sensor goes inactive."""
        door.active = True
        controller, *_ = make_controller(
            [door], arming=ArmingStatus.ARMED_AWAY, alarm=AlarmStatus.PENDING_ALARM
        )

        controller.change_sensor_activation_status(door, False)

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert door.active is False

    def test_deactivation_with_other_active_sensor_keeps_pending(self, door, window):
        """Pending alarm stays while another sensor is still active."""
        door.active = True
        window.active = True
        controller, repo, _, _ = make_controller(
            [door, window], arming=ArmingStatus.ARMED_AWAY, alarm=AlarmStatus.PENDING_ALARM
        )

        controller.change_sensor_activation_status(door, False)

        assert controller.get_alarm_status() == AlarmStatus.PENDING_ALARM
        assert repo.alarm_writes == []

    def test_last_sensor_deactivated_without_cat_reasserts_no_alarm(self, door):
        """Quiet sensors and no cat write the clear state again."""
        door.active = True
        controller, repo, _, listener = make_controller([door], arming=ArmingStatus.ARMED_AWAY)

        controller.change_sensor_activation_status(door, False)

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert repo.alarm_writes == [AlarmStatus.NO_ALARM]
        assert listener.alarm_events == [AlarmStatus.NO_ALARM]

    @pytest.mark.parametrize("active", [True, False])
    def test_alarm_is_sticky(self, door, window, active):
        """No sensor change touches an active alarm."""
        door.active = not active
        window.active = True
        controller, repo, _, listener = make_controller(
            [door, window], arming=ArmingStatus.ARMED_HOME, alarm=AlarmStatus.ALARM
        )

        controller.change_sensor_activation_status(door, active)
        controller.change_sensor_activation_status(window, False)

        assert controller.get_alarm_status() == AlarmStatus.ALARM
        assert repo.alarm_writes == []
        assert listener.alarm_events == []
        assert door.active is active
        assert window.active is False

    @pytest.mark.parametrize(
        "alarm", [AlarmStatus.NO_ALARM, AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM]
    )
    @pytest.mark.parametrize("active", [True, False])
    def test_same_value_never_changes_alarm(self, door, alarm, active):
        """Re-sending the current flag is not a transition."""
        door.active = active
        controller, repo, _, _ = make_controller([door], arming=ArmingStatus.ARMED_AWAY, alarm=alarm)

        controller.change_sensor_activation_status(door, active)

        assert controller.get_alarm_status() == alarm
        assert repo.alarm_writes == []
        assert repo.updates == [door]

    def test_unknown_sensor_is_still_written(self, door):
        """Sensors unknown to the repository are persisted anyway."""
        controller, repo, _, _ = make_controller([])

        controller.change_sensor_activation_status(door, True)

        assert repo.updates == [door]
        assert door in controller.get_sensors()


class TestArming:
    """Arming mode changes."""

    def test_disarm_after_armed_clears_alarm(self, door):
        """Disarming an armed system always resets the alarm."""
        controller, _, _, listener = make_controller(
            [door], arming=ArmingStatus.ARMED_HOME, alarm=AlarmStatus.ALARM
        )

        controller.set_arming_status(ArmingStatus.DISARMED)

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert controller.get_arming_status() == ArmingStatus.DISARMED
        assert listener.events == [("alarm", AlarmStatus.NO_ALARM), ("sensors",)]

    def test_disarm_when_disarmed_does_not_touch_alarm(self):
        """Disarming twice does not rewrite the alarm status."""
        controller, repo, _, listener = make_controller([])

        controller.set_arming_status(ArmingStatus.DISARMED)

        assert repo.alarm_writes == []
        assert listener.events == [("sensors",)]

    @pytest.mark.parametrize("arming", [ArmingStatus.ARMED_HOME, ArmingStatus.ARMED_AWAY])
    def test_arming_resets_sensors(self, arming):
        """Every sensor is deactivated and written once."""
        sensors = [
            Sensor("Front Door", SensorType.DOOR, active=True),
            Sensor("Kitchen", SensorType.WINDOW, active=True),
            Sensor("Hall", SensorType.MOTION, active=True),
        ]
        controller, repo, _, _ = make_controller(sensors)

        controller.set_arming_status(arming)

        assert all(not s.active for s in controller.get_sensors())
        assert sorted(s.name for s in repo.updates) == ["Front Door", "Hall", "Kitchen"]

    def test_arm_system_writes_each_sensor_once(self):
        """The reset in arm_system does not duplicate writes."""
        sensors = [
            Sensor("Front Door", SensorType.DOOR, active=True),
            Sensor("Back Door", SensorType.DOOR, active=False),
            Sensor("Hall", SensorType.MOTION, active=True),
        ]
        controller, repo, _, _ = make_controller(sensors)

        controller.arm_system(ArmingStatus.ARMED_HOME)

        assert all(not s.active for s in controller.get_sensors())
        assert len(repo.updates) == 3
        assert set(repo.updates) == set(sensors)
        assert controller.get_arming_status() == ArmingStatus.ARMED_HOME

    def test_reset_all_sensors_only_writes_active(self, door, window):
        """Inactive sensors are left alone by the reset."""
        door.active = True
        controller, repo, _, _ = make_controller([door, window])

        controller.reset_all_sensors()

        assert repo.updates == [door]
        assert door.active is False

    def test_arm_home_with_cat_in_view_raises_alarm(self):
        """A remembered cat triggers the alarm when arming at home."""
        controller, _, _, listener = make_controller(cat=True)
        controller.process_image()

        controller.set_arming_status(ArmingStatus.ARMED_HOME)

        assert controller.get_alarm_status() == AlarmStatus.ALARM
        assert listener.events[-2:] == [("alarm", AlarmStatus.ALARM), ("sensors",)]

    def test_arm_home_with_known_cat_from_construction(self):
        """A caller-supplied detection result counts like a processed image."""
        repo = InMemorySecurityRepository()
        controller = SecurityController(repo, FixedImageClassifier(False), cat_detected=True)

        controller.set_arming_status(ArmingStatus.ARMED_HOME)

        assert controller.cat_detected is True
        assert controller.get_alarm_status() == AlarmStatus.ALARM

    def test_arm_away_with_cat_in_view_keeps_status(self):
        """Cat detection only matters at home."""
        controller, repo, _, _ = make_controller(cat=True)
        controller.process_image()

        controller.set_arming_status(ArmingStatus.ARMED_AWAY)

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert repo.alarm_writes == []

    def test_arming_notifies_sensor_change(self):
        """Listeners refresh sensors after any arming change."""
        controller, _, _, listener = make_controller()

        controller.set_arming_status(ArmingStatus.ARMED_AWAY)

        assert listener.events == [("sensors",)]


class TestProcessImage:
    """Alarm transitions driven by image classification."""

    def test_cat_while_armed_home_raises_alarm(self):
        """Cat at home sets the alarm and reports the detection after it."""
        controller, _, _, listener = make_controller(arming=ArmingStatus.ARMED_HOME, cat=True)

        assert controller.process_image() is True

        assert controller.get_alarm_status() == AlarmStatus.ALARM
        assert controller.cat_detected is True
        assert listener.events == [("alarm", AlarmStatus.ALARM), ("cat", True)]

    def test_cat_while_armed_away_does_nothing(self):
        controller, repo, _, listener = make_controller(arming=ArmingStatus.ARMED_AWAY, cat=True)

        controller.process_image()

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert repo.alarm_writes == []
        assert listener.events == [("cat", True)]

    @pytest.mark.parametrize("alarm", [AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM])
    def test_no_cat_with_inactive_sensors_clears(self, door, alarm):
        """No cat and quiet sensors clear any alarm."""
        controller, _, _, listener = make_controller(
            [door], arming=ArmingStatus.ARMED_HOME, alarm=alarm, cat=False
        )

        controller.process_image()

        assert controller.get_alarm_status() == AlarmStatus.NO_ALARM
        assert listener.events == [("alarm", AlarmStatus.NO_ALARM), ("cat", False)]

    def test_no_cat_with_active_sensor_keeps_status(self, door):
        door.active = True
        controller, repo, _, _ = make_controller(
            [door], arming=ArmingStatus.ARMED_HOME, alarm=AlarmStatus.PENDING_ALARM
        )

        controller.process_image()

        assert controller.get_alarm_status() == AlarmStatus.PENDING_ALARM
        assert repo.alarm_writes == []

    def test_no_cat_when_already_clear_is_not_rewritten(self):
        controller, repo, _, listener = make_controller(arming=ArmingStatus.ARMED_HOME)

        controller.process_image()

        assert repo.alarm_writes == []
        assert listener.events == [("cat", False)]

    def test_detection_result_is_replaced(self):
        """The remembered state follows the latest classification."""
        controller, _, classifier, _ = make_controller(cat=True)
        controller.process_image()
        assert controller.cat_detected is True

        classifier.result = False
        controller.process_image()

        assert controller.cat_detected is False

    def test_cat_in_view_blocks_clear_on_deactivation(self, door):
        """Residual state is only cleared on deactivation when no cat is seen."""
        door.active = True
        controller, repo, _, _ = make_controller(
            [door], arming=ArmingStatus.ARMED_AWAY, cat=True
        )
        controller.process_image()

        controller.change_sensor_activation_status(door, False)

        assert repo.alarm_writes == []


class TestListeners:
    """Listener registration and fan-out."""

    def test_fan_out_reaches_every_listener_once(self):
        controller = SecurityController(InMemorySecurityRepository(), FixedImageClassifier(False))
        listeners = [RecordingListener() for _ in range(3)]
        for listener in listeners:
            controller.add_status_listener(listener)

        controller.set_alarm_status(AlarmStatus.PENDING_ALARM)

        for listener in listeners:
            assert listener.events == [("alarm", AlarmStatus.PENDING_ALARM)]

    def test_duplicate_registration_is_ignored(self):
        controller, _, _, listener = make_controller()
        controller.add_status_listener(listener)

        controller.set_alarm_status(AlarmStatus.ALARM)

        assert listener.events == [("alarm", AlarmStatus.ALARM)]

    def test_removed_listener_is_not_notified(self):
        controller, _, _, listener = make_controller()
        controller.remove_status_listener(listener)
        controller.remove_status_listener(listener)

        controller.set_alarm_status(AlarmStatus.ALARM)

        assert listener.events == []

    def test_listener_may_deregister_during_callback(self):
        """Notification iterates a snapshot of the listener set."""
        controller = SecurityController(InMemorySecurityRepository(), FixedImageClassifier(False))

        class OneShot(StatusListener):
            calls = 0

            def on_alarm_status_changed(self, status):
                OneShot.calls += 1
                controller.remove_status_listener(self)
                controller.add_status_listener(RecordingListener())

        for _ in range(3):
            controller.add_status_listener(OneShot())

        controller.set_alarm_status(AlarmStatus.ALARM)

        assert OneShot.calls == 3

    def test_base_listener_callbacks_are_noops(self):
        controller = SecurityController(InMemorySecurityRepository(), FixedImageClassifier(True))
        controller.add_status_listener(StatusListener())

        controller.arm_system(ArmingStatus.ARMED_HOME)
        controller.process_image()

        assert controller.get_alarm_status() == AlarmStatus.ALARM


class TestPassThrough:
    """Repository forwarding and error propagation."""

    def test_add_and_remove_sensor(self, door):
        controller, repo, _, listener = make_controller()

        controller.add_sensor(door)
        assert controller.get_sensors() == {door}

        controller.remove_sensor(door)
        assert controller.get_sensors() == set()
        assert listener.events == []
        assert repo.alarm_writes == []

    def test_repository_errors_propagate(self, door):
        class BrokenRepository(InMemorySecurityRepository):
            def set_alarm_status(self, status):
                raise OSError("storage unavailable")

        repo = BrokenRepository([door], arming_status=ArmingStatus.ARMED_AWAY)
        controller = SecurityController(repo, FixedImageClassifier(False))

        with pytest.raises(OSError, match="storage unavailable"):
            controller.change_sensor_activation_status(door, True)

    def test_classifier_errors_propagate(self):
        class BrokenClassifier(FixedImageClassifier):
            def image_contains_cat(self):
                raise RuntimeError("camera offline")

        controller = SecurityController(InMemorySecurityRepository(), BrokenClassifier(False))

        with pytest.raises(RuntimeError, match="camera offline"):
            controller.process_image()
        assert controller.cat_detected is False
