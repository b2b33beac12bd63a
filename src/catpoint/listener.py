"""Status listener interface."""

from .const.states import AlarmStatus


class StatusListener:
    """Observer of controller events.

    All callbacks default to no-ops; subclasses override what they need.
    Callbacks run synchronously inside the controller operation that
    triggered them.
    """

    def on_alarm_status_changed(self, status: AlarmStatus) -> None:
        """Called after the alarm status has been written."""

    def on_sensor_status_changed(self) -> None:
        """Called when sensor states may have changed and views should refresh."""

    def on_cat_detected(self, cat_present: bool) -> None:
        """Called with every image classification result."""
