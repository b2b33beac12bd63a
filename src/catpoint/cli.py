"""Command-line interface for catpoint."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

try:
    import click
    import yaml
    from rich.console import Console
    from rich.table import Table
except ImportError:
    print("CLI dependencies not installed. Install with: pip install catpoint[cli]")
    sys.exit(1)

from . import __version__
from .const.states import AlarmStatus, ArmingStatus, SensorType
from .const.strings import (
    ALARM_STATUS,
    ALARM_STATUS_STYLE,
    ARMING_STATUS,
    ARMING_STATUS_STYLE,
    SENSOR_TYPE,
)
from .controller import SecurityController
from .exceptions import CatpointInvalidParameterError
from .image import FakeImageClassifier, FixedImageClassifier, ImageClassifier
from .listener import StatusListener
from .repository import YamlSecurityRepository
from .sensor import Sensor

console = Console()

DEFAULT_STATE_FILE = "catpoint-state.yaml"

SENSOR_TYPE_CHOICE = click.Choice([t.value for t in SensorType], case_sensitive=False)


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary
    """
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config_path}[/red]")
        sys.exit(1)
    except yaml.YAMLError as e:
        console.print(f"[red]Error parsing config: {e}[/red]")
        sys.exit(1)
    cfg = _normalize_config(raw)
    if cfg is None:
        console.print(
            "[red]Invalid config. Expected mapping with 'catpoint' section, e.g.\n"
            "catpoint:\n  state_file: catpoint-state.yaml\n  classifier:\n    seed: 42[/red]"
        )
        sys.exit(1)
    return cfg


def _normalize_config(raw: Any) -> dict | None:
    """Normalize YAML into a dict with a 'catpoint' mapping.

    Accepts these shapes:
    - {catpoint: {state_file, classifier: {seed}}}
    - {state_file, classifier: {seed}}
    - None (empty file)
    Returns None if unknown.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return None
    data = raw.get("catpoint", raw)
    if not isinstance(data, dict):
        return None

    classifier = data.get("classifier") or {}
    if not isinstance(classifier, dict):
        return None
    seed = classifier.get("seed")
    try:
        seed = int(seed) if seed is not None and str(seed).strip() != "" else None
    except (TypeError, ValueError):
        return None

    return {
        "catpoint": {
            "state_file": str(data.get("state_file") or DEFAULT_STATE_FILE),
            "classifier": {"seed": seed},
        }
    }


class ConsoleListener(StatusListener):
    """Prints controller notifications and keeps them for JSON output."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.events: list[dict[str, Any]] = []

    def on_alarm_status_changed(self, status: AlarmStatus) -> None:
        self.events.append({"event": "alarm_status_changed", "status": status.value})
        if not self.quiet:
            style = ALARM_STATUS_STYLE[status]
            console.print(f"[{style}]Alarm status: {ALARM_STATUS[status]}[/{style}]")

    def on_sensor_status_changed(self) -> None:
        self.events.append({"event": "sensor_status_changed"})
        if not self.quiet:
            console.print("[blue]Sensor status changed[/blue]")

    def on_cat_detected(self, cat_present: bool) -> None:
        self.events.append({"event": "cat_detected", "cat": cat_present})
        if not self.quiet:
            text = "Cat detected!" if cat_present else "No cat in view"
            console.print(f"[cyan]{text}[/cyan]")


class CatDetectionRecorder(StatusListener):
    """Stores every classification result in the state file.

    Each command builds a fresh controller, so the last result is read back
    from the file to seed it.
    """

    def __init__(self, repository: YamlSecurityRepository):
        self._repository = repository

    def on_cat_detected(self, cat_present: bool) -> None:
        self._repository.set_cat_detected(cat_present)


def _open_controller(
    ctx: click.Context,
    as_json: bool,
    classifier: ImageClassifier | None = None,
) -> tuple[SecurityController, ConsoleListener]:
    """Build a controller on the configured state file with a console listener."""
    cfg = ctx.obj["config"]["catpoint"]
    if classifier is None:
        classifier = FakeImageClassifier(cfg["classifier"]["seed"])
    repository = YamlSecurityRepository(ctx.obj["state_file"])
    controller = SecurityController(repository, classifier, repository.cat_detected)
    controller.add_status_listener(CatDetectionRecorder(repository))
    listener = ConsoleListener(quiet=as_json)
    controller.add_status_listener(listener)
    return controller, listener


def _find_sensor(controller: SecurityController, name: str, sensor_type: str) -> Sensor:
    """Look up a stored sensor by identity.

    Raises:
        CatpointInvalidParameterError: If no such sensor exists
    """
    wanted = Sensor(name, SensorType(sensor_type.lower()))
    for sensor in controller.get_sensors():
        if sensor == wanted:
            return sensor
    raise CatpointInvalidParameterError(f"Sensor {name} ({sensor_type.lower()}) not found")


def _status_payload(controller: SecurityController) -> dict[str, Any]:
    sensors = sorted(controller.get_sensors(), key=lambda s: s.key)
    return {
        "arming_status": controller.get_arming_status().value,
        "alarm_status": controller.get_alarm_status().value,
        "sensors": [s.to_dict() for s in sensors],
    }


def _fail(e: Exception, as_json: bool) -> None:
    # If JSON requested, emit structured error; otherwise styled message
    if as_json:
        click.echo(json.dumps({"ok": False, "error": str(e)}))
    else:
        console.print(f"[red]Error: {e}[/red]")
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default="catpoint.yaml",
    help="Configuration file path",
)
@click.option(
    "--state",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="State file path (overrides config)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config: Path, state: Optional[Path], debug: bool) -> None:
    """Catpoint - home security controller."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config) if config.exists() else _normalize_config({})
    ctx.obj["state_file"] = state or Path(ctx.obj["config"]["catpoint"]["state_file"])
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output status as JSON")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show arming status, alarm status and sensors."""
    try:
        controller, _ = _open_controller(ctx, as_json)

        if as_json:
            click.echo(json.dumps({"ok": True, **_status_payload(controller)}))
            return

        arming = controller.get_arming_status()
        alarm = controller.get_alarm_status()
        table = Table(title="System")
        table.add_column("Arming", style="cyan")
        table.add_column("Alarm", style="cyan")
        arming_style = ARMING_STATUS_STYLE[arming]
        alarm_style = ALARM_STATUS_STYLE[alarm]
        table.add_row(
            f"[{arming_style}]{ARMING_STATUS[arming]}[/{arming_style}]",
            f"[{alarm_style}]{ALARM_STATUS[alarm]}[/{alarm_style}]",
        )
        console.print(table)
        console.print()

        sensors = sorted(controller.get_sensors(), key=lambda s: s.key)
        if sensors:
            table = Table(title="Sensors")
            table.add_column("Name", style="magenta")
            table.add_column("Type", style="cyan")
            table.add_column("State", style="yellow")
            for sensor in sensors:
                state_style = "red" if sensor.active else "green"
                state_text = "Active" if sensor.active else "Inactive"
                table.add_row(
                    sensor.name,
                    SENSOR_TYPE[sensor.sensor_type],
                    f"[{state_style}]{state_text}[/{state_style}]",
                )
            console.print(table)
        else:
            console.print("[yellow]No sensors[/yellow]")
    except Exception as e:
        _fail(e, as_json)


@cli.command()
@click.argument("mode", type=click.Choice(["home", "away"], case_sensitive=False))
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def arm(ctx: click.Context, mode: str, as_json: bool) -> None:
    """Arm the system at home or away."""
    arming = ArmingStatus.ARMED_HOME if mode.lower() == "home" else ArmingStatus.ARMED_AWAY
    try:
        controller, listener = _open_controller(ctx, as_json)
        if not as_json:
            console.print(f"[cyan]Arming system ({ARMING_STATUS[arming]})...[/cyan]")
        controller.arm_system(arming)
        if not as_json:
            console.print(f"[green]System {ARMING_STATUS[arming].lower()}[/green]")
        else:
            click.echo(json.dumps({"ok": True, "action": "arm", "mode": mode.lower(), "events": listener.events, **_status_payload(controller)}))
    except Exception as e:
        _fail(e, as_json)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def disarm(ctx: click.Context, as_json: bool) -> None:
    """Disarm the system."""
    try:
        controller, listener = _open_controller(ctx, as_json)
        if not as_json:
            console.print("[cyan]Disarming system...[/cyan]")
        controller.set_arming_status(ArmingStatus.DISARMED)
        if not as_json:
            console.print("[green]System disarmed[/green]")
        else:
            click.echo(json.dumps({"ok": True, "action": "disarm", "events": listener.events, **_status_payload(controller)}))
    except Exception as e:
        _fail(e, as_json)


@cli.command("add-sensor")
@click.argument("name", type=str)
@click.option("--type", "sensor_type", type=SENSOR_TYPE_CHOICE, required=True, help="Sensor type")
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def add_sensor_cmd(ctx: click.Context, name: str, sensor_type: str, as_json: bool) -> None:
    """Add a sensor."""
    try:
        controller, _ = _open_controller(ctx, as_json)
        sensor = Sensor(name, SensorType(sensor_type.lower()))
        controller.add_sensor(sensor)
        if not as_json:
            console.print(f"[green]Sensor {name} added[/green]")
        else:
            click.echo(json.dumps({"ok": True, "action": "add_sensor", "sensor": sensor.to_dict()}))
    except Exception as e:
        _fail(e, as_json)


@cli.command("remove-sensor")
@click.argument("name", type=str)
@click.option("--type", "sensor_type", type=SENSOR_TYPE_CHOICE, required=True, help="Sensor type")
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def remove_sensor_cmd(ctx: click.Context, name: str, sensor_type: str, as_json: bool) -> None:
    """Remove a sensor."""
    try:
        controller, _ = _open_controller(ctx, as_json)
        sensor = _find_sensor(controller, name, sensor_type)
        controller.remove_sensor(sensor)
        if not as_json:
            console.print(f"[green]Sensor {name} removed[/green]")
        else:
            click.echo(json.dumps({"ok": True, "action": "remove_sensor", "sensor": sensor.to_dict()}))
    except Exception as e:
        _fail(e, as_json)


def _change_sensor(ctx: click.Context, name: str, sensor_type: str, active: bool, as_json: bool) -> None:
    action = "activate" if active else "deactivate"
    try:
        controller, listener = _open_controller(ctx, as_json)
        sensor = _find_sensor(controller, name, sensor_type)
        controller.change_sensor_activation_status(sensor, active)
        if not as_json:
            console.print(f"[green]Sensor {name} {action}d[/green]")
        else:
            click.echo(json.dumps({"ok": True, "action": action, "sensor": sensor.to_dict(), "events": listener.events, **_status_payload(controller)}))
    except Exception as e:
        _fail(e, as_json)


@cli.command()
@click.argument("name", type=str)
@click.option("--type", "sensor_type", type=SENSOR_TYPE_CHOICE, required=True, help="Sensor type")
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def activate(ctx: click.Context, name: str, sensor_type: str, as_json: bool) -> None:
    """Mark a sensor active."""
    _change_sensor(ctx, name, sensor_type, True, as_json)


@cli.command()
@click.argument("name", type=str)
@click.option("--type", "sensor_type", type=SENSOR_TYPE_CHOICE, required=True, help="Sensor type")
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def deactivate(ctx: click.Context, name: str, sensor_type: str, as_json: bool) -> None:
    """Mark a sensor inactive."""
    _change_sensor(ctx, name, sensor_type, False, as_json)


@cli.command("process-image")
@click.option("--cat/--no-cat", default=None, help="Force the classification result")
@click.option("--seed", type=int, default=None, help="Seed for the fake classifier")
@click.option("--json", "as_json", is_flag=True, help="Output JSON instead of text")
@click.pass_context
def process_image_cmd(ctx: click.Context, cat: Optional[bool], seed: Optional[int], as_json: bool) -> None:
    """Classify the current camera image.

    Without --cat/--no-cat a fake classifier guesses at random.
    """
    classifier: ImageClassifier | None = None
    if cat is not None:
        classifier = FixedImageClassifier(cat)
    elif seed is not None:
        classifier = FakeImageClassifier(seed)
    try:
        controller, listener = _open_controller(ctx, as_json, classifier)
        found = controller.process_image()
        if as_json:
            click.echo(json.dumps({"ok": True, "action": "process_image", "cat": found, "events": listener.events, **_status_payload(controller)}))
    except Exception as e:
        _fail(e, as_json)


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
