# src/fieldplan/cli.py
"""fieldplan Command Line Interface.

Developer tooling for inspecting model definitions:

    fieldplan verify myapp.models:User
    fieldplan plan myapp.models:User summary --request '{"books": {"limit": 3}}'
"""

from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any

import typer
import yaml
from pydantic import ValidationError

from fieldplan import __version__
from fieldplan.contracts.errors import FieldKindConflict, GraphValidationError, InvalidDeclaration
from fieldplan.model import ComputedModel

__all__ = ["app"]

app = typer.Typer(
    name="fieldplan",
    help="fieldplan: inspect batch field graphs and request plans.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fieldplan version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (logging section is applied).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """fieldplan: inspect batch field graphs and request plans."""
    from fieldplan.core.config import FieldplanSettings, LoggingSettings, load_settings
    from fieldplan.core.logging import configure_logging

    config = FieldplanSettings()
    if settings is not None:
        settings_path = settings.expanduser()
        try:
            config = load_settings(settings_path)
        except FileNotFoundError:
            _format_error(
                title="File Not Found",
                message=f"Settings file does not exist: {settings}",
                hint="Check the path and ensure the file exists.",
            )
            raise typer.Exit(1) from None
        except yaml.YAMLError as e:
            _format_error(
                title="YAML Syntax Error",
                message=f"Failed to parse {settings_path.name}",
                details=[str(e)],
            )
            raise typer.Exit(1) from None
        except ValidationError as e:
            # Must be before ValueError - ValidationError inherits from it
            details = [f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()]
            _format_error(
                title="Configuration Validation Failed",
                message=f"Invalid settings in {settings_path.name}",
                details=details,
                hint="Check field names, types, and allowed values.",
            )
            raise typer.Exit(1) from None
        except ValueError as e:
            _format_error(title="Configuration Error", message=str(e))
            raise typer.Exit(1) from None

    logging_settings = config.logging
    if verbose or json_logs:
        logging_settings = LoggingSettings(
            level="DEBUG" if verbose else logging_settings.level,
            json_output=json_logs or logging_settings.json_output,
        )
    configure_logging(logging_settings)


def _format_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]{title}[/]",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)


def _load_model(target: str) -> type[ComputedModel]:
    """Import a model class from 'package.module:ClassName'.

    Raises:
        typer.Exit: If the target cannot be imported or is not a model
    """
    module_name, sep, class_name = target.partition(":")
    if not sep or not module_name or not class_name:
        _format_error(
            title="Invalid Target",
            message=f"Expected MODULE:CLASS, got {target!r}",
            hint="Example: myapp.models:User",
        )
        raise typer.Exit(1)

    try:
        # Field declarations are validated at import time
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        _format_error(title="Module Not Found", message=str(e), hint="Check PYTHONPATH and the module name.")
        raise typer.Exit(1) from None
    except (InvalidDeclaration, FieldKindConflict) as e:
        _format_error(title="Invalid Field Declaration", message=str(e))
        raise typer.Exit(1) from None

    model = getattr(module, class_name, None)
    if not isinstance(model, type) or not issubclass(model, ComputedModel):
        _format_error(
            title="Not A Model",
            message=f"{target} is not a ComputedModel subclass",
        )
        raise typer.Exit(1)
    return model


@app.command()
def verify(
    target: str = typer.Argument(..., help="Model class as MODULE:CLASS."),
) -> None:
    """Validate a model's field graph without loading anything."""
    model = _load_model(target)
    try:
        model.verify_dependencies()
    except GraphValidationError as e:
        _format_error(
            title="Field Graph Error",
            message=str(e),
            hint="Check for cycles, unknown dependencies, and exactly one primary loader.",
        )
        raise typer.Exit(1) from None

    graph = model.sorted_graph()
    typer.echo(f"✅ {target}: field graph valid")
    typer.echo(f"  Primary: {graph.primary}")
    typer.echo(f"  Fields: {len(graph)}")
    typer.echo(f"  Load order: {', '.join(graph.order)}")
    for node in graph:
        info = node.describe()
        deps = f" <- {', '.join(info['dependencies'])}" if info["dependencies"] else ""
        typer.echo(f"    {info['name']} ({info['kind']}){deps}")


@app.command()
def plan(
    target: str = typer.Argument(..., help="Model class as MODULE:CLASS."),
    fields: list[str] | None = typer.Argument(None, help="Requested field names."),
    request: str | None = typer.Option(
        None,
        "--request",
        "-r",
        help="Additional request as JSON (a field name, a mapping, or a list of those).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON."),
) -> None:
    """Show the plan a request would execute, without calling any loader."""
    model = _load_model(target)

    requested: list[Any] = list(fields or [])
    if request is not None:
        try:
            extra = json.loads(request)
        except json.JSONDecodeError as e:
            _format_error(title="Invalid Request JSON", message=str(e))
            raise typer.Exit(1) from None
        requested.extend(extra if isinstance(extra, list) else [extra])

    try:
        result = model.plan(requested)
    except (GraphValidationError, InvalidDeclaration) as e:
        _format_error(title="Cannot Plan Request", message=str(e))
        raise typer.Exit(1) from None

    rows = result.describe()
    if as_json:
        typer.echo(json.dumps(rows, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title=f"Plan for {target}")
    table.add_column("#", justify="right")
    table.add_column("Field")
    table.add_column("Kind")
    table.add_column("Reads")
    table.add_column("Selectors")
    for index, row in enumerate(rows, start=1):
        name = f"[bold]{row['name']}[/]" if row["requested"] else row["name"]
        table.add_row(str(index), name, row["kind"], ", ".join(row["deps"]), ", ".join(row["selectors"]))
    Console().print(table)
