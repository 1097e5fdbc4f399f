"""Command-line interface for QuarrySelect."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import click
import structlog
from rich.console import Console
from rich.table import Table

from quarryselect import __version__
from quarryselect.config import LoggingConfig, configure, load_config, read_yaml
from quarryselect.exceptions import ConfigurationError
from quarryselect.observability import configure_logging
from quarryselect.processor import HtmlEvaluator
from quarryselect.protocols import (
    Destination,
    FlowRecord,
    MultiplicityMode,
    NotFoundBehaviour,
    Route,
    RoutedRecord,
)
from quarryselect.selectors import SelectorDialect

console = Console()
logger = structlog.get_logger(__name__)

EXIT_CODES = {
    Route.SUCCESS: 0,
    Route.FAILURE: 1,
    Route.NOT_FOUND: 2,
}


def _parse_pairs(pairs: Tuple[str, ...], option: str) -> Dict[str, str]:
    """Parse repeated NAME=VALUE options, keeping their order."""
    parsed: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got '{pair}'", param_hint=option)
        parsed[name.strip()] = value
    return parsed


def _choice(enum: Any) -> click.Choice:
    return click.Choice([member.value for member in enum])


def _raw_extraction_settings(path: Optional[str]) -> Dict[str, Any]:
    """Return unvalidated extraction settings so command-line options can complete them."""
    try:
        if path is None:
            return load_config().extraction.model_dump()
        extraction = read_yaml(Path(path)).get("extraction") or {}
    except ConfigurationError as e:
        raise click.ClickException("\n".join(e.problems)) from e

    if not isinstance(extraction, Mapping):
        raise click.ClickException(f"'extraction' must be a mapping in {path}")
    return dict(extraction)


def _print_table(routed: RoutedRecord) -> None:
    table = Table(title=f"Route: {routed.route.value}")
    table.add_column("Attribute", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in routed.record.attributes.items():
        table.add_row(key, value)
    console.print(table)

    if routed.provenance:
        console.print(f"[green]{routed.provenance}[/green]")
    if routed.error:
        console.print(f"[red]Error: {routed.error}[/red]")
    console.print(routed.record.content.decode("utf-8", errors="replace"), markup=False, highlight=False)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write JSON logs to this file")
def cli(log_level: str, log_file: Optional[str]) -> None:
    """QuarrySelect - extract named values from HTML with CSS or XPath selectors."""
    configure_logging(LoggingConfig(log_level=log_level, log_file=log_file))


@cli.command()
@click.argument("html_file", type=click.File("rb"))
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="YAML configuration file")
@click.option("--field", "-f", "fields", multiple=True, help="Field selector as NAME=SELECTOR (repeatable)")
@click.option("--root", "root_selector", help="Root selector all fields are evaluated from")
@click.option("--dialect", type=_choice(SelectorDialect), help="Selector dialect")
@click.option("--text/--markup", "select_text", default=None, help="Extract element text or outer markup")
@click.option("--multiple/--single", "select_multiple", default=None, help="Force arrays in 'flag' mode")
@click.option("--multiplicity", "multiplicity_mode", type=_choice(MultiplicityMode), help="Multiplicity mode")
@click.option("--destination", type=_choice(Destination), help="Write values as attributes or content")
@click.option("--not-found", "not_found_behaviour", type=_choice(NotFoundBehaviour), help="Not-found behaviour")
@click.option("--attribute", "-a", "attributes", multiple=True, help="Record attribute as KEY=VALUE (repeatable)")
@click.option(
    "--format",
    "output_format",
    default="json",
    type=click.Choice(["json", "table"]),
    help="Output format",
)
def evaluate(
    html_file: Any,
    config_path: Optional[str],
    fields: Tuple[str, ...],
    root_selector: Optional[str],
    dialect: Optional[str],
    select_text: Optional[bool],
    select_multiple: Optional[bool],
    multiplicity_mode: Optional[str],
    destination: Optional[str],
    not_found_behaviour: Optional[str],
    attributes: Tuple[str, ...],
    output_format: str,
) -> None:
    """Evaluate selectors against an HTML file ('-' reads stdin)."""
    raw = _raw_extraction_settings(config_path)

    options = {
        "root_selector": root_selector,
        "selector_dialect": dialect,
        "select_text": select_text,
        "select_multiple": select_multiple,
        "multiplicity_mode": multiplicity_mode,
        "destination": destination,
        "not_found_behaviour": not_found_behaviour,
    }
    raw.update({key: value for key, value in options.items() if value is not None})
    if fields:
        raw["selectors"] = _parse_pairs(fields, "--field")

    try:
        evaluator = HtmlEvaluator(configure(raw))
    except ConfigurationError as e:
        raise click.ClickException("\n".join(e.problems)) from e

    record = FlowRecord(content=html_file.read(), attributes=_parse_pairs(attributes, "--attribute"))
    routed = evaluator.process(record)
    logger.info("Record processed", route=routed.route.value)

    if output_format == "table":
        _print_table(routed)
    else:
        click.echo(json.dumps(routed.to_dict(), indent=2, ensure_ascii=False))

    sys.exit(EXIT_CODES[routed.route])


@cli.command("validate-config")
@click.argument("config_path", type=click.Path(exists=True))
def validate_config(config_path: str) -> None:
    """Validate the extraction settings of a YAML configuration file."""
    try:
        snapshot = configure(load_config(Path(config_path)).extraction)
    except ConfigurationError as e:
        console.print("[red]Configuration has issues:[/red]")
        for problem in e.problems:
            console.print(f"  - {problem}", markup=False)
        sys.exit(1)

    table = Table(title="Field Selectors")
    table.add_column("Field", style="cyan")
    table.add_column(f"Selector ({snapshot.dialect.value})", style="magenta")
    for spec in snapshot.fields:
        table.add_row(spec.name, spec.selector.expression)
    console.print(table)
    console.print("[green]Configuration is valid![/green]")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
