"""
Command-line interface for sor_synth.

Provides generate, validate, order, and init-count-config commands for
producing relationally consistent CSV data from a system-of-record YAML
definition.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sor_synth import __version__
from sor_synth.config import ConfigError, CountConfiguration, render_count_template
from sor_synth.graph import DependencyCycleError
from sor_synth.models import Diagnostic, GenerationConfig, SORDefinition
from sor_synth.schema import SchemaError, load_definition

console = Console()

# Logs go to stderr, command output to stdout
log_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True)],
    )


def _load_definition_or_exit(path: Path) -> SORDefinition:
    try:
        return load_definition(path)
    except SchemaError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def _print_diagnostics(diagnostics: List[Diagnostic]) -> None:
    if not diagnostics:
        return

    table = Table(title="Diagnostics")
    table.add_column("Kind", style="yellow")
    table.add_column("Entity", style="cyan")
    table.add_column("Message")

    for diagnostic in diagnostics:
        table.add_row(diagnostic.kind, diagnostic.entity_id or "-", diagnostic.message)

    console.print(table)


def _print_validation(relationship_results, unique_errors) -> None:
    if relationship_results:
        rel_table = Table(title="Relationship Errors")
        rel_table.add_column("From", style="cyan")
        rel_table.add_column("To", style="green")
        rel_table.add_column("Invalid Rows", style="red", justify="right")
        rel_table.add_column("First Error")

        for result in relationship_results:
            rel_table.add_row(
                result.from_entity_file,
                result.to_entity_file,
                f"{result.invalid_rows}/{result.total_rows}",
                result.errors[0] if result.errors else "",
            )

        console.print(rel_table)

    if unique_errors:
        unique_table = Table(title="Uniqueness Errors")
        unique_table.add_column("Entity", style="cyan")
        unique_table.add_column("Messages")

        for error in unique_errors:
            unique_table.add_row(error.entity_file, "\n".join(error.messages))

        console.print(unique_table)


@click.group()
@click.version_option(version=__version__, prog_name="sor-synth")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    SOR Synth - Relational CSV Generator for System-of-Record Definitions

    Generate consistent test data whose references and unique attributes hold.
    """
    setup_logging(verbose)


@cli.command()
@click.option(
    "-f", "--file",
    "definition_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="System-of-record YAML definition",
)
@click.option(
    "-o", "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("output"),
    help="Output directory for CSV files",
)
@click.option(
    "-n", "--volume",
    type=click.IntRange(min=1),
    default=100,
    help="Rows to generate per entity",
)
@click.option(
    "-c", "--count-config",
    type=click.Path(path_type=Path),
    default=None,
    help="YAML file with per-entity row counts",
)
@click.option(
    "-a", "--auto-cardinality",
    is_flag=True,
    default=False,
    help="Skew Many-to-One clusters and expand One-to-Many rows",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Random seed for reproducibility",
)
@click.option(
    "--validate/--no-validate",
    default=True,
    help="Validate generated data and write a report",
)
def generate(
    definition_file: Path,
    output_dir: Path,
    volume: int,
    count_config: Optional[Path],
    auto_cardinality: bool,
    seed: Optional[int],
    validate: bool,
) -> None:
    """
    Generate CSV files for every entity in a definition.

    Examples:

        # Generate 100 rows per entity into ./output
        sor-synth generate -f sor.yaml

        # Reproducible run with skewed cardinalities
        sor-synth generate -f sor.yaml -o data -n 500 -a --seed 42

        # Per-entity row counts
        sor-synth generate -f sor.yaml -c counts.yaml
    """
    from sor_synth.generator import Generator
    from sor_synth.output import CSVWriter
    from sor_synth.utils import ValidationReporter

    console.print("[bold blue]SOR Synth Generation[/bold blue]")
    console.print(f"Definition: {definition_file}")
    console.print(f"Rows per entity: {volume:,}")

    definition = _load_definition_or_exit(definition_file)

    row_counts = {}
    if count_config:
        try:
            counts = CountConfiguration.load(count_config)
            counts.validate([e.external_id for e in definition.entities.values()])
        except ConfigError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
        row_counts = counts.as_row_counts()
        console.print(f"Count configuration: {count_config} ({len(row_counts)} entities)")

    config = GenerationConfig(
        output_dir=output_dir,
        data_volume=volume,
        auto_cardinality=auto_cardinality,
        seed=seed,
        entity_row_counts=row_counts,
        show_progress=True,
    )

    generator = Generator(config)
    try:
        generation_order = generator.setup(definition)
    except DependencyCycleError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"Entities: {len(generation_order)}, relationship links: {len(generator.links)}")

    console.print("\n[bold]Generating data...[/bold]")
    entity_data = generator.generate()

    table = Table(title="Generated Entities")
    table.add_column("Entity", style="cyan")
    table.add_column("File", style="magenta")
    table.add_column("Rows", style="green", justify="right")
    table.add_column("Columns", style="yellow", justify="right")

    for entity_id in generation_order:
        data = entity_data[entity_id]
        table.add_row(data.entity_name or entity_id, data.file_name, f"{len(data.rows):,}", str(len(data.headers)))

    console.print(table)
    _print_diagnostics(generator.diagnostics)

    console.print("\n[bold]Writing outputs...[/bold]")
    writer = CSVWriter(output_dir)
    output_paths = writer.write(entity_data, seed=seed)

    console.print("\n[green]Generation complete![/green]")
    console.print(f"Output directory: {writer.get_output_dir()} ({len(output_paths)} files)")

    if not validate:
        return

    console.print("\n[bold]Validating data...[/bold]")
    relationship_results, unique_errors = generator.validate()
    reporter = ValidationReporter(entity_data, relationship_results, unique_errors)
    report = reporter.generate_report()
    reporter.save(writer.get_output_dir())

    _print_validation(relationship_results, unique_errors)

    score = report["summary"]["integrity_score"]
    if reporter.has_findings:
        console.print(f"\n[yellow]Referential Integrity: {score:.0%}[/yellow]")
        console.print("See validation report for details.")
    else:
        console.print(f"\n[green]Referential Integrity: {score:.0%}[/green]")


@cli.command()
@click.option(
    "-f", "--file",
    "definition_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="System-of-record YAML definition",
)
@click.option(
    "-o", "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("output"),
    help="Directory holding previously generated CSV files",
)
def validate(definition_file: Path, output_dir: Path) -> None:
    """
    Validate existing CSV files against a definition.

    Exits with status 1 when any relationship or uniqueness error is found.

    Example:

        sor-synth validate -f sor.yaml -o output
    """
    from sor_synth.generator import Generator
    from sor_synth.utils import ValidationReporter

    console.print("[bold blue]SOR Synth Validation[/bold blue]")
    console.print(f"Definition: {definition_file}")
    console.print(f"Data: {output_dir}")

    definition = _load_definition_or_exit(definition_file)

    generator = Generator(GenerationConfig(output_dir=output_dir))
    try:
        generator.setup(definition)
    except DependencyCycleError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Loading CSV files...", total=None)
        try:
            loaded = generator.load_existing(output_dir)
        except FileNotFoundError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
        progress.update(task, completed=True)

    console.print(f"Loaded {loaded} of {len(definition.entities)} entity files")

    relationship_results, unique_errors = generator.validate()
    reporter = ValidationReporter(generator.entity_data, relationship_results, unique_errors)
    reporter.generate_report()
    reporter.save(output_dir)

    _print_validation(relationship_results, unique_errors)

    if reporter.has_findings:
        console.print("\n[red]Validation failed.[/red]")
        sys.exit(1)

    console.print("\n[green]Validation passed: all relationships and unique attributes hold.[/green]")


@cli.command()
@click.option(
    "-f", "--file",
    "definition_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="System-of-record YAML definition",
)
def order(definition_file: Path) -> None:
    """
    Show the generation order and each relationship's cardinality.

    Example:

        sor-synth order -f sor.yaml
    """
    from sor_synth.generator import Generator

    definition = _load_definition_or_exit(definition_file)

    generator = Generator()
    try:
        generation_order = generator.setup(definition)
    except DependencyCycleError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    order_table = Table(title="Generation Order")
    order_table.add_column("#", style="cyan", justify="right")
    order_table.add_column("Entity", style="green")
    order_table.add_column("External ID", style="yellow")

    for position, entity_id in enumerate(generation_order, start=1):
        entity = definition.entities[entity_id]
        order_table.add_row(str(position), entity_id, entity.external_id)

    console.print(order_table)

    if generator.links:
        rel_table = Table(title="Relationships")
        rel_table.add_column("Relationship", style="cyan")
        rel_table.add_column("From", style="green")
        rel_table.add_column("To", style="yellow")
        rel_table.add_column("Cardinality", style="magenta")

        for link in generator.links:
            rel_table.add_row(
                link.relationship_id,
                f"{link.from_entity}.{link.from_attribute}",
                f"{link.to_entity}.{link.to_attribute}",
                generator.cardinalities[link].value,
            )

        console.print(rel_table)
    else:
        console.print("\n[yellow]No relationships resolved.[/yellow]")

    _print_diagnostics(generator.diagnostics)


@cli.command("init-count-config")
@click.option(
    "-f", "--file",
    "definition_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="System-of-record YAML definition",
)
@click.option(
    "-n", "--volume",
    type=click.IntRange(min=1),
    default=100,
    help="Default row count written for every entity",
)
def init_count_config(definition_file: Path, volume: int) -> None:
    """
    Print a row count configuration template.

    Example:

        sor-synth init-count-config -f sor.yaml > counts.yaml
    """
    definition = _load_definition_or_exit(definition_file)
    click.echo(render_count_template(definition, volume, source_file=definition_file))


if __name__ == "__main__":
    cli()
