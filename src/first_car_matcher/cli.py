"""CLI for the First-Car Matcher.

Provides command-line access to shortlist generation, single-vehicle
ranking and catalog maintenance views.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from vehicle_catalog.catalog import CatalogFilters, CatalogLoadError, JsonCatalogStore, load_catalog

from .config import find_config_file, get_config, load_config
from .engine import MatchEngine, parse_descriptor
from .explainer import build_recommendation_snapshot, ranking_message, to_vehicle_candidate
from .normalizer import PreferenceNormalizer, load_answers_file
from .questions import QUESTIONS, check_answers
from .schema import (
    NormalizationResult,
    RankingResult,
    RawAnswer,
    ScoredVehicle,
    VehicleDescriptor,
)

console = Console()


@click.group()
@click.version_option(version="1.0.0", prog_name="first-car-matcher")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True),
    help="Path to matcher-config.yaml (default: auto-discovered)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Log scoring and catalog activity to stderr"
)
def main(config_path: Optional[str], verbose: bool):
    """First-Car Matcher.

    Scores a vehicle catalog against a parent's quiz answers and returns a
    ranked shortlist for a teen's first car.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        )
    path = Path(config_path) if config_path else find_config_file()
    if path:
        try:
            load_config(path)
        except (ValueError, OSError) as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            sys.exit(1)


def _resolve_catalog(catalog: Optional[str]) -> str:
    catalog = catalog or get_config().catalog.path
    if not catalog:
        raise click.UsageError("Provide --catalog or set catalog.path in matcher-config.yaml")
    return catalog


@main.command("recommend")
@click.option(
    "--catalog", "-c",
    type=click.Path(),
    help="Path to vehicles JSON catalog"
)
@click.option(
    "--answers", "-p",
    required=True,
    type=click.Path(exists=True),
    help="Path to quiz answers JSON file"
)
@click.option(
    "--limit", "-n",
    type=int,
    help="Number of vehicles to shortlist (default: answers file limit or 4)"
)
@click.option(
    "--snapshot", "-s",
    is_flag=True,
    help="Output the recommendation generator payload as JSON"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.option(
    "--out", "-o",
    type=click.Path(),
    help="Output file for JSON results (default: stdout)"
)
def recommend_cmd(
    catalog: Optional[str],
    answers: str,
    limit: Optional[int],
    snapshot: bool,
    json_output: bool,
    out: Optional[str],
):
    """Shortlist the best-matching vehicles for a set of quiz answers.

    Examples:
        first-car-matcher recommend -c vehicles.json -p answers.json
        first-car-matcher recommend -c vehicles.json -p answers.json -n 6 -j
        first-car-matcher recommend -c vehicles.json -p answers.json --snapshot
    """
    try:
        answers_file = load_answers_file(answers)
        engine = MatchEngine(JsonCatalogStore(_resolve_catalog(catalog)))
        normalized = PreferenceNormalizer().normalize(answers_file.preferences)
        if limit is None:
            limit = answers_file.limit
        top = engine.get_top_vehicles(normalized.profile, limit)

        if snapshot:
            metadata = {"fixture": Path(answers).stem, **answers_file.metadata}
            payload = build_recommendation_snapshot(
                _parse_records(answers_file.preferences)[0],
                normalized.context,
                top,
                metadata,
            )
            output_json(payload.model_dump_json(indent=2), out)
        elif json_output:
            data = {
                "profile": normalized.profile.model_dump(mode="json", exclude_none=True),
                "context": normalized.context.model_dump(mode="json", exclude_none=True),
                "candidates": [to_vehicle_candidate(s).model_dump(mode="json") for s in top],
            }
            output_json(json.dumps(data, indent=2), out)
        else:
            if answers_file.description:
                console.print(f"[dim]{answers_file.description}[/dim]")
            display_normalization(normalized)
            display_shortlist(top)

    except (CatalogLoadError, ValueError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


def _parse_records(records: list[dict]) -> tuple[list[RawAnswer], list[str]]:
    """Validate raw answer records, collecting the ones that do not parse."""
    parsed, issues = [], []
    for record in records:
        try:
            parsed.append(RawAnswer.model_validate(record))
        except ValidationError as e:
            issues.append(f"Malformed answer {record!r}: {e.errors()[0]['msg']}")
    return parsed, issues


@main.command("rank")
@click.option(
    "--catalog", "-c",
    type=click.Path(),
    help="Path to vehicles JSON catalog"
)
@click.option(
    "--answers", "-p",
    required=True,
    type=click.Path(exists=True),
    help="Path to quiz answers JSON file"
)
@click.option("--make", required=True, help="Vehicle make, e.g. Honda")
@click.option("--model", required=True, help="Vehicle model, e.g. Civic")
@click.option("--year", help="Model year (optional)")
@click.option(
    "--leaderboard", "-l",
    type=int,
    help="Leaderboard size (default 5, max 10)"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
def rank_cmd(
    catalog: Optional[str],
    answers: str,
    make: str,
    model: str,
    year: Optional[str],
    leaderboard: Optional[int],
    json_output: bool,
):
    """Show where a specific vehicle ranks for a set of quiz answers.

    Examples:
        first-car-matcher rank -c vehicles.json -p answers.json --make Honda --model Civic
        first-car-matcher rank -c vehicles.json -p answers.json --make Kia --model Soul --year 2021
    """
    try:
        answers_file = load_answers_file(answers)
        engine = MatchEngine(JsonCatalogStore(_resolve_catalog(catalog)))
        profile = PreferenceNormalizer().normalize(answers_file.preferences).profile

        descriptor = parse_descriptor({"make": make, "model": model, "year": year})
        result = engine.rank_vehicle_against_profile(profile, descriptor, leaderboard)

        if json_output:
            data = {
                "match": to_vehicle_candidate(result.matched).model_dump(mode="json")
                if result.matched else None,
                "rank": result.rank,
                "total_compared": result.total_compared,
                "leaderboard": [to_vehicle_candidate(s).model_dump(mode="json") for s in result.leaderboard],
                "year_exact": result.year_exact,
                "available_years": result.available_years,
                "message": ranking_message(result, descriptor),
            }
            print(json.dumps(data, indent=2))
        else:
            display_ranking(result, descriptor)

    except (CatalogLoadError, ValueError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command("inspect")
@click.option(
    "--catalog", "-c",
    type=click.Path(),
    help="Path to vehicles JSON catalog"
)
@click.option("--id", "vehicle_id", help="Show details for a specific vehicle ID")
@click.option("--make", help="Filter by make")
@click.option("--model", help="Filter by model")
@click.option("--year", type=int, help="Filter by model year")
@click.option(
    "--missing-enrichment",
    is_flag=True,
    help="Only rows lacking imagery, combined MPG or an NHTSA overall rating"
)
def inspect_cmd(
    catalog: Optional[str],
    vehicle_id: Optional[str],
    make: Optional[str],
    model: Optional[str],
    year: Optional[int],
    missing_enrichment: bool,
):
    """Inspect the vehicle catalog.

    View catalog contents and filter by make, model, year or enrichment gaps.
    """
    try:
        store = JsonCatalogStore(_resolve_catalog(catalog))
        cat = store.load()

        console.print("\n[bold blue]Vehicle Catalog[/bold blue]")
        console.print(f"Version: {cat.version}")
        console.print(f"Total Vehicles: {cat.total_vehicles}")
        console.print()

        if vehicle_id:
            vehicle = next((v for v in cat.vehicles if v.id == vehicle_id), None)
            if not vehicle:
                console.print(f"[red]Vehicle not found: {vehicle_id}[/red]")
                return
            display_vehicle_detail(vehicle)
            return

        filters = CatalogFilters(
            make=make, model=model, year=year, missing_enrichment=missing_enrichment
        )
        filtered = store.list_vehicles(filters)
        console.print(f"Showing {len(filtered)} vehicles:\n")

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Vehicle")
        table.add_column("Years")
        table.add_column("MSRP", justify="right")
        table.add_column("Body")
        table.add_column("IIHS TSP")
        table.add_column("NHTSA")

        for v in filtered[:50]:
            table.add_row(
                v.id[:30],
                v.display_name[:40],
                ", ".join(str(y) for y in sorted(v.years)),
                f"${v.msrp_min:,}-${v.msrp_max:,}",
                v.body_style.value,
                "yes" if v.safety_iihs_top_safety_pick else "no",
                str(v.safety_nhtsa_overall or "-"),
            )

        console.print(table)

        if len(filtered) > 50:
            console.print(f"\n[dim]... and {len(filtered) - 50} more[/dim]")

    except (CatalogLoadError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command("validate")
@click.option(
    "--catalog", "-c",
    type=click.Path(),
    help="Path to vehicles JSON catalog"
)
@click.option(
    "--answers", "-p",
    type=click.Path(),
    help="Path to quiz answers JSON file"
)
def validate_cmd(catalog: Optional[str], answers: Optional[str]):
    """Validate a catalog and/or answers file.

    Examples:
        first-car-matcher validate -c vehicles.json
        first-car-matcher validate -p answers.json
    """
    if not catalog and not answers:
        console.print("[yellow]Please specify --catalog and/or --answers to validate[/yellow]")
        return

    all_valid = True

    if catalog:
        try:
            cat = load_catalog(catalog)
            console.print(f"[green]✓ Catalog valid: {catalog} ({cat.total_vehicles} vehicles)[/green]")
        except CatalogLoadError as e:
            console.print(f"[red]✗ Catalog invalid: {catalog}[/red]")
            console.print(f"  - {escape(str(e))}")
            all_valid = False

    if answers:
        issues: list[str] = []
        try:
            answers_file = load_answers_file(answers)
            parsed, issues = _parse_records(answers_file.preferences)
            issues.extend(check_answers(parsed))
        except ValueError as e:
            issues.append(str(e))

        if issues:
            console.print(f"[red]✗ Answers invalid: {answers}[/red]")
            for issue in issues:
                console.print(f"  - {escape(issue)}")
            all_valid = False
        else:
            console.print(f"[green]✓ Answers valid: {answers}[/green]")

    sys.exit(0 if all_valid else 1)


@main.command("questions")
def questions_cmd():
    """List quiz question ids and the option values they accept."""
    tree = Tree("[bold blue]Quiz Questions[/bold blue]")
    for question in QUESTIONS:
        branch = tree.add(f"[bold cyan]{question.id}[/bold cyan] ({question.type.value}) - {question.title}")
        for option in question.options:
            branch.add(f"{option.value} [dim]{option.label}[/dim]")
        if question.type.value == "text":
            branch.add("[dim]free text, passed through as notes[/dim]")
    console.print(tree)


def display_normalization(normalized: NormalizationResult):
    """Display the parsed profile and context summaries."""
    profile = normalized.profile
    lines = []
    if profile.budget:
        lines.append(
            f"Budget: ${profile.budget.min or 0:,.0f}-${profile.budget.max or 0:,.0f} "
            f"(priority {profile.budget.priority})"
        )
    if profile.safety:
        lines.append(f"Safety: {profile.safety.level.value} (priority {profile.safety.priority})")
    if profile.usage:
        lines.append(
            f"Usage: {', '.join(t.value for t in profile.usage.tags)} (priority {profile.usage.priority})"
        )
    if profile.extras:
        lines.append(
            f"Extras: {', '.join(t.value for t in profile.extras.tags)} (priority {profile.extras.priority})"
        )

    console.print(Panel(
        "\n".join(lines) if lines else "[dim]No scoring preferences - catalog order applies[/dim]",
        title="Preference Profile",
    ))

    context = normalized.context.model_dump(exclude_none=True)
    if context:
        console.print("\n[bold]Context Summary:[/bold]")
        for key, value in context.items():
            if isinstance(value, list):
                value = "; ".join(value)
            console.print(f"  [green]•[/green] {key}: {value}")

    if normalized.unrecognized:
        console.print("\n[yellow]Unrecognized answers (ignored):[/yellow]")
        for item in normalized.unrecognized:
            console.print(f"  [yellow]•[/yellow] {item.question_id}: {item.value}")


def display_shortlist(top: list[ScoredVehicle]):
    """Display the ranked shortlist with per-axis scores."""
    console.print("\n[bold]Top Vehicle Candidates:[/bold]\n")
    if not top:
        console.print("  [dim]Catalog is empty[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Vehicle", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Budget", justify="right")
    table.add_column("Safety", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Extras", justify="right")

    for i, scored in enumerate(top, 1):
        candidate = to_vehicle_candidate(scored)
        b = scored.score_breakdown
        table.add_row(
            str(i),
            candidate.name,
            f"{candidate.score:.2f}",
            f"{b.budget:.1f}",
            f"{b.safety:.1f}",
            f"{b.usage:.1f}",
            f"{b.extras:.1f}",
        )
    console.print(table)


def display_ranking(result: RankingResult, descriptor: VehicleDescriptor):
    """Display a single-vehicle ranking with the leaderboard."""
    color = "green" if result.matched else "yellow"
    console.print(Panel(
        f"[{color}]{ranking_message(result, descriptor)}[/{color}]",
        title=descriptor.label(),
    ))

    if result.matched and result.year_exact is False:
        years = ", ".join(str(y) for y in result.available_years)
        console.print(
            f"[yellow]⚠ {descriptor.year} is not in our catalog; "
            f"ranked the closest row covering {years}[/yellow]"
        )

    if result.leaderboard:
        console.print("\n[bold]Leaderboard:[/bold]")
        display_shortlist(result.leaderboard)


def display_vehicle_detail(vehicle):
    """Display detailed vehicle information."""
    tree = Tree(f"[bold cyan]{vehicle.display_name}[/bold cyan]")

    identity = tree.add("[bold]Identity[/bold]")
    identity.add(f"ID: {vehicle.id}")
    identity.add(f"Years: {', '.join(str(y) for y in sorted(vehicle.years))}")
    identity.add(f"Body: {vehicle.body_style.value} / {vehicle.drivetrain.value}")
    identity.add(f"MSRP: ${vehicle.msrp_min:,}-${vehicle.msrp_max:,}")
    identity.add(f"Insurance tier: {vehicle.insurance_tier.value}")

    safety = tree.add("[bold]Safety[/bold]")
    safety.add(f"IIHS Top Safety Pick: {'yes' if vehicle.safety_iihs_top_safety_pick else 'no'}")
    safety.add(f"NHTSA overall: {vehicle.safety_nhtsa_overall or 'unrated'}")
    for feature in vehicle.safety_notable_features:
        safety.add(feature)

    tags = tree.add("[bold]Tags[/bold]")
    tags.add(f"Fit: {', '.join(t.value for t in vehicle.fit_tags) or '-'}")
    tags.add(f"Extras: {', '.join(t.value for t in vehicle.extras_tags) or '-'}")

    if vehicle.needs_enrichment:
        tree.add("[yellow]Needs enrichment[/yellow]")

    console.print(tree)


def output_json(json_str: str, out_path: Optional[str]):
    """Write JSON to a file, or stdout when no path is given."""
    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
        console.print(f"[green]Results saved to {out_path}[/green]")
    else:
        print(json_str)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="matcher-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default matcher configuration file.

    Example:
        first-car-matcher init-config --out my-config.yaml
    """
    from .config import save_default_config

    out_path = Path(out)
    if out_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        save_default_config(out_path)
        console.print(f"[green]✓[/green] Config file created: {out}")
        console.print("\nThis file configures:")
        console.print("  • axis_weights - Tag-overlap points and the default priority")
        console.print("  • ranking - Shortlist size, leaderboard bounds and tie-break order")
        console.print("  • catalog - Default catalog path")
        console.print("\nThe matcher will look for config in this order:")
        console.print("  1. FIRST_CAR_MATCHER_CONFIG environment variable")
        console.print("  2. ./matcher-config.yaml (current directory)")
        console.print("  3. ~/.config/first-car-matcher/config.yaml")
    except OSError as e:
        console.print(f"[red]Error creating config:[/red] {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
