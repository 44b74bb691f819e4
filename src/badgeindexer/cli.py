"""CLI interface for badgeindexer."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from badgeindexer.aggregator import classify_document
from badgeindexer.canonicalize import canonicalize
from badgeindexer.classifier import classify
from badgeindexer.crawler import DEFAULT_WORKER_COUNT, CrawlError, run_crawl
from badgeindexer.extractor import extract_document_badges
from badgeindexer.generator import GenerationError, generate_site
from badgeindexer.models import DocumentRecord, RuleSet
from badgeindexer.rule_loader import find_rules_file, get_user_rules_path, resolve_rule_set
from badgeindexer.store import StoreError

app = typer.Typer(
    name="badgeindexer",
    help="Index the README badges of a GitHub organization and render a report.",
    no_args_is_help=True,
)

rules_app = typer.Typer(
    name="rules",
    help="Inspect badge classification rules.",
    no_args_is_help=True,
)
app.add_typer(rules_app, name="rules")

console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

RulesOption = Annotated[
    Path | None, typer.Option("--rules", "-r", help="Badge rules file (YAML or JSON)")
]


@app.command("crawl")
def crawl_cmd(
    org: Annotated[str, typer.Option("--org", help="GitHub organization name")],
    token: Annotated[
        str | None,
        typer.Option("--token", envvar="GITHUB_TOKEN", help="GitHub token", show_default=False),
    ] = None,
    output_dir: Annotated[
        Path, typer.Option("--output", "-o", help="Directory for crawled data")
    ] = Path("data"),
    include_private: Annotated[
        bool, typer.Option("--private/--public-only", help="Include private repositories")
    ] = False,
    workers: Annotated[
        int, typer.Option("--workers", "-w", min=1, help="Concurrent repository fetches")
    ] = DEFAULT_WORKER_COUNT,
) -> None:
    """Crawl an organization's READMEs and store their badges as JSON."""
    if not token:
        rprint("[red]Error: GITHUB_TOKEN environment variable is required for crawl.[/red]")
        raise typer.Exit(1)

    try:
        result = run_crawl(
            org, output_dir, token, include_private=include_private, workers=workers
        )
    except CrawlError as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    rprint(
        f"[green]Crawled {result.repositories} repositories into {output_dir}[/green]"
        f" ([yellow]{result.error_count} errors[/yellow])"
    )


@app.command("generate")
def generate_cmd(
    input_dir: Annotated[
        Path, typer.Option("--input", "-i", help="Directory with crawled data")
    ] = Path("data"),
    html_dir: Annotated[Path, typer.Option("--html", help="Directory for HTML output")] = Path(
        "output"
    ),
    rules: RulesOption = None,
) -> None:
    """Render the badge report site from crawled data."""
    if not input_dir.is_dir():
        rprint(f"[red]Error: Directory '{input_dir}' does not exist[/red]")
        raise typer.Exit(1)

    rule_set = resolve_rule_set(rules)
    try:
        result = generate_site(input_dir, html_dir, rule_set)
    except (StoreError, GenerationError) as e:
        rprint(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    totals = result.totals
    rprint(
        f"[green]Generated report for {totals.repositories} repositories, "
        f"{totals.unique_badges} unique badges in {html_dir}[/green]"
    )


@app.command("extract")
def extract_cmd(
    readme: Annotated[Path, typer.Argument(help="README file to scan")],
    org: Annotated[str, typer.Option("--org", help="Organization name")] = "",
    repo: Annotated[
        str | None, typer.Option("--repo", help="Repository name (default: parent directory)")
    ] = None,
    rules: RulesOption = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table (default) or json"),
    ] = "table",
) -> None:
    """Extract and classify the badges of a local README.

    Examples:
        badgeindexer extract README.md --org acme --repo widget
        badgeindexer extract README.md --format json
    """
    if not readme.is_file():
        rprint(f"[red]Error: File '{readme}' does not exist[/red]")
        raise typer.Exit(1)

    repo_name = repo or readme.absolute().parent.name
    record = DocumentRecord(
        name=repo_name,
        content_found=True,
        badges=extract_document_badges(readme.read_bytes()),
    )
    classified = classify_document(record, resolve_rule_set(rules).badges, org)

    match output_format:
        case "json":
            typer.echo(json.dumps([item.to_dict() for item in classified], indent=2))
        case _:
            if not classified:
                rprint("[yellow]No badges found.[/yellow]")
                return
            table = Table(title=f"Badges in {repo_name}")
            table.add_column("Name", style="cyan")
            table.add_column("Category", style="green")
            table.add_column("Pattern", style="dim")
            table.add_column("Target")
            for item in classified:
                name = item.classification.name
                if item.classification.is_unknown:
                    name = f"[yellow]{name}[/yellow]"
                table.add_row(
                    name, item.classification.category, item.pattern, item.badge.target_url
                )
            console.print(table)


@rules_app.command("list")
def rules_list_cmd(rules: RulesOption = None) -> None:
    """List the active badge rules in evaluation order."""
    path = find_rules_file(rules)
    rule_set = resolve_rule_set(rules)

    if not rule_set.badges:
        rprint("[yellow]No badge rules found.[/yellow]")
        return

    table = Table(title=f"Badge Rules ({path})")
    table.add_column("#", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="green")
    table.add_column("Pattern", style="dim")

    for position, rule in enumerate(rule_set.badges, start=1):
        table.add_row(str(position), rule.id, rule.name, rule.category, rule.pattern)

    console.print(table)


@rules_app.command("classify")
def rules_classify_cmd(
    image_url: Annotated[str, typer.Argument(help="Badge image URL")],
    org: Annotated[str, typer.Option("--org", help="Organization name")] = "",
    repo: Annotated[str, typer.Option("--repo", help="Repository name")] = "",
    rules: RulesOption = None,
) -> None:
    """Show the canonical pattern and classification of a badge image URL."""
    pattern = canonicalize(image_url, org, repo)
    result = classify(pattern, resolve_rule_set(rules).badges)

    rprint(f"[cyan]Pattern:[/cyan]  {pattern}")
    rprint(f"[cyan]Name:[/cyan]     {result.name}")
    rprint(f"[cyan]Category:[/cyan] {result.category}")
    rprint(f"[cyan]ID:[/cyan]       {result.id}")


@rules_app.command("schema")
def rules_schema_cmd(
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the schema to this file")
    ] = None,
) -> None:
    """Print the JSON schema for badge rule files."""
    schema = RuleSet.model_json_schema()
    schema["$schema"] = "http://json-schema.org/draft-07/schema#"
    schema["title"] = "badgeindexer Badge Rules"
    schema["description"] = "Schema for badgeindexer badge rule files"
    text = json.dumps(schema, indent=2)

    if output is None:
        typer.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n")
    rprint(f"[green]Schema generated: {output}[/green]")


@rules_app.command("path")
def rules_path_cmd() -> None:
    """Show where the active and user rule files live."""
    rprint(f"Active: {find_rules_file() or '<none>'}")
    rprint(f"User:   {get_user_rules_path()}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
