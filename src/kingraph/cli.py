"""CLI interface for KinGraph."""
from __future__ import annotations

import json
import sys
from pathlib import Path

import httpx
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import KinGraphConfig, load_config
from .export.gedcom import export_gedcom
from .extraction import extract_individual
from .highlight import highlight as render_highlight
from .logging import configure_logging, get_logger
from .models.confidence import score_confidence
from .models.fields import FIELD_DESCRIPTORS
from .models.record import IndividualRecord
from .store import IndividualProfile, RecordStore

app = typer.Typer(
    name="kingraph",
    help="Extract genealogical individuals from HTML pages",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug events to stderr"),
):
    """Load ``.env`` and configure logging before any command runs."""
    load_dotenv()
    config = load_config()
    configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = config


def _read_source(source: Path | None, url: str | None, config: KinGraphConfig) -> tuple[str, str | None]:
    if url:
        try:
            response = httpx.get(url, timeout=config.http_timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            err_console.print(f"[red]Error: could not fetch {url}: {e}[/red]")
            raise typer.Exit(1) from e
        return response.text, str(response.url)
    if source is not None:
        if not source.exists():
            err_console.print(f"[red]Error: file not found: {source}[/red]")
            raise typer.Exit(1)
        return source.read_text(encoding="utf-8"), None
    return sys.stdin.read(), None


def _read_definitions(path: Path | None) -> list | None:
    if path is None:
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        err_console.print(f"[red]Error: could not read definitions from {path}: {e}[/red]")
        raise typer.Exit(1) from e
    if not isinstance(data, list):
        err_console.print(f"[red]Error: {path} must contain a JSON list of definitions[/red]")
        raise typer.Exit(1)
    return data


def _record_table(record: IndividualRecord, confidence: dict[str, float]) -> Table:
    table = Table(title=record.display_name or "Unnamed individual")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_column("Confidence", justify="right")
    for field_id, descriptor in FIELD_DESCRIPTORS.items():
        value = descriptor.display(record)
        if not value:
            continue
        score = confidence.get(field_id.value)
        table.add_row(descriptor.label, value, f"{score:.2f}" if score is not None else "")
    if record.places:
        table.add_row("Places", "; ".join(record.places), "")
    if record.professions:
        table.add_row("Professions", "; ".join(record.professions), "")
    return table


@app.command()
def extract(
    ctx: typer.Context,
    source: Path = typer.Argument(None, help="HTML file (stdin when omitted)"),
    url: str = typer.Option(None, "--url", "-u", help="Fetch the page from this URL"),
    places: Path = typer.Option(None, "--places", help="JSON list of custom place definitions"),
    professions: Path = typer.Option(None, "--professions", help="JSON list of custom profession definitions"),
    output_format: str = typer.Option("json", "--format", "-f", help="Output format: json or table"),
    highlight_out: Path = typer.Option(None, "--highlight-out", help="Write the highlighted HTML here"),
    store: bool = typer.Option(False, "--store", help="Save the record to the local store"),
    store_path: Path = typer.Option(None, "--store-path", help="Store file (defaults to KINGRAPH_STORE_PATH)"),
):
    """Extract one individual from an HTML page."""
    config: KinGraphConfig = ctx.obj
    if output_format not in ("json", "table"):
        err_console.print(f"[red]Error: unknown format {output_format!r}[/red]")
        raise typer.Exit(2)

    html, fetched_url = _read_source(source, url, config)
    if not html.strip():
        err_console.print("[red]Error: no HTML input provided[/red]")
        raise typer.Exit(1)

    record = extract_individual(
        html,
        places=_read_definitions(places),
        professions=_read_definitions(professions),
        source_url=fetched_url,
    )
    confidence = score_confidence(record)

    if output_format == "table":
        console.print(_record_table(record, confidence))
    else:
        typer.echo(json.dumps({"record": record.to_wire(), "confidence": confidence}, ensure_ascii=False, indent=2))

    if highlight_out:
        highlight_out.write_text(render_highlight(record.source_html, record.provenance), encoding="utf-8")
        err_console.print(f"[green]Highlighted HTML saved to {highlight_out}[/green]")

    if store:
        records = RecordStore(store_path or config.store_path)
        individual = records.create_individual(
            record.display_name or "Unnamed individual", IndividualProfile.from_record(record)
        )
        records.create_record(individual.id, record)
        err_console.print(f"[green]Stored as individual {individual.id}[/green]")


@app.command()
def highlight(
    source: Path = typer.Argument(..., help="HTML file"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file (stdout when omitted)"),
):
    """Mark every extracted span in the page."""
    if not source.exists():
        err_console.print(f"[red]Error: file not found: {source}[/red]")
        raise typer.Exit(1)
    record = extract_individual(source.read_text(encoding="utf-8"))
    rendered = render_highlight(record.source_html, record.provenance)
    if output:
        output.write_text(rendered, encoding="utf-8")
        err_console.print(f"[green]Highlighted HTML saved to {output}[/green]")
    else:
        typer.echo(rendered)


@app.command()
def gedcom(
    ctx: typer.Context,
    output: Path = typer.Argument(..., help="GEDCOM file to write"),
    records: list[Path] = typer.Option(None, "--record", "-r", help="Record JSON file (repeatable)"),
    store_path: Path = typer.Option(None, "--store-path", help="Store file (defaults to KINGRAPH_STORE_PATH)"),
):
    """Export records or the stored individuals to GEDCOM 5.5.1."""
    config: KinGraphConfig = ctx.obj
    if records:
        # Records are exported as unlinked individuals
        workspace = RecordStore()
        for path in records:
            data = json.loads(path.read_text(encoding="utf-8"))
            record = IndividualRecord.model_validate(data.get("record", data))
            workspace.create_individual(
                record.display_name or path.stem, IndividualProfile.from_record(record)
            )
        state = workspace.state
    else:
        state = RecordStore(store_path or config.store_path).state

    export_gedcom(state, output)
    logger.info("cli.gedcom_written", path=str(output), individuals=len(state.individuals))
    console.print(f"[green]Wrote {len(state.individuals)} individual(s) to {output}[/green]")


if __name__ == "__main__":
    app()
