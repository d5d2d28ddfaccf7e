"""Shipment notifier CLI."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from shipnotify.config import settings
from shipnotify.models import ShipmentRecord
from shipnotify.pipeline import (
    AlternateFormatError,
    ChatOrderExtractor,
    CustomerResolver,
    DocumentTextSource,
    GuideExtractor,
    StoreUnavailableError,
    build_notifier,
    normalize_phone,
)
from shipnotify.storage import close_db, create_engine, create_session_factory
from shipnotify.utils.logging import setup_logging

app = typer.Typer(
    name="shipnotify",
    help="Send carrier shipping guides to the customers who ordered them",
    add_completion=False,
)
console = Console()


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    setup_logging(
        settings.log_level,
        Path(settings.log_file) if settings.log_file else None,
        settings.structured_logging,
    )


@app.command()
def process(
    guide_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Guide PDF or label photo"),
    phone: Optional[str] = typer.Option(None, help="Customer phone hint"),
) -> None:
    """Process a guide end to end. The file is deleted afterwards."""
    console.print(f"[bold blue]Processing:[/bold blue] {guide_path}")

    async def _run():
        notifier = build_notifier(settings)
        try:
            return await notifier.process_document(guide_path, phone_hint=phone)
        finally:
            await notifier.aclose()

    result = asyncio.run(_run())
    colour = "green" if result.success else "red"
    console.print(f"[{colour}]{result.status.value}[/{colour}]: {result.message}")
    if result.tracking_number:
        console.print(f"[dim]Tracking number: {result.tracking_number}[/dim]")
    if result.customer_name:
        console.print(f"[dim]Customer: {result.customer_name}[/dim]")
    if result.chat_order:
        console.print_json(result.chat_order.model_dump_json(exclude={"raw_text"}))
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def parse(
    guide_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Guide PDF or label photo"),
) -> None:
    """Extract shipment data without matching or sending. The file is kept."""
    text = DocumentTextSource(language=settings.ocr_language).read(guide_path)
    extractor = GuideExtractor()
    console.print(f"[bold blue]Classification:[/bold blue] {extractor.classify(text).value}")

    try:
        record = extractor.extract(text)
    except AlternateFormatError:
        order = ChatOrderExtractor().extract(text)
        console.print("[yellow]Chat screenshot, extracted order details:[/yellow]")
        console.print_json(order.model_dump_json(exclude={"raw_text"}))
        raise typer.Exit(code=2)

    if record is None:
        console.print("[red]Could not extract data from guide[/red]")
        raise typer.Exit(code=1)
    console.print_json(record.model_dump_json(exclude={"raw_text"}))


@app.command()
def match(
    phone: Optional[str] = typer.Option(None, help="Customer phone"),
    name: Optional[str] = typer.Option(None, help="Customer name"),
    address: Optional[str] = typer.Option(None, help="Shipping address"),
    city: Optional[str] = typer.Option(None, help="Destination city"),
) -> None:
    """Test customer matching against the order store."""
    if not (phone or name or address):
        console.print("[red]At least one of --phone, --name or --address is required[/red]")
        raise typer.Exit(code=2)

    record = ShipmentRecord(
        tracking_number="TEST",
        customer_name=name,
        customer_phone=normalize_phone(phone),
        shipping_address=address,
        city=city,
    )

    async def _run():
        engine = create_engine(settings.database_url)
        try:
            return await CustomerResolver(create_session_factory(engine)).resolve(record)
        finally:
            await close_db(engine)

    try:
        found = asyncio.run(_run())
    except StoreUnavailableError as exc:
        console.print(f"[red]Order store unavailable:[/red] {exc}")
        raise typer.Exit(code=3)

    if found is None:
        console.print("[yellow]No matching customer found[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title="Customer match")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in json.loads(found.model_dump_json()).items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def health() -> None:
    """Probe the messaging gateway and show the circuit breaker state."""

    async def _run():
        notifier = build_notifier(settings)
        try:
            return await notifier.health()
        finally:
            await notifier.aclose()

    status = asyncio.run(_run())
    colour = "green" if status.healthy else "red"
    console.print(f"[bold blue]Messaging gateway[/bold blue] [{colour}]{status.message}[/{colour}]")
    console.print(f"[dim]Circuit: {status.circuit_state.value}, response time: {status.response_time_ms:.0f} ms[/dim]")
    if not status.healthy:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
