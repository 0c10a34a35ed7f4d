"""CLI for crypto account reports."""

import asyncio
import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import Any

import typer
from pydantic import Field, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from crypto_account_reports.config import get_settings
from crypto_account_reports.core.errors import ReportError
from crypto_account_reports.core.models import (
    MAX_LOD,
    AggregatedBalance,
    AssetContext,
    BalanceRecord,
    CamelModel,
    Pubkey,
    ReportData,
    ReportOptions,
)
from crypto_account_reports.core.registry import ReportGeneratorRegistry
from crypto_account_reports.core.service import ReportService
from crypto_account_reports.core.session import StaticDeviceInfo, WalletSession
from crypto_account_reports.data import get_all_families, get_family_config
from crypto_account_reports.document import Document, suggested_filename
from crypto_account_reports.document.assembler import BulletListBlock, HeadingBlock, ParagraphBlock, TableBlock
from crypto_account_reports.integrations import PollConfig, ReportingClient

app = typer.Typer(
    name="crypto-account-reports",
    help="Generate multi-chain wallet account reports and balance summaries",
    add_completion=False,
)

console = Console()


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    DOCUMENT = "document"


class WalletSnapshot(CamelModel):
    """
    Wallet state exported by the balance provider.

    Attributes
    ----------
    assets : list[AssetContext]
        Assets available for reporting
    pubkeys : list[Pubkey]
        Wallet pubkeys (used for assets that carry none)
    balances : list[BalanceRecord]
        Balance records
    device : dict[str, Any] | None
        Device features

    """

    assets: list[AssetContext] = Field(default_factory=list)
    pubkeys: list[Pubkey] = Field(default_factory=list)
    balances: list[BalanceRecord] = Field(default_factory=list)
    device: dict[str, Any] | None = None

    def select_asset(self, selector: str) -> AssetContext:
        """
        Find an asset by CAIP id or symbol and attach its network's pubkeys.

        Raises
        ------
        KeyError
            If no asset matches the selector

        """
        wanted = selector.upper()
        for asset in self.assets:
            if asset.caip == selector or asset.symbol.upper() == wanted:
                if asset.pubkeys:
                    return asset
                pubkeys = tuple(p for p in self.pubkeys if asset.network_id in p.networks)
                return asset.model_copy(update={"pubkeys": pubkeys})
        msg = f"Asset not found in snapshot: {selector}"
        raise KeyError(msg)


def _configure_logging(debug: bool, level: str) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=debug, show_path=debug)],
        force=True,
    )
    if debug:
        install(show_locals=True)


def _load_snapshot(path: Path) -> WalletSnapshot:
    try:
        return WalletSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        console.print(f"[bold red]Cannot read wallet snapshot {path}:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def _select(snapshot: WalletSnapshot, selector: str) -> AssetContext:
    try:
        return snapshot.select_asset(selector)
    except KeyError as e:
        console.print(f"[bold red]Error:[/bold red] {e.args[0]}")
        raise typer.Exit(code=1) from e


async def _generate(
    snapshot: WalletSnapshot,
    asset: AssetContext,
    options: ReportOptions,
    server_url: str | None,
) -> tuple[ReportData, Document]:
    settings = get_settings()
    async with ReportingClient(
        base_url=server_url or settings.reporting_base_url,
        timeout=settings.http_timeout_seconds,
    ) as client:
        session = WalletSession(
            balances=snapshot.balances,
            pubkeys=snapshot.pubkeys,
            device=StaticDeviceInfo(snapshot.device) if snapshot.device is not None else None,
            reporting=client,
            poll_config=PollConfig(settings.poll_interval_seconds, settings.poll_max_attempts),
        )
        return await ReportService(session).generate_document(asset, options)


@app.command()
def report(
    snapshot_path: Path = typer.Argument(..., help="Wallet snapshot JSON file", exists=True, dir_okay=False),
    asset_selector: str = typer.Option(..., "--asset", "-a", help="Asset CAIP id or symbol"),
    lod: int | None = typer.Option(None, "--lod", "-l", min=0, max=MAX_LOD, help="Level of detail (0-5)"),
    accounts: int | None = typer.Option(None, "--accounts", "-n", min=1, help="Number of accounts"),
    gap_limit: int | None = typer.Option(None, "--gap-limit", min=1, help="Address discovery gap limit"),
    server_url: str | None = typer.Option(None, "--server-url", help="Reporting API base URL"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Generate an account report for one asset of a wallet snapshot.

    Examples:

        # Bitcoin XPUB report with transaction summary
        crypto-account-reports report wallet.json --asset BTC --lod 4

        # Printable document model as JSON
        crypto-account-reports report wallet.json --asset ETH --format document
    """
    _configure_logging(debug, get_settings().log_level)
    snapshot = _load_snapshot(snapshot_path)
    asset = _select(snapshot, asset_selector)
    options = ReportOptions(lod=lod, account_count=accounts, gap_limit=gap_limit)

    console.print(f"\n[bold cyan]{ReportGeneratorRegistry.get_report_description(asset)}[/bold cyan]")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Generating {asset.symbol} report...", total=None)
            report_data, document = asyncio.run(_generate(snapshot, asset, options, server_url))
            progress.update(task, description=f"✓ Generated {len(report_data.sections)} sections")
    except ReportError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if debug:
            raise
        raise typer.Exit(1) from e

    if format == OutputFormat.JSON:
        _output_json(report_data.model_dump(mode="json", by_alias=True))
    elif format == OutputFormat.DOCUMENT:
        _output_json(document.model_dump(mode="json"))
    else:
        _output_document(document)
        console.print(f"[dim]Suggested file name: {suggested_filename(report_data)}[/dim]\n")


@app.command()
def balances(
    snapshot_path: Path = typer.Argument(..., help="Wallet snapshot JSON file", exists=True, dir_okay=False),
    asset_selector: str = typer.Option(..., "--asset", "-a", help="Asset CAIP id or symbol"),
    show_all: bool = typer.Option(True, "--show-all/--nonzero", help="Include zero-balance addresses"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Show the aggregated multi-address balance of one asset."""
    _configure_logging(debug, get_settings().log_level)
    snapshot = _load_snapshot(snapshot_path)
    asset = _select(snapshot, asset_selector)

    session = WalletSession(balances=snapshot.balances, pubkeys=snapshot.pubkeys)
    aggregate = ReportService(session).aggregate(asset, show_all=show_all)

    if aggregate is None:
        console.print(f"\n[yellow]No pubkeys found for {asset.symbol}[/yellow]")
        return

    if format == OutputFormat.TABLE:
        _output_balances(aggregate)
    else:
        _output_json(aggregate.model_dump(mode="json", by_alias=True))


@app.command()
def networks() -> None:
    """List supported chain families."""
    table = Table(title="Supported Chain Families", show_header=True, header_style="bold magenta")
    table.add_column("Family", style="cyan")
    table.add_column("Namespaces", style="blue")
    table.add_column("Symbols", style="green")
    table.add_column("Report", style="yellow")

    for family in get_all_families():
        config = get_family_config(family)
        table.add_row(
            config["label"],
            ", ".join(config.get("namespaces", [])),
            ", ".join(config.get("symbols", [])),
            config["description"],
        )

    console.print(table)


def _output_document(document: Document) -> None:
    """Output a document model to the console."""
    console.print(f"\n[bold]{document.title}[/bold]")
    console.print(f"[bold dim]{document.subtitle}[/bold dim]")
    console.print(f"[dim]{document.generated_line}[/dim]")

    for block in document.blocks:
        if isinstance(block, HeadingBlock):
            if block.level <= 2:
                console.rule(f"[bold]{block.text}[/bold]")
            else:
                console.print(f"\n[bold cyan]{block.text}[/bold cyan]")
        elif isinstance(block, ParagraphBlock):
            console.print(block.text)
        elif isinstance(block, BulletListBlock):
            for item in block.items:
                console.print(f"  • {item}" if item else "")
        elif isinstance(block, TableBlock):
            table = Table(show_header=True, header_style="bold magenta")
            for header in block.headers:
                table.add_column(header)
            for row in block.rows:
                table.add_row(*row)
            console.print(table)
            if block.footer:
                console.print(f"[dim]{block.footer.strip()}[/dim]")
    console.print()


def _output_balances(aggregate: AggregatedBalance) -> None:
    """Output an aggregated balance as rich table."""
    table = Table(
        title=f"{aggregate.symbol} balances on {aggregate.network_id}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Label", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Address", style="blue")
    table.add_column("Balance", style="white", justify="right")
    table.add_column("USD Value", style="bold green", justify="right")
    table.add_column("Share", style="white", justify="right")

    for detail in aggregate.balances:
        table.add_row(
            detail.label,
            detail.address_type,
            detail.address,
            f"{detail.balance:,.8f}",
            f"${detail.value_usd:,.2f}" if detail.value_usd else "-",
            f"{detail.percentage:.1f}%",
        )

    console.print("\n")
    console.print(table)

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Label", style="bold")
    summary_table.add_column("Value", style="bold green")
    summary_table.add_row("Total Balance:", f"{aggregate.total_balance:,.8f} {aggregate.symbol}")
    summary_table.add_row("Total Value:", f"${aggregate.total_value_usd:,.2f}")
    summary_table.add_row("Addresses:", str(len(aggregate.balances)))

    console.print("\n")
    console.print(summary_table)
    console.print("\n")


def _output_json(data: dict[str, Any]) -> None:
    """Output a JSON document."""
    console.print(json.dumps(data, indent=2), soft_wrap=True, markup=False, highlight=False)


if __name__ == "__main__":
    app()
