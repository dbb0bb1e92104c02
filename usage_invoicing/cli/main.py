"""
CLI interface for Usage Invoicing.

Locates the input, runs the loader and calculator, and renders results.
"""

import sys
from decimal import Decimal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from usage_invoicing.config.loader import load_pricing_config
from usage_invoicing.core.loader import InputLoadError, load_records
from usage_invoicing.core.pricing import DEFAULT_PRICING, Invoice, InvoiceCalculator, round_amount
from usage_invoicing.core.records import LoadResult, UsageRecord
from usage_invoicing.observability.logger import get_logger, setup_logging

app = typer.Typer()
console = Console(highlight=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)
logger = get_logger(__name__)

# Any completed run exits 0, even one with only rejections
EXIT_CODE_OK = 0
EXIT_CODE_FATAL = 1

DEFAULT_INPUT_NAME = "usage-data.json"
PROJECT_ROOT = Path(__file__).resolve().parents[2]
RULE = "-" * 29


def resolve_input_path(path: Optional[str]) -> Path:
    """Explicit path, else the project default, else the working directory's copy."""
    if path:
        return Path(path)
    default_path = PROJECT_ROOT / DEFAULT_INPUT_NAME
    if default_path.exists():
        return default_path
    cwd_path = Path.cwd() / DEFAULT_INPUT_NAME
    return cwd_path if cwd_path.exists() else default_path


def _format_currency(amount: Decimal) -> str:
    """Format a monetary amount to exactly 2 decimal places."""
    return f"${round_amount(amount):f}"


def _print_invoice(invoice: Invoice, usage: UsageRecord) -> None:
    console.print(f"Invoice for Customer: {escape(invoice.customer_id)}")
    console.print(RULE)
    console.print(f"API Calls: {usage.api_calls} calls -> {_format_currency(invoice.api_cost)}")
    console.print(f"Storage: {usage.storage_gb:f} GB -> {_format_currency(invoice.storage_cost)}")
    console.print(f"Compute Time: {usage.compute_minutes} minutes -> {_format_currency(invoice.compute_cost)}")
    console.print(RULE)
    console.print(f"Total Due: {_format_currency(invoice.total)}\n")


def _print_rejections(result: LoadResult) -> None:
    for error in result.errors:
        console.print(f"Skipped invalid entry: {escape(error)}")


def _fail(error: Exception) -> None:
    if isinstance(error, InputLoadError):
        logger.error("load_failed", failure=error.failure.value, error=str(error))
    else:
        logger.error("run_failed", error=str(error), exc_info=True)
    err_console.print(f"[red]Fatal error:[/] {escape(str(error))}")
    sys.exit(EXIT_CODE_FATAL)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Usage Invoicing CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Usage Invoicing - Use --help to see available commands")


@app.command()
def invoice(
    path: Optional[str] = typer.Argument(
        None,
        help=f"Usage JSON file (defaults to {DEFAULT_INPUT_NAME})"
    ),
    pricing_file: Optional[str] = typer.Option(
        None,
        "--pricing",
        "-p",
        help="YAML pricing schedule to use instead of the built-in rates"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log loader and calculator events to stderr"
    )
):
    """
    Compute a tiered invoice for every valid usage record.
    
    Malformed entries are skipped and listed after the invoices.
    """
    setup_logging(verbose)
    try:
        pricing = load_pricing_config(pricing_file) if pricing_file else DEFAULT_PRICING
        result = load_records(resolve_input_path(path))
        calculator = InvoiceCalculator(pricing)
        
        for record in result.valid:
            _print_invoice(calculator.calculate(record), record)
        _print_rejections(result)
    except Exception as e:
        _fail(e)
    
    sys.exit(EXIT_CODE_OK)


@app.command()
def check(
    path: Optional[str] = typer.Argument(
        None,
        help=f"Usage JSON file (defaults to {DEFAULT_INPUT_NAME})"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log loader events to stderr"
    )
):
    """Validate usage records without pricing them."""
    setup_logging(verbose)
    try:
        result = load_records(resolve_input_path(path))
        console.print(f"Valid records: {len(result.valid)}")
        console.print(f"Rejected entries: {len(result.rejected)}")
        _print_rejections(result)
    except Exception as e:
        _fail(e)
    
    sys.exit(EXIT_CODE_OK)


if __name__ == "__main__":
    app()
