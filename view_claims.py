#!/usr/bin/env python3
"""
View stored claims from the registry database.

Usage:
    python view_claims.py                     # List all claims
    python view_claims.py 3                   # View specific claim details
    python view_claims.py --status Approved   # Filter by status
    python view_claims.py --stats             # Show statistics
    python view_claims.py 3 --export          # Print the claim's JSON text
"""

import argparse
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.registry import Claim, ClaimStatus, RegistryError, serialize_claim
from src.storage import SQLiteClaimStore, get_claim_store
from src.utils.config import get_settings

console = Console()

STATUS_STYLES = {
    ClaimStatus.SUBMITTED: "yellow",
    ClaimStatus.APPROVED: "green",
    ClaimStatus.REJECTED: "red",
}


def format_timestamp(ts: int) -> str:
    """Format a Unix timestamp for display (UTC)."""
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return str(ts)


def short_hash(customer_id_hash: str) -> str:
    """Abbreviate a 0x-prefixed hash to its first and last 6 hex digits."""
    return f"{customer_id_hash[:8]}…{customer_id_hash[-6:]}"


def styled_status(status: ClaimStatus) -> str:
    color = STATUS_STYLES.get(status, "white")
    return f"[{color}]{status.label}[/{color}]"


def make_claims_table(claims: list) -> Table:
    """Create summary table with key claim info."""
    table = Table(
        title="📋 Claims",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Claim ID", style="bold", justify="right")
    table.add_column("Submitted", style="dim")
    table.add_column("Status")
    table.add_column("Customer Hash")
    table.add_column("Amount", justify="right")

    for claim in claims:
        table.add_row(
            str(claim.claim_id),
            format_timestamp(claim.claim_date),
            styled_status(claim.status),
            short_hash(claim.customer_id_hash),
            f"{claim.amount:,}",
        )

    return table


def print_claim_detail(claim: Claim):
    """Print detailed view of a single claim."""
    console.print()
    console.print(Panel(f"[bold cyan]Claim #{claim.claim_id}[/bold cyan]", expand=False))
    console.print(f"  Status: [bold]{styled_status(claim.status)}[/bold]")
    console.print(f"  Submitted: {format_timestamp(claim.claim_date)} ({claim.claim_date})")
    console.print(f"  Amount: {claim.amount:,}")
    console.print(f"  Customer Hash: {claim.customer_id_hash}")
    if claim.status.is_terminal:
        console.print("  [dim]Final - no further status changes accepted[/dim]")


def print_stats(store: SQLiteClaimStore):
    """Print database statistics."""
    state = store.load_state()

    table = Table(title="📊 Registry Statistics", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    table.add_row("Total Claims", str(store.count()))
    for status in ClaimStatus:
        table.add_row(f"  {status.label}", str(store.count(status=status)))
    if state is not None:
        table.add_row("Next Claim ID", str(state.next_claim_id))
        table.add_row("Owner", state.owner or "[dim]renounced[/dim]")
    table.add_row("Database", str(store.db_path))

    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="View stored claims")
    parser.add_argument("claim_id", nargs="?", type=int, help="Specific claim ID to view")
    parser.add_argument("--db", help="Database path (default: configured db_path)")
    parser.add_argument("--status", help="Filter by status (Submitted, Approved, Rejected)")
    parser.add_argument("--stats", action="store_true", help="Show statistics")
    parser.add_argument("--export", action="store_true", help="Print claim as JSON text")
    parser.add_argument("--limit", type=int, default=50, help="Max claims to list")

    args = parser.parse_args()

    db_path = Path(args.db) if args.db else get_settings().db_path
    if not db_path.exists():
        console.print(f"[yellow]No database found at {db_path}. Submit a claim first.[/yellow]")
        return

    store = get_claim_store(db_path)

    if args.stats:
        print_stats(store)
        return

    if args.claim_id is not None:
        claim = store.get(args.claim_id)
        if claim is None:
            console.print(f"\n[red]Claim not found: {args.claim_id}[/red]")
            sys.exit(1)
        if args.export:
            print(serialize_claim(claim))
        else:
            print_claim_detail(claim)
        return

    status = None
    if args.status:
        try:
            status = ClaimStatus.parse(args.status)
        except RegistryError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)

    claims = store.list_all(status=status, limit=args.limit)
    if not claims:
        console.print("\n[yellow]No claims found.[/yellow]")
        return

    console.print(make_claims_table(claims))
    console.print(f"Total: {len(claims)} claim(s)")


if __name__ == "__main__":
    main()
