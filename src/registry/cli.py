#!/usr/bin/env python3
"""
CLI for the claim registry.

Usage:
    python -m src.registry.cli --caller alice submit USER123 1000000000000000000
    python -m src.registry.cli --caller registry-admin update-status 1 Approved
    python -m src.registry.cli get 1
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..storage import get_claim_store
from ..utils.config import get_settings
from .claim_registry import ClaimRegistry
from .errors import RegistryError


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description='Submit, update and query insurance claims',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # File a claim as alice
  python -m src.registry.cli --caller alice submit USER123 1000000000000000000

  # Approve it as the owner
  python -m src.registry.cli --caller registry-admin update-status 1 Approved

  # Check a customer's claims
  python -m src.registry.cli list-customer USER123
        """
    )

    parser.add_argument(
        '--db',
        type=str,
        help='SQLite database path (default: REGISTRY_DB_PATH or data/claims.db)'
    )
    parser.add_argument(
        '--caller',
        type=str,
        help='Identity making the call (default: configured owner)'
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('submit', help='Submit a new claim')
    p.add_argument('customer_id', help='Raw customer identifier')
    p.add_argument('amount', type=int, help='Claimed amount (positive integer)')

    p = sub.add_parser('update-status', help='Change a claim status (owner only)')
    p.add_argument('claim_id', type=int)
    p.add_argument('status', help='Submitted, Approved or Rejected')

    p = sub.add_parser('get', help='Show a claim')
    p.add_argument('claim_id', type=int)

    p = sub.add_parser('verify', help='Check a customer identifier against a claim')
    p.add_argument('claim_id', type=int)
    p.add_argument('customer_id')

    p = sub.add_parser('serialize', help='Print a claim as JSON text')
    p.add_argument('claim_id', type=int)

    p = sub.add_parser('list-customer', help="Print a customer's claims as JSON text")
    p.add_argument('customer_id')

    p = sub.add_parser('transfer-ownership', help='Hand the owner role to another identity')
    p.add_argument('new_owner')

    sub.add_parser('renounce-ownership', help='Drop the owner role permanently')
    sub.add_parser('owner', help='Show the current owner')

    return parser


def run_command(registry: ClaimRegistry, args: argparse.Namespace, caller: str) -> str:
    """Execute one parsed command and return its output text."""
    if args.command == 'submit':
        return str(registry.submit_claim(args.customer_id, args.amount, caller=caller))

    if args.command == 'update-status':
        registry.update_claim_status(args.claim_id, args.status, caller=caller)
        return f"Claim {args.claim_id} is now {registry.get_claim(args.claim_id)[3].label}"

    if args.command == 'get':
        customer_id_hash, amount, claim_date, status = registry.get_claim(args.claim_id)
        return json.dumps({
            "claim_id": args.claim_id,
            "customer_id_hash": customer_id_hash,
            "amount": str(amount),
            "claim_date": claim_date,
            "status": status.label,
        }, indent=2)

    if args.command == 'verify':
        return "true" if registry.verify_claim_ownership(args.claim_id, args.customer_id) else "false"

    if args.command == 'serialize':
        return registry.serialize_claim(args.claim_id)

    if args.command == 'list-customer':
        return registry.list_customer_claims_as_text(args.customer_id)

    if args.command == 'transfer-ownership':
        registry.transfer_ownership(args.new_owner, caller=caller)
        return f"Owner is now {registry.owner}"

    if args.command == 'renounce-ownership':
        registry.renounce_ownership(caller=caller)
        return "Ownership renounced"

    if args.command == 'owner':
        return str(registry.owner)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    settings = get_settings()
    db_path = Path(args.db) if args.db else settings.db_path
    caller = args.caller or settings.owner_id

    logger.info(f"Using database {db_path} as {caller}")

    try:
        registry = ClaimRegistry(get_claim_store(db_path), deployer=settings.owner_id)
        print(run_command(registry, args, caller))
    except RegistryError as e:
        logger.debug(f"Command failed: {e.to_dict()}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
