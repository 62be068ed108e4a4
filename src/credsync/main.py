#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from credsync.app import mint_credential, sync_credentials
from credsync.config import SyncConfig, configure_logging, get_sync_config
from credsync.config.errors import ConfigurationError
from credsync.domain.addresses import checksum_address
from credsync.domain.index import CredentialIndex
from credsync.domain.types import MintRequest, validate_content_id

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from credsync.domain.types import CredentialRecord


def _add_sync_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum number of tokens resolved at once (defaults to config)",
    )
    parser.add_argument(
        "--max-skipped",
        type=int,
        default=None,
        help="Fail the pass when more tokens than this could not be resolved",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index and issue ledger credentials")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run one full sync pass and report the result")
    _add_sync_arguments(sync)

    listing = subparsers.add_parser("list", help="List credentials held by an address")
    listing.add_argument("--owner", type=str, required=True, help="Holder address")
    _add_sync_arguments(listing)

    organizations = subparsers.add_parser("organizations", help="List issuing organizations")
    _add_sync_arguments(organizations)

    verify = subparsers.add_parser("verify", help="Look up a single credential by token id")
    verify.add_argument("--token-id", type=int, required=True, help="Token id to verify")
    _add_sync_arguments(verify)

    mint = subparsers.add_parser("mint", help="Issue a new credential")
    mint.add_argument("--recipient", type=str, required=True, help="Recipient address")
    mint.add_argument(
        "--metadata-cid",
        type=str,
        required=True,
        help="Content id of the metadata document",
    )
    mint.add_argument(
        "--artifact-cid",
        type=str,
        required=True,
        help="Content id of the credential artifact",
    )

    return parser.parse_args(list(argv))


def _build_sync_config(args: argparse.Namespace) -> SyncConfig:
    if args.max_concurrency is not None and args.max_concurrency < 1:
        raise ValueError("--max-concurrency must be at least 1")
    if args.max_skipped is not None and args.max_skipped < 0:
        raise ValueError("--max-skipped must be non-negative")
    defaults = get_sync_config(max_skipped=args.max_skipped)
    if args.max_concurrency is None:
        return defaults
    return SyncConfig(max_concurrency=args.max_concurrency, max_skipped=args.max_skipped)


def _build_mint_request(args: argparse.Namespace) -> MintRequest:
    return MintRequest(
        recipient_address=checksum_address(args.recipient),
        metadata_content_id=validate_content_id(args.metadata_cid, label="--metadata-cid"),
        artifact_content_id=validate_content_id(args.artifact_cid, label="--artifact-cid"),
    )


def _print_record(record: CredentialRecord) -> None:
    print(
        f"token={record.token_id} owner={record.owner_address} "
        f"organization={record.organization or '-'} "
        f"content={record.content_id} artifact={record.artifact_id or '-'}"
    )


def _mint(request: MintRequest) -> None:
    outcome = mint_credential(
        recipient_address=request.recipient_address,
        metadata_content_id=request.metadata_content_id,
        artifact_content_id=request.artifact_content_id,
    )
    print(
        f"Minted token {outcome.token_id} for {outcome.recipient_address} "
        f"(tx={outcome.tx_hash}, owner_verified={outcome.owner_verified})"
    )


def _sync(args: argparse.Namespace, sync_config: SyncConfig) -> None:
    index = CredentialIndex()
    summary = sync_credentials(index=index, sync_config=sync_config)
    session = summary.session

    if args.command == "sync":
        print(
            f"Sync {session.status}: indexed={len(summary.records)}, "
            f"attempted={session.attempted}, skipped={session.skipped}, "
            f"organizations={len(summary.organizations)}"
        )
        if session.skipped_token_ids:
            print(f"Skipped tokens: {', '.join(map(str, session.skipped_token_ids))}")
    elif args.command == "list":
        records = index.list_by_owner(args.owner)
        print(f"{len(records)} credentials held by {args.owner}")
        for record in records:
            _print_record(record)
    elif args.command == "organizations":
        for organization in sorted(index.list_organizations()):
            print(organization)
    elif args.command == "verify":
        record = index.get(args.token_id)
        if record is None:
            raise LookupError(f"Credential {args.token_id} is not indexed")
        _print_record(record)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    mint_request: MintRequest | None = None
    sync_config: SyncConfig | None = None
    try:
        parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
        if parsed_args.command == "mint":
            mint_request = _build_mint_request(parsed_args)
        else:
            sync_config = _build_sync_config(parsed_args)
    except (ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if mint_request is not None:
            _mint(mint_request)
        elif sync_config is not None:
            _sync(parsed_args, sync_config)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
