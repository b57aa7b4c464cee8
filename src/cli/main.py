"""Ledger CLI entry points.
This module exposes record, seeding, and backup commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
import sys
from typing import Any, Sequence

from core.config import LedgerConfig
from core.errors import LedgerCollectionError, LedgerError, LedgerStorageError
from core.logging_config import configure_logging
from core.types import DuplicateIdentity, NotFound, Record
from store.ledger_client import LedgerClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="ledger", description="Ledger record store CLI")
    parser.add_argument("--data-root", help="Override LEDGER_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_collections_command(subparsers)
    _add_list_command(subparsers)
    _add_get_command(subparsers)
    _add_create_command(subparsers)
    _add_update_command(subparsers)
    _add_delete_command(subparsers)
    _add_seed_command(subparsers)
    _add_export_command(subparsers)
    _add_import_command(subparsers)
    _add_clear_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Ledger CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client: LedgerClient | None = None
    try:
        client = _build_client(args.data_root)
        return _dispatch(client, args)
    except LedgerError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    finally:
        if client is not None:
            _report_storage_warning(client)


def _dispatch(client: LedgerClient, args: argparse.Namespace) -> int:
    if args.command == "collections":
        return _run_collections_command(client)
    if args.command == "list":
        return _run_list_command(client, args)
    if args.command == "get":
        return _run_get_command(client, args)
    if args.command == "create":
        return _run_create_command(client, args)
    if args.command == "update":
        return _run_update_command(client, args)
    if args.command == "delete":
        return _run_delete_command(client, args)
    if args.command == "seed":
        return _run_seed_command(client, args)
    if args.command == "export":
        return _run_export_command(client, args)
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "clear":
        return _run_clear_command(client, args)
    print(f"error: unsupported command: {args.command}", file=sys.stderr)
    return 2


def _build_client(data_root: str | None) -> LedgerClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = LedgerConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    configure_logging(config.log_level)
    return LedgerClient(config)


def _run_collections_command(client: LedgerClient) -> int:
    """Handle collections command."""
    for name, count in client.store.get_stats().items():
        print(f"{name}\t{count}")
    return 0


def _run_list_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle list command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    criteria = _parse_where(args.where or [])
    if criteria:
        records = client.store.find(args.collection, criteria)
    else:
        records = client.store.get_all(args.collection)
    for record in records:
        _print_record(record)
    return 0


def _run_get_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle get command."""
    result = client.store.get_by_id(args.collection, args.id)
    if isinstance(result, NotFound):
        return _report_not_found(result)
    _print_record(result)
    return 0


def _run_create_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle create command."""
    result = client.store.create(args.collection, _parse_record_json(args.data))
    if isinstance(result, DuplicateIdentity):
        print(
            f"error: duplicate id '{result.record_id}' in '{result.collection}'",
            file=sys.stderr,
        )
        return 1
    _print_record(result)
    return 0


def _run_update_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle update command."""
    result = client.store.update(args.collection, args.id, _parse_record_json(args.data))
    if isinstance(result, NotFound):
        return _report_not_found(result)
    _print_record(result)
    return 0


def _run_delete_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle delete command."""
    if not client.store.delete(args.collection, args.id):
        return _report_not_found(NotFound(collection=args.collection, record_id=args.id))
    print(f"deleted\t{args.id}")
    return 0


def _run_seed_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle seed command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    counts = client.seed_defaults(
        include_samples=args.with_samples,
        derive_works=args.derive_works,
    )
    for name, count in counts.items():
        print(f"{name}\t{count}")
    return 0


def _run_export_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle export command."""
    backup = client.store.export_all()
    if not args.output:
        print(backup)
        return 0
    output_path = Path(args.output).expanduser().resolve()
    try:
        output_path.write_text(backup + "\n", encoding="utf-8")
    except OSError as error:
        raise LedgerStorageError(
            f"Failed to write backup to {output_path}: {error}. Choose a writable path."
        ) from error
    print(output_path)
    return 0


def _run_import_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle import command."""
    backup_path = Path(args.backup).expanduser().resolve()
    try:
        backup = backup_path.read_text(encoding="utf-8")
    except OSError as error:
        raise LedgerStorageError(
            f"Failed to read backup at {backup_path}: {error}. Check the path and retry."
        ) from error
    client.store.import_all(backup)
    print(f"imported\t{backup_path}")
    return 0


def _run_clear_command(client: LedgerClient, args: argparse.Namespace) -> int:
    """Handle clear command."""
    if not args.yes:
        print("error: clear removes every record; pass --yes to confirm", file=sys.stderr)
        return 2
    client.store.clear_all()
    print("cleared")
    return 0


def _parse_record_json(raw_value: str) -> Record:
    """Parse a JSON object given on the command line.

    Args:
        raw_value: Raw JSON text.

    Returns:
        Parsed record fields.

    Raises:
        LedgerCollectionError: If the text is not a JSON object.
    """
    try:
        payload = json.loads(raw_value)
    except json.JSONDecodeError as error:
        raise LedgerCollectionError(f"Invalid --data JSON: {error.msg}.") from error
    if not isinstance(payload, dict):
        raise LedgerCollectionError("Invalid --data JSON: expected an object.")
    return payload


def _parse_where(conditions: Sequence[str]) -> dict[str, Any]:
    """Parse ``key=value`` equality conditions.

    Values are decoded as JSON when possible and kept as text otherwise.
    """
    criteria: dict[str, Any] = {}
    for condition in conditions:
        key, separator, raw_value = condition.partition("=")
        if not separator or not key:
            raise LedgerCollectionError(
                f"Invalid --where condition '{condition}': expected key=value."
            )
        try:
            criteria[key] = json.loads(raw_value)
        except json.JSONDecodeError:
            criteria[key] = raw_value
    return criteria


def _print_record(record: Record) -> None:
    print(json.dumps(record, ensure_ascii=False))


def _report_not_found(result: NotFound) -> int:
    print(f"error: no record '{result.record_id}' in '{result.collection}'", file=sys.stderr)
    return 1


def _report_storage_warning(client: LedgerClient) -> None:
    warning = client.store.pop_storage_warning()
    if warning is None:
        return
    print(
        f"warning: storage unavailable, changes kept in memory only "
        f"({warning.operation}: {warning.message})",
        file=sys.stderr,
    )


def _add_collections_command(subparsers: Any) -> None:
    """Register collections subcommand."""
    subparsers.add_parser("collections", help="List collections with record counts")


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    parser = subparsers.add_parser("list", help="Print records of a collection")
    parser.add_argument("--collection", required=True, help="Collection name")
    parser.add_argument(
        "--where",
        action="append",
        help="Equality filter key=value; repeat to combine",
    )


def _add_get_command(subparsers: Any) -> None:
    """Register get subcommand."""
    parser = subparsers.add_parser("get", help="Print one record by id")
    parser.add_argument("--collection", required=True, help="Collection name")
    parser.add_argument("--id", required=True, help="Record id")


def _add_create_command(subparsers: Any) -> None:
    """Register create subcommand."""
    parser = subparsers.add_parser("create", help="Create a record with a fresh id")
    parser.add_argument("--collection", required=True, help="Collection name")
    parser.add_argument("--data", required=True, help="Record fields as a JSON object")


def _add_update_command(subparsers: Any) -> None:
    """Register update subcommand."""
    parser = subparsers.add_parser("update", help="Merge fields into a record")
    parser.add_argument("--collection", required=True, help="Collection name")
    parser.add_argument("--id", required=True, help="Record id")
    parser.add_argument("--data", required=True, help="Patch fields as a JSON object")


def _add_delete_command(subparsers: Any) -> None:
    """Register delete subcommand."""
    parser = subparsers.add_parser("delete", help="Delete a record by id")
    parser.add_argument("--collection", required=True, help="Collection name")
    parser.add_argument("--id", required=True, help="Record id")


def _add_seed_command(subparsers: Any) -> None:
    """Register seed subcommand."""
    parser = subparsers.add_parser("seed", help="Seed empty default collections")
    parser.add_argument(
        "--with-samples",
        action="store_true",
        help="Also seed sample partners and channels",
    )
    parser.add_argument(
        "--derive-works",
        action="store_true",
        help="Seed works from stored contracts when works is empty",
    )


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Write a JSON backup of every collection")
    parser.add_argument("--output", help="Backup file path; prints to stdout when omitted")


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Restore collections from a JSON backup")
    parser.add_argument("backup", help="Backup file produced by export")


def _add_clear_command(subparsers: Any) -> None:
    """Register clear subcommand."""
    parser = subparsers.add_parser("clear", help="Remove every record from every collection")
    parser.add_argument("--yes", action="store_true", help="Confirm clearing all data")
