"""
CLI main entry point.
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

from ..api_client import LedgerApi, LedgerApiClient, LedgerApiError
from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..errors import StatementImportError
from ..review.workflow import ReviewStore
from ..schemas.drafts import Resolution
from ..services.session import ImportSession

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="statement-import",
        description="Import bank statement PDFs into a ledger account with duplicate checks",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("init-config", help="Write a default config file")
    subparsers.add_parser("accounts", help="List accounts")
    subparsers.add_parser("extractors", help="List statement extractors")
    subparsers.add_parser("categories", help="List categories")

    # import command
    import_parser = subparsers.add_parser(
        "import", help="Upload a statement, resolve duplicates and commit"
    )
    import_parser.add_argument(
        "--account",
        required=True,
        help="Target account ID",
    )
    import_parser.add_argument(
        "--extractor",
        required=True,
        help="Extractor name (see 'extractors')",
    )
    import_parser.add_argument(
        "file",
        type=Path,
        help="Statement PDF",
    )
    import_parser.add_argument(
        "--keep-both",
        type=int,
        nargs="+",
        default=[],
        metavar="N",
        help="Import these conflicting rows anyway (row numbers as printed)",
    )
    import_parser.add_argument(
        "--ignore",
        type=int,
        nargs="+",
        default=[],
        metavar="N",
        help="Skip these rows during review",
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be imported without committing",
    )

    return parser


def _run(
    config: Config,
    api: LedgerApi | None,
    action: Callable[[LedgerApi], Awaitable[int]],
) -> int:
    """Run an async command against the given API, or a client built from config."""

    async def runner() -> int:
        if api is not None:
            return await action(api)
        async with LedgerApiClient.from_config(config.api) as client:
            return await action(client)

    return asyncio.run(runner())


def cmd_init_config(config_path: Path) -> int:
    """Write the default config file."""
    if config_path.exists():
        print(f"❌ {config_path} already exists")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def cmd_accounts(config: Config, api: LedgerApi | None = None) -> int:
    """List accounts."""

    async def action(client: LedgerApi) -> int:
        try:
            accounts = await client.list_accounts()
        except LedgerApiError as e:
            print(f"❌ Failed to load accounts: {e}")
            return 1
        for account in accounts:
            print(f"  🏦 [{account.id}] {account.name}")
        print(f"\n✓ Found {len(accounts)} account(s)")
        return 0

    return _run(config, api, action)


def cmd_extractors(config: Config, api: LedgerApi | None = None) -> int:
    """List statement extractors."""

    async def action(client: LedgerApi) -> int:
        try:
            extractors = await client.list_extractors()
        except LedgerApiError as e:
            print(f"❌ Failed to load extractors: {e}")
            return 1
        for extractor in extractors:
            print(f"  📑 {extractor.name:<20} {extractor.display_name}")
        print(f"\n✓ Found {len(extractors)} extractor(s)")
        return 0

    return _run(config, api, action)


def cmd_categories(config: Config, api: LedgerApi | None = None) -> int:
    """List categories."""

    async def action(client: LedgerApi) -> int:
        try:
            categories = await client.list_categories()
        except LedgerApiError as e:
            print(f"❌ Failed to load categories: {e}")
            return 1
        for category in categories:
            cat_type = getattr(category.type, "value", category.type)
            print(f"  🏷  [{category.id}] {category.name} ({cat_type})")
        print(f"\n✓ Found {len(categories)} categor{'y' if len(categories) == 1 else 'ies'}")
        return 0

    return _run(config, api, action)


def _print_review(store: ReviewStore) -> None:
    print("\n📋 Review")
    print("=" * 72)
    for index, draft in enumerate(store.drafts):
        marker = "⏭" if draft.ignored else "✓"
        print(
            f"  {marker} [{index}] {draft.day.isoformat()}  {draft.amount:>12}  "
            f"{draft.type.value:<8} {draft.description}"
        )
    print(f"\n  To import: {store.to_import}, ignored: {store.to_ignore}")


async def run_import(
    session: ImportSession,
    account_id: str,
    extractor: str,
    file: Path,
    keep_both: list[int],
    ignore: list[int],
    dry_run: bool,
) -> int:
    """Drive the wizard non-interactively from account selection to commit."""
    try:
        await session.start()

        session.select_account(account_id)
        session.next()
        session.select_extractor(extractor)
        session.next()

        session.select_file(file)
        drafts = await session.upload()
        print(f"  📄 Parsed {len(drafts)} transaction(s) from {file.name}")
        session.next()

        tracker = await session.check_conflicts()
        for index in tracker.conflicted_indices():
            draft = tracker.drafts[index]
            matches = ", ".join(f"#{e.id}" for e in tracker.annotation_for(index).conflicts_with)
            print(
                f"  ⚠ [{index}] {draft.day.isoformat()} {draft.amount} "
                f"may duplicate existing {matches}"
            )
        for index in keep_both:
            session.set_resolution(index, Resolution.KEEP_BOTH)
        session.next()

        store = session.review
        for index in ignore:
            if not store.draft(index).ignored:
                store.toggle_ignore(index)
        _print_review(store)

        if dry_run:
            print(f"\n[DRY RUN] Would import {store.to_import} transaction(s)")
            return 0

        result = await session.commit()
    except StatementImportError as e:
        logger.debug("Import stopped at step %s", session.current_step.id)
        print(f"❌ {e}")
        return 1
    except (IndexError, ValueError) as e:
        print(f"❌ Invalid row selection: {e}")
        return 1

    print(f"\n✓ Imported {result.count} transaction(s)")
    return 0


def cmd_import(
    config: Config,
    account_id: str,
    extractor: str,
    file: Path,
    keep_both: list[int] | None = None,
    ignore: list[int] | None = None,
    dry_run: bool = False,
    api: LedgerApi | None = None,
) -> int:
    """Import one statement file.

    Args:
        config: Application configuration
        account_id: Target account
        extractor: Extractor name
        file: Statement PDF
        keep_both: Conflicting rows to import anyway
        ignore: Rows to skip during review
        dry_run: Stop before committing
        api: Ledger API to use instead of a client built from config
    """
    print(f"📥 Importing {file.name} into account {account_id}...")

    async def action(client: LedgerApi) -> int:
        session = ImportSession(client, config.importing)
        return await run_import(
            session,
            account_id,
            extractor,
            file,
            keep_both or [],
            ignore or [],
            dry_run,
        )

    return _run(config, api, action)


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except (ConfigValidationError, OSError, ValueError) as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"❌ {error}")
        return 1

    # Route to command
    if parsed.command == "accounts":
        return cmd_accounts(config)
    elif parsed.command == "extractors":
        return cmd_extractors(config)
    elif parsed.command == "categories":
        return cmd_categories(config)
    elif parsed.command == "import":
        return cmd_import(
            config,
            parsed.account,
            parsed.extractor,
            parsed.file,
            keep_both=parsed.keep_both,
            ignore=parsed.ignore,
            dry_run=parsed.dry_run,
        )
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
