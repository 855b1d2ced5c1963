"""
CLI main entry point.
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path

from ..accounts import AccountType, ChartOfAccounts, load_chart
from ..coding import AccountCodingService, BatchCodingService
from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..state_store import LedgerStore
from ..trial_balance import TrialBalanceService
from .pipeline import ProcessingTimeoutError, StatementPipeline

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
        prog="statement-ledger",
        description="Turn bank statements into a coded ledger and trial balance",
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

    # init command
    init_parser = subparsers.add_parser("init", help="Write a default config file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing config file")

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Parse a statement and print its transactions")
    parse_parser.add_argument("file", type=Path, help="Statement file (PDF, CSV or text)")
    parse_parser.add_argument(
        "--media-type",
        type=str,
        help="Media type of the file (default: guessed from the file name)",
    )

    # ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Parse a statement and store it for a user")
    ingest_parser.add_argument("file", type=Path, help="Statement file (PDF, CSV or text)")
    ingest_parser.add_argument("--user", required=True, help="Owner of the statement")
    ingest_parser.add_argument(
        "--media-type",
        type=str,
        help="Media type of the file (default: guessed from the file name)",
    )

    # accounts command
    accounts_parser = subparsers.add_parser("accounts", help="List the chart of accounts")
    accounts_parser.add_argument("--type", dest="account_type", help="Only accounts of this type")

    # auto-code command
    auto_code_parser = subparsers.add_parser("auto-code", help="Auto-code stored transactions")
    auto_code_parser.add_argument("--user", required=True, help="Owner of the transactions")
    auto_code_parser.add_argument("--upload-id", type=int, help="Only transactions of this upload")
    auto_code_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Re-code transactions that already have an account code",
    )

    # trial-balance command
    tb_parser = subparsers.add_parser("trial-balance", help="Show the trial balance of a user")
    tb_parser.add_argument("--user", required=True, help="Owner of the ledger")
    tb_parser.add_argument("--from", dest="date_from", help="First date (YYYY-MM-DD)")
    tb_parser.add_argument("--to", dest="date_to", help="Last date (YYYY-MM-DD)")
    tb_parser.add_argument(
        "--include-zero",
        action="store_true",
        help="List every account, including those without activity",
    )

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Check the trial balance is ready to commit")
    validate_parser.add_argument("--user", required=True, help="Owner of the ledger")

    # export command
    export_parser = subparsers.add_parser("export", help="Export the trial balance")
    export_parser.add_argument("--user", required=True, help="Owner of the ledger")
    export_parser.add_argument(
        "--format",
        dest="fmt",
        choices=["csv", "json"],
        default="csv",
        help="Export format (default: csv)",
    )
    export_parser.add_argument("--out", type=Path, help="Output file (default: stdout)")

    # status command
    status_parser = subparsers.add_parser("status", help="Show uploads and coding progress")
    status_parser.add_argument("--user", required=True, help="Owner of the uploads")
    status_parser.add_argument(
        "--fix-stuck",
        action="store_true",
        help="Fail uploads stuck in processing for longer than the processing timeout",
    )

    return parser


def _load_chart(config: Config) -> ChartOfAccounts:
    """Chart of accounts for the config, checked against its coding defaults."""
    chart = load_chart(config.chart_path) if config.chart_path else ChartOfAccounts.default()
    errors = config.validate(chart)
    if errors:
        raise ConfigValidationError("; ".join(errors))
    return chart


def _guess_media_type(path: Path, media_type: str | None) -> str:
    if media_type:
        return media_type
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "text/plain"


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_init(config_path: Path, force: bool) -> int:
    """Write a default config file."""
    if config_path.exists() and not force:
        print(f"❌ {config_path} already exists (use --force to overwrite)")
        return 1

    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def cmd_parse(config: Config, chart: ChartOfAccounts, file: Path, media_type: str | None) -> int:
    """Parse a statement file and print the result as JSON."""
    pipeline = StatementPipeline(chart, config)

    try:
        result = pipeline.process(file.read_bytes(), _guess_media_type(file, media_type))
    except ProcessingTimeoutError as e:
        print(f"❌ {e}")
        return 1

    _print_json(result.to_dict())
    return 0 if result.success else 1


def cmd_ingest(
    config: Config, chart: ChartOfAccounts, file: Path, user_id: str, media_type: str | None
) -> int:
    """Parse a statement file and store it as an upload."""
    print(f"📄 Ingesting {file.name}...")

    store = LedgerStore(config.ledger_db_path)
    pipeline = StatementPipeline(chart, config)

    try:
        summary = pipeline.ingest(
            store,
            user_id,
            file.name,
            file.read_bytes(),
            _guess_media_type(file, media_type),
        )
    except ProcessingTimeoutError as e:
        print(f"❌ {e}")
        return 1

    if not summary["success"]:
        print(f"❌ Upload {summary['upload_id']} failed: {summary['error']}")
        return 1

    print(f"     → Upload:       {summary['upload_id']}")
    print(f"     → Strategy:     {summary['strategy']}")
    print(f"     → Transactions: {summary['transaction_count']}")
    print(f"     → Income:       {summary['total_income']}")
    print(f"     → Expenses:     {summary['total_expenses']}")
    print(f"\n✓ Stored {summary['transaction_count']} transaction(s), {summary['uncoded']} uncoded")
    return 0


def cmd_accounts(chart: ChartOfAccounts, account_type: str | None) -> int:
    """List the chart of accounts in trial balance order."""
    try:
        wanted = AccountType(account_type) if account_type else None
    except ValueError:
        print(f"❌ Unknown account type: {account_type}")
        return 1

    accounts = [a for a in chart.in_display_order() if wanted is None or a.account_type == wanted]
    for account in accounts:
        print(
            f"  {account.code}  {account.name:<35} {account.account_type.value:<12} "
            f"{account.normal_balance.value}  {account.tax_code}"
        )
    print(f"\n✓ {len(accounts)} account(s)")
    return 0


def cmd_auto_code(
    config: Config, chart: ChartOfAccounts, user_id: str, upload_id: int | None, overwrite: bool
) -> int:
    """Auto-code stored transactions."""
    store = LedgerStore(config.ledger_db_path)
    batch = BatchCodingService(AccountCodingService(chart, config.coding), store)

    result = batch.auto_code_batch(user_id, upload_id=upload_id, overwrite=overwrite, coded_by=user_id)

    for error in result.errors:
        print(f"  ❌ [{error['id']}] {error['error']}")
    print(f"\n✓ Coded: {result.success_count}, Errors: {result.error_count}")
    return 0 if not result.errors else 1


def cmd_trial_balance(
    config: Config,
    chart: ChartOfAccounts,
    user_id: str,
    date_from: str | None,
    date_to: str | None,
    include_zero: bool,
) -> int:
    """Print the trial balance."""
    store = LedgerStore(config.ledger_db_path)
    service = TrialBalanceService(store, chart, config.trial_balance)

    result = service.get_trial_balance(user_id, date_from, date_to, include_zero)
    if not result["success"]:
        print(f"❌ {result['error']}")
        return 1

    print("\n📊 Trial Balance")
    print("=" * 72)
    for section, categories in result["trial_balance"].items():
        if not categories:
            continue
        print(f"\n{section}")
        for category, group in categories.items():
            print(f"  {category}")
            for account in group["accounts"]:
                print(
                    f"    {account['code']}  {account['name']:<32} "
                    f"{account['debit_amount']:>10.2f} {account['credit_amount']:>10.2f} "
                    f"{account['trial_balance_amount']:>10.2f}"
                )

    totals = result["totals"]
    print("=" * 72)
    print(f"  Total debits:   {totals['total_debits']:.2f}")
    print(f"  Total credits:  {totals['total_credits']:.2f}")
    print(f"  Accounts:       {totals['account_count']}")
    print(f"  Transactions:   {totals['transaction_count']}")
    print()
    return 0


def cmd_validate(config: Config, chart: ChartOfAccounts, user_id: str) -> int:
    """Check that the trial balance is ready to commit."""
    store = LedgerStore(config.ledger_db_path)
    service = TrialBalanceService(store, chart, config.trial_balance)

    result = service.validate_for_commit(user_id)
    if not result["success"]:
        print(f"❌ {result['error']}")
        return 1

    validation = result["validation"]
    for error in validation["errors"]:
        print(f"  ❌ {error}")
    for warning in validation["warnings"]:
        print(f"  ⚠️  {warning}")

    if result["ready_for_commit"]:
        print("✓ Trial balance is ready for commit")
        return 0
    print("❌ Trial balance is not ready for commit")
    return 1


def cmd_export(config: Config, chart: ChartOfAccounts, user_id: str, fmt: str, out: Path | None) -> int:
    """Export the trial balance."""
    store = LedgerStore(config.ledger_db_path)
    service = TrialBalanceService(store, chart, config.trial_balance)

    result = service.export_trial_balance(user_id, fmt)
    if not result["success"]:
        print(f"❌ {result['error']}")
        return 1

    content = result["data"] if fmt == "csv" else json.dumps(result, indent=2, default=str)
    if out:
        out.write_text(content)
        print(f"✓ Exported trial balance to {out}")
    else:
        print(content)
    return 0


def cmd_status(config: Config, user_id: str, fix_stuck: bool) -> int:
    """Show uploads and coding progress."""
    store = LedgerStore(config.ledger_db_path)

    if fix_stuck:
        fixed = store.fix_stuck_uploads(user_id, older_than_seconds=config.processing_timeout_seconds)
        print(f"🔧 Fixed {fixed} stuck upload(s)")

    summary = store.get_coding_summary(user_id)

    print("\n📊 Ledger Status")
    print("=" * 40)
    for upload in summary:
        percentage = upload["coding_percentage"]
        progress = f"{percentage:.0f}%" if percentage is not None else "-"
        print(
            f"  [{upload['upload_id']}] {upload['file_name']:<24} {upload['status']:<10} "
            f"{upload['coded_transactions']}/{upload['total_transactions']} coded ({progress})"
        )
    print(f"\n  Uploads:            {len(summary)}")
    print(f"  Uncoded:            {store.count_uncoded(user_id)}")
    print()
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init":
        return cmd_init(parsed.config, parsed.force)

    # Load config and chart
    try:
        config = load_config(parsed.config)
        chart = _load_chart(config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    # Route to command
    if parsed.command == "parse":
        return cmd_parse(config, chart, parsed.file, parsed.media_type)
    elif parsed.command == "ingest":
        return cmd_ingest(config, chart, parsed.file, parsed.user, parsed.media_type)
    elif parsed.command == "accounts":
        return cmd_accounts(chart, parsed.account_type)
    elif parsed.command == "auto-code":
        return cmd_auto_code(config, chart, parsed.user, parsed.upload_id, parsed.overwrite)
    elif parsed.command == "trial-balance":
        return cmd_trial_balance(
            config, chart, parsed.user, parsed.date_from, parsed.date_to, parsed.include_zero
        )
    elif parsed.command == "validate":
        return cmd_validate(config, chart, parsed.user)
    elif parsed.command == "export":
        return cmd_export(config, chart, parsed.user, parsed.fmt, parsed.out)
    elif parsed.command == "status":
        return cmd_status(config, parsed.user, parsed.fix_stuck)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
