"""CLI entry-point for the POS dashboard.

Reads the ledger from the record store (or a JSON snapshot file), runs every
derivation and prints the tables, optionally exporting them to Excel.
"""

import argparse
import logging
import sys

from data_access.document_store import get_store
from ledger.ledger_data import collection, load_ledger_json
from purchase.analytics import get_category_share
from reports.dashboard import build_dashboard
from reports.export import export_to_excel
from reports.formatting import format_currency, format_percent
from utils.config_utils import configure_logging, load_config, set_pandas_display_options

logger = logging.getLogger(__name__)


def _period(value):
    """'week', 'month', 'quarter', 'year' or a number of days."""
    return int(value) if value.isdigit() else value


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Stock, sales and purchase dashboard")
    parser.add_argument("--config", type=str, default=None, help="YAML settings file")
    parser.add_argument("--db-url", type=str, default=None, help="SQLAlchemy URL of the record store")
    parser.add_argument("--ledger-json", type=str, default=None,
                        help="Read a JSON snapshot instead of the record store")
    parser.add_argument("--months", type=int, default=None, help="Number of months in the trend table")
    parser.add_argument("--period", type=_period, default="month",
                        help="Window for the category share: week, month, quarter, year or N days")
    parser.add_argument("--output-dir", type=str, default="output", help="Directory for output files")
    parser.add_argument("--excel", action="store_true", help="Also export the tables to Excel")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    """Execute the dashboard as a CLI application."""
    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    set_pandas_display_options()

    cfg = load_config(args.config, overrides={"database_url": args.db_url, "month_count": args.months})

    if args.ledger_json:
        ledger = load_ledger_json(args.ledger_json)
    else:
        ledger = get_store(cfg).get_db()

    tables = build_dashboard(ledger, cfg)
    try:
        share = get_category_share(collection(ledger, "receipts"), collection(ledger, "purchaseItems"),
                                   time_period=args.period)
    except ValueError as e:
        logger.error("Invalid --period: %s", e)
        return 2

    metrics = tables["metrics"].iloc[0]
    label = cfg["currency_label"]
    print(f"Revenue:  {format_currency(metrics['total_revenue'], label)}")
    print(f"Expenses: {format_currency(metrics['total_expenses'], label)}")
    print(f"Profit:   {format_currency(metrics['gross_profit'], label)} "
          f"({format_percent(metrics['profit_margin'])} margin)")
    for key in ("health", "monthly", "categories", "sales_performance", "low_stock"):
        print(f"\n=== {key.replace('_', ' ').upper()} ===")
        print(tables[key].to_string(index=False))
    print(f"\n=== CATEGORY SHARE ({args.period}) ===")
    print(share.to_string(index=False))

    if args.excel:
        outfile = export_to_excel(tables, args.output_dir)
        print(f"\nExported dashboard workbook → {outfile.absolute()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
