import json
import os
import sys

import pytest

# Add the project root (parent directory of tests/) to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from ledger.ledger_data import load_ledger_json  # noqa: E402
from ledger_builders import make_sale  # noqa: E402
from reports.dashboard import build_dashboard  # noqa: E402
from reports.export import SHEET_NAMES, export_to_excel  # noqa: E402
from reports.formatting import format_compact, format_currency, format_percent  # noqa: E402
from reports.main import main  # noqa: E402


def test_dashboard_tables(flour_ledger):
    flour_ledger["sales"].append(make_sale("s1", "2025-01-03T10:00:00Z", [("bread", 10, 3000)]))

    tables = build_dashboard(flour_ledger, {"month_count": 2, "display_scale": 1}, now="2025-01-15")

    assert set(tables) == set(SHEET_NAMES)
    metrics = tables["metrics"].iloc[0]
    assert metrics["total_revenue"] == 30000.0
    assert metrics["total_expenses"] == 20000.0
    assert metrics["month_sales"] == 30000.0
    assert tables["monthly"]["revenue"].tolist() == [0.0, 30000.0]
    assert tables["health"].iloc[0].to_dict() == {"healthy": 1, "warning": 0, "critical": 0}
    assert tables["inventory"].iloc[0]["stock"] == 15.0
    assert tables["sales_performance"]["sellable_item_id"].tolist() == ["bread"]
    assert tables["categories"].to_dict("records") == [{"category": "Bakery", "total_value": 20000.0}]


def test_dashboard_of_empty_ledger():
    tables = build_dashboard(None, now="2025-01-15")

    assert tables["health"].iloc[0].to_dict() == {"healthy": 0, "warning": 0, "critical": 0}
    assert tables["inventory"].empty
    assert tables["metrics"].iloc[0]["total_revenue"] == 0.0


def test_export_to_excel(tmp_path, flour_ledger):
    tables = build_dashboard(flour_ledger, now="2025-01-15")

    outfile = export_to_excel(tables, tmp_path / "out")

    assert outfile == tmp_path / "out" / "pos_dashboard.xlsx"
    assert outfile.stat().st_size > 0


def test_load_ledger_json(tmp_path, flour_ledger):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps(flour_ledger), encoding="utf-8")
    assert load_ledger_json(path) == flour_ledger

    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_ledger_json(path)


def test_cli_with_ledger_snapshot(tmp_path, flour_ledger, capsys):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps(flour_ledger), encoding="utf-8")

    exit_code = main(["--ledger-json", str(path), "--output-dir", str(tmp_path / "out"), "--excel",
                      "--period", "36500"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Expenses: 20,000 Toman" in out
    assert "CATEGORY SHARE (36500)" in out
    assert (tmp_path / "out" / "pos_dashboard.xlsx").exists()


def test_formatting():
    assert format_currency(1234567.4) == "1,234,567 Toman"
    assert format_currency(0, "") == "0"
    assert format_compact(1_500_000) == "1.5M"
    assert format_compact(250_000) == "250K"
    assert format_compact(999) == "999"
    assert format_percent(12.34) == "12.3%"


def test_cli_rejects_unknown_period(tmp_path, flour_ledger):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps(flour_ledger), encoding="utf-8")

    assert main(["--ledger-json", str(path), "--period", "fortnight"]) == 2
