"""Export functions for dashboard tables.

This module provides functions to export dashboard results to Excel files.
"""

import os
from pathlib import Path
from typing import Dict

import pandas as pd

SHEET_NAMES = {
    "metrics": "Metrics",
    "weekly": "Weekly",
    "monthly": "Monthly Trends",
    "categories": "Category Breakdown",
    "sales_performance": "Sales Performance",
    "inventory": "Inventory",
    "health": "Inventory Health",
    "low_stock": "Low Stock",
    "recurring_expenses": "Recurring Expenses",
}


def export_to_excel(tables: Dict[str, pd.DataFrame],
                    output_dir: str = "output",
                    file_name: str = "pos_dashboard.xlsx") -> Path:
    """Export dashboard tables to an Excel workbook, one sheet per table.

    Args:
        tables: Dictionary of DataFrames to export to sheets
        output_dir: Directory to save the Excel file
        file_name: Workbook file name

    Returns:
        Path to the created Excel file
    """
    os.makedirs(output_dir, exist_ok=True)
    outfile = Path(output_dir) / file_name

    with pd.ExcelWriter(outfile, engine="xlsxwriter") as xl:
        for key, frame in tables.items():
            sheet = SHEET_NAMES.get(key, key)[:31]
            frame.to_excel(xl, sheet_name=sheet, index=False)

    return outfile
